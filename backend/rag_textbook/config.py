"""
Application configuration using Pydantic Settings.
All config is loaded from environment variables / .env file.
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "rag-textbook"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"  # comma-separated

    # ── Supabase ─────────────────────────────────────────
    SUPABASE_URL: str
    SUPABASE_KEY: str  # anon/public key
    SUPABASE_SERVICE_KEY: str = ""  # service_role key (for admin ops)

    # ── Security ─────────────────────────────────────────
    JWT_SECRET_KEY: str  # JWT signing key, shared with the auth service
    JWT_ALGORITHM: str = "HS256"

    # ── Embedding / Search ───────────────────────────────
    EMBEDDING_DIMENSIONS: int = 1536  # must match chunks.embedding vector(N)
    SEARCH_DEFAULT_TOP_K: int = 5
    SEARCH_MAX_TOP_K: int = 50

    # ── Access control ───────────────────────────────────
    # Render "exists but not yours" as 404 instead of 403
    HIDE_FORBIDDEN_AS_NOT_FOUND: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance (singleton)."""
    return Settings()
