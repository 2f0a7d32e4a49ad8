"""
RAG Textbook API - FastAPI Application Entry Point.

Feature-based modular architecture:
  Each feature in rag_textbook/features/ has its own router, service and schemas.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rag_textbook.config import get_settings
from rag_textbook.core.exceptions import AppBaseError, app_error_handler
from rag_textbook.core.logging_config import setup_logging

# ── Feature Routers ──────────────────────────────────────
from rag_textbook.features.textbooks.router import router as textbooks_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup & shutdown."""
    settings = get_settings()
    logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} starting...")
    logger.info(f"🔗 Supabase: {settings.SUPABASE_URL[:40]}...")
    logger.info(f"📐 Embedding dimensions: {settings.EMBEDDING_DIMENSIONS}")
    yield
    logger.info("👋 Shutting down...")


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed path ids and bodies are client errors: answer 400, not 422."""
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    logger.warning(f"{request.method} {request.url.path} -> invalid request: {', '.join(fields)}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request",
            "detail": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ],
            "type": "ValidationError",
        },
    )


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Textbook library with per-textbook semantic chunk search",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error Handlers ───────────────────────────────────
    app.add_exception_handler(AppBaseError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # ── Register Feature Routers ─────────────────────────
    app.include_router(textbooks_router, prefix="/api/textbooks", tags=["Textbooks"])

    # ── Health Check ─────────────────────────────────────
    @app.get("/health", tags=["System"])
    async def health_check():
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    return app


app = create_app()
