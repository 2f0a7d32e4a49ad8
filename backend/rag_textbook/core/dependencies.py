"""
FastAPI dependency injection functions.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from rag_textbook.config import get_settings
from rag_textbook.core.database import get_supabase_client, get_supabase_admin_client
from rag_textbook.core.exceptions import UnauthorizedError
from rag_textbook.core.security import decode_access_token
from rag_textbook.features.knowledge.service import KnowledgeService
from rag_textbook.features.textbooks.chunks import ChunkAccessor
from rag_textbook.features.textbooks.repository import TextbookRepository
from rag_textbook.features.textbooks.service import TextbookService

# Bearer token scheme for Swagger UI; missing header is handled below
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Client:
    """Dependency: get Supabase client."""
    if get_settings().SUPABASE_SERVICE_KEY:
        return get_supabase_admin_client()
    return get_supabase_client()


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> int:
    """Dependency: extract and validate user_id from JWT token.

    Returns:
        int: The caller's user id.

    Raises:
        UnauthorizedError: If the header is missing, the token is invalid or
            expired, or ``sub`` is not an integer user id.
    """
    if credentials is None:
        raise UnauthorizedError("Missing bearer token.")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedError("Token is invalid or expired.")

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise UnauthorizedError("Token does not identify a user.")


def get_textbook_service(db: Client = Depends(get_db)) -> TextbookService:
    """Dependency: wire the textbook service around the shared client."""
    settings = get_settings()
    return TextbookService(
        repository=TextbookRepository(db),
        chunks=ChunkAccessor(db),
        knowledge=KnowledgeService(db, dimensions=settings.EMBEDDING_DIMENSIONS),
    )
