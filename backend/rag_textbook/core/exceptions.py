"""
Custom exception classes for unified error handling.

Each error carries its own HTTP status code.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from rag_textbook.config import get_settings

logger = logging.getLogger(__name__)


class AppBaseError(Exception):
    """Base exception for all application errors."""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class ValidationError(AppBaseError):
    """Raised when input is malformed (bad embedding, bad id, bad body)."""
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AppBaseError):
    """Raised when no caller identity can be resolved from the request."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Please sign in again."):
        super().__init__(message="Unauthorized", detail=detail)


class PermissionDeniedError(AppBaseError):
    """Raised when the entity exists but the caller does not own it."""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message="Permission denied")


class NotFoundError(AppBaseError):
    """Raised when the requested entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message=f"{entity.capitalize()} not found")


class StorageError(AppBaseError):
    """Raised when the database or the query engine fails."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            message="Storage operation failed",
            detail="The server could not complete the request. Please retry later.",
        )


# ── Utility: convert to HTTP response ────────────────────

def app_error_to_response(error: AppBaseError, hide_forbidden: bool = False) -> JSONResponse:
    """Convert an AppBaseError to a JSONResponse with consistent JSON body.

    With ``hide_forbidden`` a PermissionDeniedError is rendered exactly like
    the NotFoundError for the same entity, so non-owners cannot tell which ids exist.
    """
    if hide_forbidden and isinstance(error, PermissionDeniedError):
        error = NotFoundError(error.entity, error.entity_id)

    headers = None
    if isinstance(error, UnauthorizedError):
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=error.status_code,
        content={
            "error": error.message,
            "detail": error.detail,
            "type": type(error).__name__,
        },
        headers=headers,
    )


async def app_error_handler(request: Request, error: AppBaseError) -> JSONResponse:
    """FastAPI exception handler for every AppBaseError."""
    entity_id = getattr(error, "entity_id", None)
    context = f"{request.method} {request.url.path} -> {type(error).__name__}: {error.message}"
    if entity_id is not None:
        context += f" (id={entity_id})"
    if error.detail:
        context += f" [{error.detail}]"

    if error.status_code >= 500:
        logger.error(context)
    else:
        logger.warning(context)

    settings = get_settings()
    return app_error_to_response(error, hide_forbidden=settings.HIDE_FORBIDDEN_AS_NOT_FOUND)
