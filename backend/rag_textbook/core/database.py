"""
Database connections: Supabase client setup and query execution.
"""

import logging
from functools import lru_cache

import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client

from rag_textbook.config import get_settings
from rag_textbook.core.exceptions import StorageError

logger = logging.getLogger(__name__)


@lru_cache
def get_supabase_client() -> Client:
    """Get the Supabase client (shared, one per process).

    Uses the anon key for standard operations.
    """
    settings = get_settings()
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


@lru_cache
def get_supabase_admin_client() -> Client:
    """Get the Supabase admin client (service_role key, bypasses RLS).

    Ownership is enforced in application code, so the API prefers this
    client whenever a service key is configured.
    """
    settings = get_settings()
    if not settings.SUPABASE_SERVICE_KEY:
        raise ValueError("SUPABASE_SERVICE_KEY not configured")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)


def execute(query, operation: str):
    """Run a PostgREST query/RPC builder, converting driver failures to StorageError.

    Args:
        query: Any supabase request builder exposing ``execute()``.
        operation: Short label with the entity id, used for logs only.

    Raises:
        StorageError: On PostgREST or transport failures.
    """
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as e:
        logger.error(f"Storage failure during {operation}: {e}")
        raise StorageError(operation) from e
