"""
Textbooks feature: API routes for the textbook library, status and search.

Routes are plain ``def`` so FastAPI runs the blocking storage calls in its
threadpool.
"""

from fastapi import APIRouter, Depends

from rag_textbook.config import get_settings
from rag_textbook.core.dependencies import get_current_user_id, get_textbook_service
from rag_textbook.features.textbooks.schemas import (
    ChunkPage,
    MessageResponse,
    ScoredChunk,
    SearchRequest,
    Textbook,
    TextbookStatus,
)
from rag_textbook.features.textbooks.service import TextbookService

router = APIRouter()


@router.get("/", response_model=list[Textbook])
def list_textbooks(
    user_id: int = Depends(get_current_user_id),
    service: TextbookService = Depends(get_textbook_service),
):
    """List the caller's textbooks, newest upload first."""
    return service.list_textbooks(user_id)


@router.get("/{textbook_id}", response_model=Textbook)
def get_textbook(
    textbook_id: int,
    user_id: int = Depends(get_current_user_id),
    service: TextbookService = Depends(get_textbook_service),
):
    return service.get_textbook(user_id, textbook_id)


@router.delete("/{textbook_id}", response_model=MessageResponse)
def delete_textbook(
    textbook_id: int,
    user_id: int = Depends(get_current_user_id),
    service: TextbookService = Depends(get_textbook_service),
):
    """Delete a textbook together with all of its chunks."""
    service.delete_textbook(user_id, textbook_id)
    return {"message": "Textbook deleted successfully"}


@router.get("/{textbook_id}/status", response_model=TextbookStatus)
def get_textbook_status(
    textbook_id: int,
    user_id: int = Depends(get_current_user_id),
    service: TextbookService = Depends(get_textbook_service),
):
    """Processing status: processed flag and number of embedded chunks."""
    return service.get_status(user_id, textbook_id)


@router.post("/{textbook_id}/search", response_model=list[ScoredChunk])
def search_chunks(
    textbook_id: int,
    data: SearchRequest,
    user_id: int = Depends(get_current_user_id),
    service: TextbookService = Depends(get_textbook_service),
):
    """Find the chunks most similar to a query embedding."""
    settings = get_settings()
    top_k = settings.SEARCH_DEFAULT_TOP_K if data.top_k is None else data.top_k
    top_k = min(top_k, settings.SEARCH_MAX_TOP_K)
    return service.search(user_id, textbook_id, data.embedding, top_k)


@router.get("/{textbook_id}/chunks", response_model=ChunkPage)
def list_chunks(
    textbook_id: int,
    page: int = 1,
    page_size: int = 10,
    user_id: int = Depends(get_current_user_id),
    service: TextbookService = Depends(get_textbook_service),
):
    """Page through a textbook's chunks in reading order (max 50 per page)."""
    return service.list_chunks(user_id, textbook_id, page, page_size)
