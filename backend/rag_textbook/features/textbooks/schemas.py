"""
Textbooks feature: Schemas for records and request/response models.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Textbook(BaseModel):
    """A stored textbook owned by exactly one user."""
    id: int
    user_id: int
    title: str
    s3_key: str
    uploaded_at: datetime
    processed: bool = False

    model_config = ConfigDict(from_attributes=True)


class Chunk(BaseModel):
    """A content fragment of a textbook (embedding not included)."""
    id: int
    textbook_id: int
    content: str
    page_number: int | None = None
    chunk_index: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ScoredChunk(Chunk):
    """A chunk returned by similarity search, with its cosine distance."""
    distance: float | None = None


class TextbookStatus(BaseModel):
    """Processing status of a textbook."""
    textbook_id: int
    title: str
    processed: bool
    chunk_count: int
    uploaded_at: datetime


class SearchRequest(BaseModel):
    """Request to rank a textbook's chunks against a query embedding."""
    embedding: list[float]
    top_k: int | None = Field(default=None, description="Defaults to SEARCH_DEFAULT_TOP_K")


class Pagination(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int


class ChunkPage(BaseModel):
    """One page of a textbook's chunks in reading order."""
    data: list[Chunk]
    pagination: Pagination


class MessageResponse(BaseModel):
    message: str
