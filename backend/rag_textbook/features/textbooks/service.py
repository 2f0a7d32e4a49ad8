"""
Textbooks feature: Service layer composing ownership checks, chunk access
and vector search into the user-facing operations.
"""

import logging
from collections.abc import Sequence

from rag_textbook.core.exceptions import StorageError
from rag_textbook.features.knowledge.service import KnowledgeService
from rag_textbook.features.textbooks.chunks import ChunkAccessor
from rag_textbook.features.textbooks.repository import TextbookRepository
from rag_textbook.features.textbooks.schemas import (
    ChunkPage,
    Pagination,
    ScoredChunk,
    Textbook,
    TextbookStatus,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


class TextbookService:
    """
    Per-request operations on a caller's textbooks.

    Flow: caller id → ownership check (once) → repository / chunks / vector search
    """

    def __init__(
        self,
        repository: TextbookRepository,
        chunks: ChunkAccessor,
        knowledge: KnowledgeService,
    ):
        self.repository = repository
        self.chunks = chunks
        self.knowledge = knowledge

    def list_textbooks(self, user_id: int) -> list[Textbook]:
        return self.repository.list_textbooks(user_id)

    def get_textbook(self, user_id: int, textbook_id: int) -> Textbook:
        return self.repository.get_owned_textbook(textbook_id, user_id)

    def delete_textbook(self, user_id: int, textbook_id: int) -> None:
        """Delete a textbook and its chunks (irreversible)."""
        self.repository.delete_textbook(textbook_id, user_id)
        logger.info(f"Textbook {textbook_id} deleted by user {user_id}")

    def get_status(self, user_id: int, textbook_id: int) -> TextbookStatus:
        """Report processing status.

        A failing chunk count does not fail the request: it is logged and
        reported as 0 alongside the rest of the status.
        """
        textbook = self.repository.get_owned_textbook(textbook_id, user_id)

        try:
            chunk_count = self.chunks.get_textbook_chunk_count(textbook_id)
        except StorageError as e:
            logger.warning(f"Chunk count unavailable for textbook {textbook_id} ({e.operation}), reporting 0")
            chunk_count = 0

        return TextbookStatus(
            textbook_id=textbook.id,
            title=textbook.title,
            processed=textbook.processed,
            chunk_count=chunk_count,
            uploaded_at=textbook.uploaded_at,
        )

    def search(
        self,
        user_id: int,
        textbook_id: int,
        query_embedding: Sequence[float],
        top_k: int,
    ) -> list[ScoredChunk]:
        """Rank the textbook's chunks against a query embedding."""
        self.repository.get_owned_textbook(textbook_id, user_id)
        return self.knowledge.search_similar_chunks(textbook_id, query_embedding, top_k)

    def list_chunks(
        self,
        user_id: int,
        textbook_id: int,
        page: int = 1,
        page_size: int = 10,
    ) -> ChunkPage:
        """Page through a textbook's chunks in reading order."""
        page = max(1, page)
        page_size = max(1, min(MAX_PAGE_SIZE, page_size))
        offset = (page - 1) * page_size

        self.repository.get_owned_textbook(textbook_id, user_id)
        chunks, total = self.chunks.list_chunks(textbook_id, offset, page_size)

        return ChunkPage(
            data=chunks,
            pagination=Pagination(
                total=total,
                page=page,
                page_size=page_size,
                total_pages=max(1, -(-total // page_size)),  # ceiling division
            ),
        )
