"""
Knowledge feature: Service layer for vector-based chunk retrieval.
Ranks a textbook's chunks by cosine distance to a query embedding.
"""

import logging
from collections.abc import Sequence

from supabase import Client

from rag_textbook.core.database import execute
from rag_textbook.features.knowledge.embedding import encode_vector, validate_embedding
from rag_textbook.features.textbooks.schemas import ScoredChunk

logger = logging.getLogger(__name__)

SEARCH_RPC = "search_textbook_chunks"


class KnowledgeService:
    """Vector search operations using pgvector."""

    def __init__(self, db: Client, dimensions: int):
        self.db = db
        self.dimensions = dimensions

    def search_similar_chunks(
        self,
        textbook_id: int,
        query_embedding: Sequence[float],
        top_k: int,
    ) -> list[ScoredChunk]:
        """Nearest-neighbor search over one textbook's chunks.

        Args:
            textbook_id: Textbook to search in. Existence and ownership are
                checked by the caller.
            query_embedding: Query vector of the deployment's dimensionality.
            top_k: Maximum number of chunks to return.

        Returns:
            At most ``top_k`` chunks of the textbook, smallest cosine
            distance first, ties by ascending chunk_index. Empty when
            ``top_k <= 0`` or the textbook has no embedded chunks.

        Raises:
            ValidationError: If the embedding is malformed.
            StorageError: If the query fails.
        """
        if top_k <= 0:
            return []

        vector = validate_embedding(query_embedding, self.dimensions)

        # Ordering and the tie-break live in the SQL function
        result = execute(
            self.db.rpc(
                SEARCH_RPC,
                {
                    "query_embedding": encode_vector(vector),
                    "match_textbook_id": textbook_id,
                    "match_count": top_k,
                },
            ),
            f"search_similar_chunks textbook_id={textbook_id}",
        )

        rows = result.data or []
        chunks = [ScoredChunk(**row) for row in rows[:top_k]]
        logger.debug(f"Search on textbook {textbook_id} returned {len(chunks)}/{top_k} chunks")
        return chunks
