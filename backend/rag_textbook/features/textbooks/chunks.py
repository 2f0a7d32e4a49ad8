"""
Textbooks feature: Read access to a textbook's chunks.
"""

from supabase import Client

from rag_textbook.core.database import execute
from rag_textbook.features.textbooks.schemas import Chunk

# Embedding is never shipped back to clients
CHUNK_COLUMNS = "id, textbook_id, content, page_number, chunk_index, created_at"


class ChunkAccessor:
    """Counts and pages through committed chunk rows."""

    def __init__(self, db: Client):
        self.db = db

    def get_textbook_chunk_count(self, textbook_id: int) -> int:
        """Number of committed chunks for a textbook (0 if none)."""
        result = execute(
            self.db.table("chunks")
            .select("id", count="exact")
            .eq("textbook_id", textbook_id)
            .limit(1),
            f"get_textbook_chunk_count textbook_id={textbook_id}",
        )
        return result.count or 0

    def list_chunks(self, textbook_id: int, offset: int, limit: int) -> tuple[list[Chunk], int]:
        """One slice of a textbook's chunks ordered by chunk_index, plus the total."""
        result = execute(
            self.db.table("chunks")
            .select(CHUNK_COLUMNS, count="exact")
            .eq("textbook_id", textbook_id)
            .order("chunk_index")
            .range(offset, offset + limit - 1),
            f"list_chunks textbook_id={textbook_id}",
        )
        chunks = [Chunk(**row) for row in result.data or []]
        return chunks, result.count or 0
