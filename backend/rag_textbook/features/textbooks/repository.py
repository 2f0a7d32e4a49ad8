"""
Textbooks feature: Repository for textbook records.
"""

import logging

from supabase import Client

from rag_textbook.core.database import execute
from rag_textbook.core.exceptions import NotFoundError, PermissionDeniedError
from rag_textbook.features.textbooks.schemas import Textbook

logger = logging.getLogger(__name__)

TEXTBOOK_COLUMNS = "id, user_id, title, s3_key, uploaded_at, processed"
DELETE_RPC = "delete_textbook"


class TextbookRepository:
    """CRUD operations on textbooks with ownership checks."""

    def __init__(self, db: Client):
        self.db = db

    def get_textbook(self, textbook_id: int) -> Textbook:
        """Load one textbook by id.

        Raises:
            NotFoundError: If no such textbook exists.
            StorageError: If the query fails.
        """
        result = execute(
            self.db.table("textbooks")
            .select(TEXTBOOK_COLUMNS)
            .eq("id", textbook_id)
            .limit(1),
            f"get_textbook id={textbook_id}",
        )
        if not result.data:
            raise NotFoundError("textbook", textbook_id)
        return Textbook(**result.data[0])

    def get_owned_textbook(self, textbook_id: int, user_id: int) -> Textbook:
        """Load a textbook and check that ``user_id`` owns it.

        Raises:
            NotFoundError: If no such textbook exists.
            PermissionDeniedError: If it belongs to another user.
        """
        textbook = self.get_textbook(textbook_id)
        if textbook.user_id != user_id:
            logger.warning(f"User {user_id} denied access to textbook {textbook_id}")
            raise PermissionDeniedError("textbook", textbook_id)
        return textbook

    def list_textbooks(self, user_id: int) -> list[Textbook]:
        """List a user's textbooks, most recently uploaded first."""
        result = execute(
            self.db.table("textbooks")
            .select(TEXTBOOK_COLUMNS)
            .eq("user_id", user_id)
            .order("uploaded_at", desc=True)
            .order("id", desc=True),
            f"list_textbooks user_id={user_id}",
        )
        return [Textbook(**row) for row in result.data or []]

    def delete_textbook(self, textbook_id: int, requesting_user_id: int) -> None:
        """Delete a textbook and all of its chunks.

        Chunks and the textbook row are removed by one SQL function call,
        so either both are gone or neither is.

        Raises:
            NotFoundError: If the textbook does not exist (or vanished
                between the ownership check and the delete).
            PermissionDeniedError: If another user owns it.
            StorageError: If the delete fails; nothing is removed.
        """
        self.get_owned_textbook(textbook_id, requesting_user_id)

        result = execute(
            self.db.rpc(
                DELETE_RPC,
                {"p_textbook_id": textbook_id, "p_user_id": requesting_user_id},
            ),
            f"delete_textbook id={textbook_id}",
        )
        # The function re-checks ownership under a row lock
        if result.data is not True:
            raise NotFoundError("textbook", textbook_id)
