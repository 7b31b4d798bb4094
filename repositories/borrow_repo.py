"""
repositories/borrow_repo.py
----------------------------
Data access for book borrow records.
"""

from datetime import datetime
from typing import Optional

from models.entities import BOOK_BORROW
from repositories.base import BaseRepository


class BorrowRepository(BaseRepository):
    """Repository for the book_borrows table."""

    entity = BOOK_BORROW

    def list_by_user(self, user_id) -> list[dict]:
        return self.list_all({"userId": user_id}, order=("-borrowDate",))

    def update_status(self, borrow_id, status: str,
                      return_date: Optional[datetime] = None) -> Optional[dict]:
        """
        Set the borrow status, e.g. ``returned``.

        Args:
            borrow_id: Primary key.
            status: New status value.
            return_date: Recorded only when given.
        """
        changes: dict = {"status": status}
        if return_date is not None:
            changes["returnDate"] = return_date
        return self.update(borrow_id, changes)
