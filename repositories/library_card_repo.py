"""
repositories/library_card_repo.py
----------------------------------
Data access for library-card applications.
Card-number allocation and status transitions live in
services/library_card_service.py; this module only reads and writes rows.
"""

from typing import Optional

from db.store import escape_like
from models.entities import LIBRARY_CARD
from repositories.base import BaseRepository


class LibraryCardRepository(BaseRepository):
    """Repository for the library_card_applications table."""

    entity = LIBRARY_CARD

    def list_all(self, filters: Optional[dict] = None, order: tuple[str, ...] = ("-createdAt",)) -> list[dict]:
        return super().list_all(filters, order)

    def list_by_user(self, user_id) -> list[dict]:
        return self.list_all({"userId": user_id})

    def get_by_email(self, email: str) -> Optional[dict]:
        return self.find_one({"email": email})

    def get_by_card_number(self, card_number: str) -> Optional[dict]:
        """Case-insensitive lookup by card number."""
        return self.find_one({}, ilike={"cardNumber": escape_like(card_number)})

    def card_number_exists(self, card_number: str) -> bool:
        return self.get_by_card_number(card_number) is not None
