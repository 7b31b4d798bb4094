"""
repositories/message_repo.py
-----------------------------
Data access for messages sent through the contact form.
"""

from typing import Optional

from models.entities import MESSAGE
from repositories.base import BaseRepository


class MessageRepository(BaseRepository):
    """Repository for the contact_messages table."""

    entity = MESSAGE

    def list_all(self, filters: Optional[dict] = None, order: tuple[str, ...] = ("-createdAt",)) -> list[dict]:
        return super().list_all(filters, order)

    def mark_seen(self, message_id, is_seen: bool = True) -> Optional[dict]:
        return self.update(message_id, {"isSeen": is_seen})
