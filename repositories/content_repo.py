"""
repositories/content_repo.py
-----------------------------
Data access for site content: events, notifications and blog posts.
Pinned notifications and posts are listed first, then newest first.
"""

from typing import Optional

from models.entities import BLOG_POST, EVENT, NOTIFICATION
from repositories.base import BaseRepository, flip_bool, flip_status

PUBLISHED = "published"


class EventRepository(BaseRepository):
    """Repository for the events table."""

    entity = EVENT
    asset_fields = ("images",)

    def list_all(self, filters: Optional[dict] = None, order: tuple[str, ...] = ("-date",)) -> list[dict]:
        return super().list_all(filters, order)


class NotificationRepository(BaseRepository):
    """Repository for the notifications table."""

    entity = NOTIFICATION
    asset_fields = ("image",)

    def list_active(self) -> list[dict]:
        """Active notifications, pinned first, then newest first."""
        return self.list_all({"status": "active"}, order=("-pin", "-createdAt"))

    def toggle_status(self, notification_id) -> Optional[dict]:
        """Flip between 'active' and 'inactive'. Not atomic."""
        return self._toggle(notification_id, "status", flip_status)

    def toggle_pin(self, notification_id) -> Optional[dict]:
        """Flip the pin flag. Not atomic."""
        return self._toggle(notification_id, "pin", flip_bool)


class BlogRepository(BaseRepository):
    """Repository for the blog_posts table."""

    entity = BLOG_POST
    asset_fields = ("featuredImage",)

    def list_posts(self, include_drafts: bool = False) -> list[dict]:
        """
        Blog posts, pinned first, then newest first.

        Args:
            include_drafts: When False, only published posts are returned.
        """
        filters = None if include_drafts else {"status": PUBLISHED}
        return self.list_all(filters, order=("-isPinned", "-createdAt"))

    def get_by_slug(self, slug: str) -> Optional[dict]:
        return self.find_one({"slug": slug})

    def toggle_pin(self, post_id) -> Optional[dict]:
        """Flip the isPinned flag. Not atomic."""
        return self._toggle(post_id, "isPinned", flip_bool)
