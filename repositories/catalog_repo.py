"""
repositories/catalog_repo.py
-----------------------------
Data access for the library catalogue: books, rare books (scanned PDFs)
and class notes. Rows reference uploaded files by public URL.
"""

from typing import Optional

from models.entities import BOOK, NOTE, RARE_BOOK
from repositories.base import BaseRepository, flip_status


class BookRepository(BaseRepository):
    """Repository for the books table."""

    entity = BOOK
    asset_fields = ("bookImage",)

    def list_all(self, filters: Optional[dict] = None, order: tuple[str, ...] = ("-createdAt",)) -> list[dict]:
        """Books, newest first."""
        return super().list_all(filters, order)


class RareBookRepository(BaseRepository):
    """Repository for the rare_books table."""

    entity = RARE_BOOK
    asset_fields = ("pdfPath", "coverImage")

    def list_active(self) -> list[dict]:
        return self.list_all({"status": "active"}, order=("-createdAt",))

    def toggle_status(self, book_id) -> Optional[dict]:
        """Flip between 'active' and 'inactive'. Not atomic."""
        return self._toggle(book_id, "status", flip_status)


class NoteRepository(BaseRepository):
    """Repository for the notes table."""

    entity = NOTE
    asset_fields = ("pdfPath",)

    def list_active(self) -> list[dict]:
        return self.list_all({"status": "active"})

    def list_by_class_and_subject(self, student_class: str, subject: str) -> list[dict]:
        """Active notes for one class and subject."""
        return self.list_all({"class": student_class, "subject": subject, "status": "active"})

    def toggle_status(self, note_id) -> Optional[dict]:
        """Flip between 'active' and 'inactive'. Not atomic."""
        return self._toggle(note_id, "status", flip_status)
