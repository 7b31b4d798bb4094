"""
repositories/student_repo.py
-----------------------------
Data access for the student roster (materialized from approved library
cards) and the independent non-student roster (staff and others).
"""

from typing import Optional

from models.entities import NON_STUDENT, STUDENT
from repositories.base import BaseRepository


class StudentRepository(BaseRepository):
    """Repository for the students table. At most one row per card id."""

    entity = STUDENT

    def get_by_card_id(self, card_id: str) -> Optional[dict]:
        return self.find_one({"cardId": card_id})


class NonStudentRepository(BaseRepository):
    """
    Repository for the non_students table.

    This roster is its own table; it is not derived from users.
    """

    entity = NON_STUDENT

    def list_by_role(self, role: str) -> list[dict]:
        return self.list_all({"role": role}, order=("name",))
