"""
repositories/user_repo.py
--------------------------
Data access for user accounts, their profiles and role assignments.

The store enforces no cascade between these tables: `UserRepository`
creates and removes the dependent rows itself, one round trip at a
time, without rollback of earlier steps.
"""

from typing import Optional

from exceptions import WriteError
from models.entities import PROFILE, ROLE, USER
from repositories.base import BaseRepository
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_FULL_NAME = "User"

_PROFILE_FIELDS = ("phone", "rollNumber", "department", "studentClass")


class ProfileRepository(BaseRepository):
    """Repository for the profiles table (one row per user)."""

    entity = PROFILE

    def get_by_user(self, user_id) -> Optional[dict]:
        return self.find_one({"userId": user_id})

    def update_by_user(self, user_id, partial: dict) -> Optional[dict]:
        """Update the profile owned by `user_id`; `userId` itself is never rewritten."""
        changes = {k: v for k, v in partial.items() if k != "userId"}
        return self.update_where({"userId": user_id}, changes)

    def delete_by_user(self, user_id) -> int:
        count = self.store.delete(self.entity.table, {"user_id": user_id})
        if count:
            logger.info(f"Deleted profile of user #{user_id}")
        return count


class RoleRepository(BaseRepository):
    """Repository for the user_roles table. A user may hold several roles."""

    entity = ROLE

    def list_for_user(self, user_id) -> list[dict]:
        return self.list_all({"userId": user_id})

    def has_role(self, user_id, role: str) -> bool:
        return self.find_one({"userId": user_id, "role": role}) is not None

    def delete_by_user(self, user_id) -> int:
        count = self.store.delete(self.entity.table, {"user_id": user_id})
        if count:
            logger.info(f"Deleted {count} role(s) of user #{user_id}")
        return count


class UserRepository(BaseRepository):
    """Repository for the users table plus the user-owned rows."""

    entity = USER

    def __init__(self, store=None, blob_store=None):
        super().__init__(store, blob_store)
        self.profiles = ProfileRepository(self.store)
        self.roles = RoleRepository(self.store)

    def get_by_email(self, email: str) -> Optional[dict]:
        return self.find_one({"email": email})

    def create_user(self, user: dict) -> dict:
        """
        Create a user and its profile.

        Args:
            user: ``email`` and ``password`` plus optional profile fields
                (``fullName``, ``phone``, ``rollNumber``, ``department``,
                ``studentClass``). ``fullName`` defaults to ``"User"``.

        Returns:
            The created user record.

        Raises:
            WriteError: If either insert fails. A profile failure leaves the
                user row in place.
        """
        created = self.create({"email": user["email"], "password": user["password"]})

        profile = {
            "userId": created["id"],
            "fullName": user.get("fullName") or DEFAULT_FULL_NAME,
        }
        profile.update({k: user.get(k) for k in _PROFILE_FIELDS})
        try:
            self.profiles.create(profile)
        except WriteError as e:
            logger.error(f"User #{created['id']} created without a profile: {e}")
            raise
        return created

    def delete_user(self, user_id) -> bool:
        """
        Delete a user, then its profile and roles.

        Returns:
            True if the user row existed.
        """
        deleted = self.delete(user_id)
        self.profiles.delete_by_user(user_id)
        self.roles.delete_by_user(user_id)
        return deleted
