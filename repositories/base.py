"""
repositories/base.py
--------------------
Generic CRUD over one entity type, built on the field projection.

Lookups never raise: a failed or empty read is logged and returned as
``None`` / ``[]``. Mutations raise on the first failing step, including
the reads they do before writing (`fetch()`), so a store outage is never
mistaken for an absent record.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from db.blob_store import BlobStore, get_blob_store
from db.store import get_store
from exceptions import StoreError
from models.entities import Entity
from models.projection import PRIMARY_KEY, column_for, to_store
from utils.logger import get_logger

logger = get_logger(__name__)

# Never written by an update: the key and the creation timestamp.
_IMMUTABLE_FIELDS = (PRIMARY_KEY, "createdAt")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseRepository:
    """
    CRUD repository for a single `Entity`.

    Subclasses set `entity` and, when rows reference uploaded files,
    `asset_fields` (application fields holding public URLs, or lists of
    them) so `delete()` can clean the blob store up.
    """

    entity: Entity
    asset_fields: tuple[str, ...] = ()

    def __init__(self, store=None, blob_store: Optional[BlobStore] = None):
        # without an explicit store, wire up the process-wide store and blob store
        if store is None:
            store = get_store()
            if blob_store is None and self.asset_fields:
                blob_store = get_blob_store()
        self.store = store
        self.blob_store = blob_store

    # ── READ ──────────────────────────────────────────────

    def get(self, record_id) -> Optional[dict]:
        """Fetch one record by primary key, or None if absent."""
        return self.find_one({PRIMARY_KEY: record_id})

    def find_one(self, filters: dict, ilike: Optional[dict] = None) -> Optional[dict]:
        """
        Fetch the first record matching application-field filters.

        Args:
            filters: ``{field: value}`` equality filters.
            ilike: ``{field: pattern}`` case-insensitive pattern filters.
        """
        try:
            return self.store.select_one(
                self.entity.table,
                self.entity.select,
                filters=to_store(filters, exclude=()),
                ilike=to_store(ilike or {}, exclude=()),
            )
        except StoreError as e:
            logger.error(f"Lookup of {self.entity.name} {filters} failed: {e}")
            return None

    def list_all(self, filters: Optional[dict] = None, order: tuple[str, ...] = ()) -> list[dict]:
        """
        Fetch all records matching optional equality filters.

        Args:
            filters: ``{field: value}`` equality filters.
            order: Application field names; prefix with '-' for descending.

        Returns:
            Matching records (empty list on no match or on a failed read).
        """
        try:
            return self.store.select(
                self.entity.table,
                self.entity.select,
                filters=to_store(filters or {}, exclude=()),
                order=tuple(self._order_column(name) for name in order),
            )
        except StoreError as e:
            logger.error(f"Listing {self.entity.name} records failed: {e}")
            return []

    def fetch(self, record_id) -> Optional[dict]:
        """
        Like `get()`, but a failed read raises instead of looking absent.

        Raises:
            StoreError: If the read fails.
        """
        return self.fetch_where({PRIMARY_KEY: record_id})

    def fetch_where(self, filters: dict, fields: tuple[str, ...] = ()) -> Optional[dict]:
        """Strict single-row read for mutations; `fields` narrows the columns read."""
        columns = self.entity.subset(*fields) if fields else self.entity.select
        return self.store.select_one(
            self.entity.table, columns, filters=to_store(filters, exclude=())
        )

    # ── CREATE ────────────────────────────────────────────

    def create(self, record: dict) -> dict:
        """
        Insert a record and return it as stored (with id and timestamps).

        Raises:
            WriteError: If the store rejects the insert.
        """
        created = self.store.insert(self.entity.table, to_store(record), self.entity.select)
        logger.info(f"Created {self.entity.name} #{created.get(PRIMARY_KEY)}")
        return created

    # ── UPDATE ────────────────────────────────────────────

    def update(self, record_id, partial: dict) -> Optional[dict]:
        """
        Merge `partial` into the record with this id.

        The id and creation timestamp are never written; `updatedAt` is
        stamped for entities that track it.

        Returns:
            The updated record, or None if no such record exists.

        Raises:
            WriteError: If the store rejects the update.
        """
        return self.update_where({PRIMARY_KEY: record_id}, partial)

    def update_where(self, filters: dict, partial: dict) -> Optional[dict]:
        """Same as `update()` but selecting the row by arbitrary fields."""
        payload = to_store(partial, exclude=_IMMUTABLE_FIELDS)
        if self.entity.tracks_updates and "updated_at" not in payload:
            payload["updated_at"] = utc_now()
        if not payload:
            return self.fetch_where(filters)

        updated = self.store.update(
            self.entity.table, payload, to_store(filters, exclude=()), self.entity.select
        )
        if updated is None:
            logger.warning(f"No {self.entity.name} matched {filters} for update")
        else:
            logger.info(f"Updated {self.entity.name} #{updated.get(PRIMARY_KEY)}: {sorted(partial)}")
        return updated

    def _toggle(self, record_id, field: str, flip: Callable) -> Optional[dict]:
        """
        Read one field, write back `flip(value)`.

        Not atomic: two concurrent toggles can cancel into a lost update.

        Returns:
            The updated record, or None if no such record exists.

        Raises:
            StoreError: If the read fails.
            WriteError: If the write fails.
        """
        current = self.fetch_where({PRIMARY_KEY: record_id}, fields=(field,))
        if current is None:
            return None
        return self.update(record_id, {field: flip(current[field])})

    # ── DELETE ────────────────────────────────────────────

    def delete(self, record_id) -> bool:
        """
        Delete a record by id. Deleting an absent id is not an error.

        Returns:
            True if a row was removed.

        Raises:
            StoreError: If reading the record's asset URLs fails.
            WriteError: If the store rejects the delete.
            UploadError: If removing the record's uploaded files fails.
        """
        assets = self._asset_urls(record_id)
        deleted = self.store.delete(self.entity.table, {column_for(PRIMARY_KEY): record_id}) > 0
        if deleted:
            logger.info(f"Deleted {self.entity.name} #{record_id}")
        for url in assets:
            self.blob_store.delete(url)
        return deleted

    # ── HELPERS ───────────────────────────────────────────

    def _asset_urls(self, record_id) -> list[str]:
        if not self.asset_fields or self.blob_store is None:
            return []
        record = self.fetch(record_id)
        if record is None:
            return []
        urls = []
        for field in self.asset_fields:
            value = record.get(field)
            if isinstance(value, (list, tuple)):
                urls.extend(v for v in value if v)
            elif value:
                urls.append(value)
        return urls

    @staticmethod
    def _order_column(name: str) -> str:
        if name.startswith("-"):
            return "-" + column_for(name[1:])
        return column_for(name)


def flip_status(status: str) -> str:
    """'active' becomes 'inactive'; anything else becomes 'active'."""
    return "inactive" if status == "active" else "active"


def flip_bool(value) -> bool:
    return not value
