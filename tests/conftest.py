"""
Shared fixtures: an in-memory stand-in for `PostgresStore` with the same
select/insert/update/delete surface, including unique indexes that raise
`WriteError(conflict=True)` like the real schema does.
"""

import itertools
import re
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest

from exceptions import StoreError, WriteError
from models.library_card import (
    CARD_NUMBER_CONSTRAINT,
    EMAIL_CONSTRAINT,
    STUDENT_CARD_CONSTRAINT,
)

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _like_to_regex(pattern: str) -> re.Pattern:
    out = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


def _matches(row: dict, filters, ilike) -> bool:
    for column, value in (filters or {}).items():
        if row.get(column) != value:
            return False
    for column, pattern in (ilike or {}).items():
        value = row.get(column)
        if value is None or not _like_to_regex(pattern).fullmatch(str(value)):
            return False
    return True


def _sort_key(column):
    return lambda row: (row.get(column) is not None, row.get(column))


class InMemoryStore:
    """Dict-backed store double. Rows are kept keyed by store column names."""

    def __init__(self, unique=None):
        self.tables = defaultdict(list)
        # {table: {constraint_name: key_function(row)}}
        self.unique = unique or {}
        # {table: exception} raised on the next insert into that table
        self.fail_inserts = {}
        self.fail_reads = False
        # called as hook(table, payload) before each insert
        self.before_insert = None
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # ── helpers for tests ─────────────────────────────────

    def seed(self, table: str, row: dict) -> dict:
        """Insert a row directly, bypassing hooks and constraints."""
        stored = dict(row)
        stored.setdefault("id", f"{table}-{next(self._ids)}")
        stored.setdefault("created_at", _EPOCH + timedelta(seconds=next(self._clock)))
        self.tables[table].append(stored)
        return stored

    def rows(self, table: str) -> list[dict]:
        return self.tables[table]

    # ── store surface ─────────────────────────────────────

    def select(self, table, columns, filters=None, ilike=None, order=(), limit=None):
        if self.fail_reads:
            raise StoreError("connection refused")
        rows = [r for r in self.tables[table] if _matches(r, filters, ilike)]
        for column in reversed(tuple(order)):
            descending = column.startswith("-")
            rows.sort(key=_sort_key(column.lstrip("-")), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [self._project(r, columns) for r in rows]

    def select_one(self, table, columns, filters=None, ilike=None):
        rows = self.select(table, columns, filters=filters, ilike=ilike, limit=1)
        return rows[0] if rows else None

    def insert(self, table, payload, columns):
        if self.before_insert is not None:
            self.before_insert(table, payload)
        error = self.fail_inserts.pop(table, None)
        if error is not None:
            raise error
        row = dict(payload)
        row.setdefault("id", f"{table}-{next(self._ids)}")
        row.setdefault("created_at", _EPOCH + timedelta(seconds=next(self._clock)))
        self._check_unique(table, row)
        self.tables[table].append(row)
        return self._project(row, columns)

    def update(self, table, payload, filters, columns):
        matched = [r for r in self.tables[table] if _matches(r, filters, None)]
        for row in matched:
            self._check_unique(table, {**row, **payload}, ignore=row)
            row.update(payload)
        return self._project(matched[0], columns) if matched else None

    def delete(self, table, filters):
        keep = [r for r in self.tables[table] if not _matches(r, filters, None)]
        removed = len(self.tables[table]) - len(keep)
        self.tables[table] = keep
        return removed

    # ── internals ─────────────────────────────────────────

    @staticmethod
    def _project(row, columns):
        return {output: row.get(source) for output, source in columns}

    def _check_unique(self, table, candidate, ignore=None):
        for name, key in self.unique.get(table, {}).items():
            value = key(candidate)
            for existing in self.tables[table]:
                if existing is ignore:
                    continue
                if key(existing) == value:
                    raise WriteError(
                        f'duplicate key value violates unique constraint "{name}"',
                        constraint=name,
                        conflict=True,
                    )


def library_unique_indexes() -> dict:
    return {
        "library_card_applications": {
            CARD_NUMBER_CONSTRAINT: lambda r: (r.get("card_number") or "").lower(),
            EMAIL_CONSTRAINT: lambda r: r.get("email"),
        },
        "students": {
            STUDENT_CARD_CONSTRAINT: lambda r: r.get("card_id"),
        },
    }


@pytest.fixture
def store():
    return InMemoryStore(unique=library_unique_indexes())


@pytest.fixture
def application():
    """A complete applicant form as sent by the card application page."""
    return {
        "firstName": "Ali",
        "lastName": "Khan",
        "fatherName": "Imran Khan",
        "dob": "2006-03-14",
        "class": "12th",
        "field": "Computer Science",
        "rollNo": "45",
        "email": "ali.khan@example.com",
        "phone": "03001234567",
        "addressStreet": "12 College Road",
        "addressCity": "Mardan",
        "addressState": "KP",
        "addressZip": "23200",
        "password": "hashed-secret",
    }


class RecordingBlobStore:
    """Blob store double that records deleted URLs."""

    def __init__(self):
        self.deleted = []

    def delete(self, public_url):
        self.deleted.append(public_url)
        return True


@pytest.fixture
def blob_store():
    return RecordingBlobStore()
