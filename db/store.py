"""
db/store.py
-----------
Table/filter/payload store client on top of the connection pool.

Every call is one short round trip on a borrowed connection, committed
(or rolled back) before the connection goes back to the pool. Nothing
is cached between calls.

Column lists are ``(outputName, sourceColumn)`` pairs, so rows come back
already keyed by application field names.
"""

from typing import Iterable, Optional, Sequence

import psycopg2
import psycopg2.errors
from psycopg2 import extras, sql

from db.connection import get_connection, init_pool, release_connection
from exceptions import StoreError, WriteError
from utils.logger import get_logger

logger = get_logger(__name__)

Columns = Sequence[tuple[str, str]]


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so an ILIKE pattern matches the value literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _columns_sql(columns: Columns) -> sql.Composable:
    return sql.SQL(", ").join(
        sql.SQL("{} AS {}").format(sql.Identifier(source), sql.Identifier(output))
        for output, source in columns
    )


def _where_sql(filters: Optional[dict], ilike: Optional[dict]) -> tuple[sql.Composable, list]:
    clauses: list[sql.Composable] = []
    params: list = []
    for column, value in (filters or {}).items():
        if value is None:
            clauses.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
        else:
            clauses.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
            params.append(value)
    for column, pattern in (ilike or {}).items():
        clauses.append(sql.SQL("{} ILIKE %s").format(sql.Identifier(column)))
        params.append(pattern)
    if not clauses:
        return sql.SQL(""), params
    return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(clauses), params


def _order_sql(order: Iterable[str]) -> sql.Composable:
    """Build ORDER BY from column names; a leading '-' sorts descending."""
    parts = []
    for column in order:
        if column.startswith("-"):
            parts.append(sql.SQL("{} DESC").format(sql.Identifier(column[1:])))
        else:
            parts.append(sql.SQL("{} ASC").format(sql.Identifier(column)))
    if not parts:
        return sql.SQL("")
    return sql.SQL(" ORDER BY ") + sql.SQL(", ").join(parts)


def _write_error(e: psycopg2.Error) -> WriteError:
    diag = getattr(e, "diag", None)
    constraint = getattr(diag, "constraint_name", None) if diag is not None else None
    message = (getattr(diag, "message_primary", None) if diag is not None else None) or str(e).strip()
    return WriteError(
        message,
        constraint=constraint,
        conflict=isinstance(e, psycopg2.errors.UniqueViolation),
    )


def _rollback(conn) -> bool:
    """Roll back after a failed statement; False if the connection is unusable."""
    if conn is None:
        return True
    if conn.closed:
        return False
    try:
        conn.rollback()
    except psycopg2.Error as e:
        logger.warning(f"Rollback failed: {e}")
        return False
    return True


class PostgresStore:
    """Store client for the hosted PostgreSQL database."""

    # ── READ ──────────────────────────────────────────────

    def select(
        self,
        table: str,
        columns: Columns,
        filters: Optional[dict] = None,
        ilike: Optional[dict] = None,
        order: Iterable[str] = (),
        limit: Optional[int] = None,
    ) -> list[dict]:
        """
        Fetch rows matching equality and case-insensitive pattern filters.

        Args:
            table: Table name.
            columns: ``(outputName, sourceColumn)`` pairs to read.
            filters: ``{column: value}`` equality filters; ``None`` means IS NULL.
            ilike: ``{column: pattern}`` case-insensitive pattern filters.
            order: Column names; prefix with '-' for descending.
            limit: Maximum number of rows.

        Returns:
            List of dicts keyed by output names (empty on no match).

        Raises:
            StoreError: If the round trip fails.
        """
        where, params = _where_sql(filters, ilike)
        query = sql.SQL("SELECT {} FROM {}").format(
            _columns_sql(columns), sql.Identifier(table)
        ) + where + _order_sql(order)
        if limit is not None:
            query += sql.SQL(" LIMIT %s")
            params.append(limit)
        rows, _ = self._execute(query, params, write=False)
        return rows

    def select_one(
        self,
        table: str,
        columns: Columns,
        filters: Optional[dict] = None,
        ilike: Optional[dict] = None,
    ) -> Optional[dict]:
        """Fetch the first matching row, or None."""
        rows = self.select(table, columns, filters=filters, ilike=ilike, limit=1)
        return rows[0] if rows else None

    # ── WRITE ─────────────────────────────────────────────

    def insert(self, table: str, payload: dict, columns: Columns) -> dict:
        """
        Insert one row and return it as read back by `columns`.

        Raises:
            WriteError: If the store rejects the row.
        """
        if payload:
            keys = list(payload)
            query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING {}").format(
                sql.Identifier(table),
                sql.SQL(", ").join(sql.Identifier(k) for k in keys),
                sql.SQL(", ").join(sql.Placeholder() for _ in keys),
                _columns_sql(columns),
            )
            params = [payload[k] for k in keys]
        else:
            query = sql.SQL("INSERT INTO {} DEFAULT VALUES RETURNING {}").format(
                sql.Identifier(table), _columns_sql(columns)
            )
            params = []
        rows, _ = self._execute(query, params, write=True)
        return rows[0]

    def update(self, table: str, payload: dict, filters: dict, columns: Columns) -> Optional[dict]:
        """
        Update matching rows with `payload`.

        Returns:
            The first updated row, or None if nothing matched.

        Raises:
            WriteError: If the store rejects the update.
        """
        if not filters:
            raise ValueError(f"Refusing to update every row of {table}")
        if not payload:
            raise ValueError("Update payload is empty")
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(k)) for k in payload
        )
        where, where_params = _where_sql(filters, None)
        query = sql.SQL("UPDATE {} SET {}").format(
            sql.Identifier(table), assignments
        ) + where + sql.SQL(" RETURNING {}").format(_columns_sql(columns))
        rows, _ = self._execute(query, list(payload.values()) + where_params, write=True)
        return rows[0] if rows else None

    def delete(self, table: str, filters: dict) -> int:
        """
        Delete matching rows.

        Returns:
            Number of rows removed (0 is not an error).

        Raises:
            WriteError: If the store rejects the delete.
        """
        if not filters:
            raise ValueError(f"Refusing to delete every row of {table}")
        where, params = _where_sql(filters, None)
        query = sql.SQL("DELETE FROM {}").format(sql.Identifier(table)) + where
        _, count = self._execute(query, params, write=True)
        return count

    # ── HEALTH ────────────────────────────────────────────

    def ping(self) -> bool:
        """Check connectivity with a one-row read of the users table."""
        try:
            self.select("users", (("id", "id"),), limit=1)
        except StoreError as e:
            logger.error(f"Database connection check failed: {e}")
            return False
        logger.info("Database connected successfully.")
        return True

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _execute(query: sql.Composable, params: list, write: bool) -> tuple[list[dict], int]:
        """Run one statement on a pooled connection; returns (rows, rowcount)."""
        conn = None
        broken = False
        try:
            conn = get_connection()
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(query, params)
                rows = [dict(r) for r in cur.fetchall()] if cur.description else []
                count = cur.rowcount
            conn.commit()
            return rows, count
        except psycopg2.Error as e:
            broken = not _rollback(conn)
            if write:
                error = _write_error(e)
                logger.error(f"Store write failed (constraint={error.constraint}): {error}")
                raise error from e
            logger.error(f"Store read failed: {e}")
            raise StoreError(str(e).strip()) from e
        finally:
            if conn is not None:
                release_connection(conn, discard=broken)


_store: PostgresStore | None = None


def get_store() -> PostgresStore:
    """Return the process-wide store, opening the pool on first use."""
    global _store
    if _store is None:
        init_pool()
        _store = PostgresStore()
    return _store
