"""Base repository with dialect-aware database access.

Provides :class:`BaseRepository`, which pairs a
:class:`~appcatalog.core.protocols.Connection` with a
:class:`~appcatalog.core.dialect.Dialect` so that catalog repositories
write portable SQL and never see a driver exception.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       BaseRepository                               │
    │                                                                    │
    │   conn: Connection        ← protocol from appcatalog.core.protocols│
    │   dialect: Dialect        ← from appcatalog.core.dialect           │
    │                                                                    │
    │   execute(sql, params)          → cursor                           │
    │   query(sql, params)            → list[dict]                       │
    │   query_one(sql, params)        → dict | None                      │
    │   insert(table, data)           → cursor                           │
    │   insert_returning_id(table, d) → int                              │
    │   insert_many(table, rows)      → int                              │
    │                                                                    │
    │   sqlite3.Error / SQLAlchemyError ──► PersistenceError family      │
    └────────────────────────────────────────────────────────────────────┘

Usage:
    >>> class MyRepo(BaseRepository):
    ...     def get_by_id(self, id: int):
    ...         return self.query_one(
    ...             f"SELECT * FROM my_table WHERE id = {self.ph(1)}",
    ...             (id,),
    ...         )

Tags:
    repository, database, abstraction, portability
"""

from __future__ import annotations

import sqlite3
from typing import Any

from sqlalchemy import exc as sa_exc

from appcatalog.core.dialect import Dialect, SQLiteDialect
from appcatalog.core.errors import (
    DatabaseConnectionError,
    DuplicateKeyError,
    PersistenceError,
)
from appcatalog.core.logging import get_logger
from appcatalog.core.protocols import Connection

logger = get_logger(__name__)

_UNIQUE_MARKERS = ("unique", "duplicate key")
_CONNECT_MARKERS = ("unable to open database", "could not connect", "connection refused")


def translate_driver_error(exc: BaseException, sql: str | None = None) -> PersistenceError:
    """Map a driver exception onto the :class:`PersistenceError` family."""
    message = str(exc)
    lowered = message.lower()
    statement = " ".join(sql.split())[:200] if sql else None

    if isinstance(exc, (sqlite3.IntegrityError, sa_exc.IntegrityError)):
        if any(marker in lowered for marker in _UNIQUE_MARKERS):
            error: PersistenceError = DuplicateKeyError(f"Uniqueness violated: {message}", cause=exc)
        else:
            error = PersistenceError(f"Constraint violated: {message}", cause=exc)
    elif isinstance(exc, (sa_exc.DisconnectionError, sa_exc.InterfaceError)) or any(
        marker in lowered for marker in _CONNECT_MARKERS
    ):
        error = DatabaseConnectionError(f"Database unavailable: {message}", cause=exc)
    elif "locked" in lowered or "busy" in lowered:
        error = PersistenceError(f"Database busy: {message}", retryable=True, cause=exc)
    else:
        error = PersistenceError(f"Database error: {message}", cause=exc)

    if statement:
        error.with_context(statement=statement)
    return error


class BaseRepository:
    """Dialect-aware base class for data-access repositories.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
        dialect: SQL dialect to use.  Defaults to :class:`SQLiteDialect`.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self.conn = conn
        self.dialect: Dialect = dialect or SQLiteDialect()

    # -- Convenience shortcuts ---------------------------------------------

    def ph(self, count: int) -> str:
        """Shortcut for ``self.dialect.placeholders(count)``.

        Embed directly in f-strings:

            f"SELECT * FROM t WHERE id = {self.ph(1)}"
        """
        return self.dialect.placeholders(count)

    # -- Query helpers -----------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a statement and return the raw cursor/result."""
        try:
            return self.conn.execute(sql, params)
        except (sqlite3.Error, sa_exc.SQLAlchemyError) as exc:
            raise translate_driver_error(exc, sql) from exc

    def execute_many(self, sql: str, params: list[tuple]) -> Any:
        """Execute a statement with multiple parameter sets."""
        try:
            return self.conn.executemany(sql, params)
        except (sqlite3.Error, sa_exc.SQLAlchemyError) as exc:
            raise translate_driver_error(exc, sql) from exc

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a SELECT and return rows as dicts."""
        cursor = self.execute(sql, params)
        try:
            rows = cursor.fetchall()
        except (sqlite3.Error, sa_exc.SQLAlchemyError) as exc:
            raise translate_driver_error(exc, sql) from exc
        if not rows:
            return []

        # sqlite3.Row and bridge mappings both convert directly
        try:
            return [dict(row) for row in rows]
        except (TypeError, ValueError):
            pass

        if hasattr(cursor, "description") and cursor.description:
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=False)) for row in rows]

        return [{i: v for i, v in enumerate(row)} for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute a SELECT and return the first row as a dict (or None)."""
        results = self.query(sql, params)
        return results[0] if results else None

    def scalar(self, sql: str, params: tuple = (), default: Any = None) -> Any:
        """Execute a SELECT and return the first column of the first row."""
        row = self.query_one(sql, params)
        if row is None:
            return default
        return next(iter(row.values()))

    # -- Insert helpers ----------------------------------------------------

    def insert(self, table: str, data: dict[str, Any]) -> Any:
        """Insert a single row from a dict."""
        columns = list(data.keys())
        values = list(data.values())
        ph = self.dialect.placeholders(len(values))
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({ph})"
        return self.execute(sql, tuple(values))

    def insert_returning_id(self, table: str, data: dict[str, Any]) -> int:
        """Insert a single row and return its generated integer ``id``."""
        columns = list(data.keys())
        ph = self.dialect.placeholders(len(columns))
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({ph})"
        if self.dialect.supports_returning:
            row = self.query_one(f"{sql} RETURNING id", tuple(data.values()))
            if row is None:
                raise PersistenceError(f"INSERT into {table} returned no id")
            return int(row["id"])
        cursor = self.execute(sql, tuple(data.values()))
        if cursor.lastrowid is None:
            raise PersistenceError(f"INSERT into {table} returned no id")
        return int(cursor.lastrowid)

    def insert_many(self, table: str, rows: list[dict[str, Any]]) -> int:
        """Insert multiple rows from a list of dicts in one batched statement.

        Returns the number of rows inserted.
        """
        if not rows:
            return 0

        columns = list(rows[0].keys())
        ph = self.dialect.placeholders(len(columns))
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({ph})"
        params = [tuple(row[col] for col in columns) for row in rows]
        self.execute_many(sql, params)
        return len(rows)


__all__ = [
    "BaseRepository",
    "translate_driver_error",
]
