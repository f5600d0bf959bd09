"""SQL dialect abstraction for database-agnostic repository code.

Repositories use ``Dialect`` methods to generate SQL fragments
(placeholders, DDL types, case folding) without referencing a driver.

Architecture::

    Repository code:
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = f"INSERT INTO t (a,b) VALUES ({d.placeholders(2)})"    │
    │  conn.execute(sql, params)                                     │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
              ┌──────────┐          ┌──────────────┐
              │ SQLite   │          │ PostgreSQL   │
              │ ?, ?, ?  │          │ %s, %s, %s   │
              │ lastrowid│          │ RETURNING id │
              └──────────┘          └──────────────┘

Examples:
    >>> from appcatalog.core.dialect import get_dialect, SQLiteDialect
    >>> d = SQLiteDialect()
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> get_dialect("postgres").placeholder(0)
    '%s'

Tags:
    dialect, sql, abstraction, portability, database
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment valid for the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    @property
    def supports_returning(self) -> bool:
        """Whether ``INSERT … RETURNING id`` yields the generated key."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def auto_increment(self) -> str:
        """DDL fragment for an auto-incrementing integer primary key."""
        ...

    def boolean_type(self) -> str:
        """DDL column type used for boolean flags."""
        ...

    def boolean_true(self) -> str:
        """Literal SQL value for boolean ``True``."""
        ...

    def boolean_false(self) -> str:
        """Literal SQL value for boolean ``False``."""
        ...


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, ``cursor.lastrowid`` keys."""

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def supports_returning(self) -> bool:
        return False

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def boolean_type(self) -> str:
        return "INTEGER"

    def boolean_true(self) -> str:
        return "1"

    def boolean_false(self) -> str:
        return "0"

    def __repr__(self) -> str:
        return "SQLiteDialect()"


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders, ``RETURNING id`` keys."""

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def supports_returning(self) -> bool:
        return True

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def auto_increment(self) -> str:
        return "SERIAL PRIMARY KEY"

    def boolean_type(self) -> str:
        return "BOOLEAN"

    def boolean_true(self) -> str:
        return "TRUE"

    def boolean_false(self) -> str:
        return "FALSE"

    def __repr__(self) -> str:
        return "PostgreSQLDialect()"


_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (third-party drivers, test doubles)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "get_dialect",
    "register_dialect",
]
