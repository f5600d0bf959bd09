"""Predicate builder for dynamically scoped queries.

Each predicate is stored together with the values it binds, so the
rendered ``WHERE`` fragment and its parameter tuple are produced in one
pass and can never disagree about order or count.

Examples:
    >>> from appcatalog.core.dialect import SQLiteDialect
    >>> preds = Predicates(SQLiteDialect())
    >>> preds.equals("tenant_id", 7).equals_ci("name", "Foo")
    Predicates(2)
    >>> preds.where()
    ('tenant_id = ? AND LOWER(name) = ?', (7, 'foo'))

Tags:
    query-builder, sql, pagination, search
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from appcatalog.core.dialect import Dialect

LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Escape ``%``, ``_`` and the escape character for a LIKE pattern."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


@dataclass(frozen=True, slots=True)
class PageSlice:
    """Pagination params used by list operations."""

    limit: int = 20
    offset: int = 0

    def clause(self, dialect: Dialect) -> tuple[str, tuple]:
        """Render ``LIMIT … OFFSET …`` with bound values."""
        return (
            f"LIMIT {dialect.placeholder(0)} OFFSET {dialect.placeholder(1)}",
            (self.limit, self.offset),
        )


class Predicates:
    """Ordered ``AND``-joined predicates paired with their bound values.

    Fragments are written with ``{}`` slots, one per bound value; slots are
    filled with the dialect's placeholder when rendered.
    """

    def __init__(self, dialect: Dialect) -> None:
        self._dialect = dialect
        self._parts: list[tuple[str, tuple[Any, ...]]] = []

    def add(self, fragment: str, *values: Any) -> Predicates:
        """Append a raw fragment with ``{}`` slots for *values*."""
        if fragment.count("{}") != len(values):
            raise ValueError(
                f"Fragment {fragment!r} has {fragment.count('{}')} slots "
                f"but {len(values)} values were given"
            )
        self._parts.append((fragment, values))
        return self

    def equals(self, column: str, value: Any) -> Predicates:
        return self.add(f"{column} = {{}}", value)

    def equals_ci(self, column: str, value: str) -> Predicates:
        """Case-insensitive equality."""
        return self.add(f"LOWER({column}) = {{}}", value.lower())

    def contains_ci(self, column: str, value: str) -> Predicates:
        """Case-insensitive substring match with LIKE wildcards escaped."""
        pattern = f"%{escape_like(value.lower())}%"
        return self.add(f"LOWER({column}) LIKE {{}} ESCAPE '{LIKE_ESCAPE}'", pattern)

    def in_(self, column: str, values: list[Any] | tuple[Any, ...]) -> Predicates:
        if not values:
            return self.add("1=0")
        slots = ", ".join("{}" for _ in values)
        return self.add(f"{column} IN ({slots})", *values)

    def where(self) -> tuple[str, tuple]:
        """Render ``(where_fragment, params)``; ``"1=1"`` when empty."""
        if not self._parts:
            return "1=1", ()
        rendered: list[str] = []
        params: list[Any] = []
        for fragment, values in self._parts:
            slots = [self._dialect.placeholder(len(params) + i) for i in range(len(values))]
            rendered.append(fragment.format(*slots))
            params.extend(values)
        return " AND ".join(rendered), tuple(params)

    def __len__(self) -> int:
        return len(self._parts)

    def __repr__(self) -> str:
        return f"Predicates({len(self._parts)})"


__all__ = ["LIKE_ESCAPE", "PageSlice", "Predicates", "escape_like"]
