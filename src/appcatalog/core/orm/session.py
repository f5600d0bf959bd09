"""SQLAlchemy engine factory, session class, and Connection bridge.

Manifesto:
    Repositories are written against one ``Connection`` protocol.  On
    PostgreSQL that protocol is served by a SQLAlchemy ``Session``;
    ``SAConnectionBridge`` adapts the session so the same repository code
    runs unchanged on both backends.

This module provides:

* ``create_catalog_engine``  -- Create a SA engine from a URL.
* ``CatalogSession``         -- A pre-configured ``Session`` subclass.
* ``SAConnectionBridge``     -- Wraps a SA ``Session`` to satisfy the
  ``appcatalog.core.protocols.Connection`` protocol.

Tags:
    orm, sqlalchemy, session, engine, bridge, connection
"""

from __future__ import annotations

import itertools
import re
from collections.abc import Sequence
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

# Positional placeholders used by the dialects: ``?`` (qmark) and ``%s`` (format)
_POSITIONAL = re.compile(r"\?|%s")


def create_catalog_engine(
    url: str = "sqlite:///appcatalog.db",
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    pool_timeout: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, etc.)
    echo:
        If ``True``, log all SQL to stdout.
    pool_size, max_overflow, pool_timeout:
        Connection pool parameters (ignored for SQLite).
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    pool_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow
    if pool_timeout is not None:
        pool_kwargs["pool_timeout"] = pool_timeout

    return _sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs)


class CatalogSession(Session):
    """Pre-configured session with ``expire_on_commit=False``."""

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def catalog_session_factory(engine: Engine) -> sessionmaker[CatalogSession]:
    """Return a ``sessionmaker`` bound to *engine* that produces ``CatalogSession`` instances."""
    return sessionmaker(bind=engine, class_=CatalogSession, expire_on_commit=False)


def to_named_binds(sql: str, parameters: Sequence[Any]) -> tuple[str, dict[str, Any]]:
    """Rewrite positional ``?`` / ``%s`` placeholders into ``:p0, :p1, …``.

    Raises:
        ValueError: If the placeholder count does not match *parameters*.
    """
    counter = itertools.count()
    rewritten = _POSITIONAL.sub(lambda _m: f":p{next(counter)}", sql)
    used = next(counter)
    if used != len(parameters):
        raise ValueError(f"SQL has {used} placeholders but {len(parameters)} parameters were given")
    return rewritten, {f"p{i}": v for i, v in enumerate(parameters)}


class SAConnectionBridge:
    """Adapter that makes a SQLAlchemy ``Session`` look like ``Connection``.

    Implements: ``execute``, ``executemany``, ``fetchone``, ``fetchall``,
    ``begin``, ``commit``, ``rollback``, ``close``.  Rows come back as
    plain dicts keyed by column name.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._last_result: Any = None

    # --- execute / executemany ---

    def execute(self, sql: str, parameters: Sequence[Any] | None = None) -> SAConnectionBridge:
        if parameters:
            rewritten, mapping = to_named_binds(sql, parameters)
            self._last_result = self._session.execute(text(rewritten), mapping)
        else:
            self._last_result = self._session.execute(text(sql))
        return self

    def executemany(self, sql: str, seq_of_parameters: Sequence[Sequence[Any]]) -> SAConnectionBridge:
        if not seq_of_parameters:
            return self
        rewritten, _ = to_named_binds(sql, seq_of_parameters[0])
        batch = [to_named_binds(sql, params)[1] for params in seq_of_parameters]
        self._last_result = self._session.execute(text(rewritten), batch)
        return self

    # --- fetch ---

    def _has_rows(self) -> bool:
        return self._last_result is not None and self._last_result.returns_rows

    def fetchone(self) -> dict[str, Any] | None:
        if not self._has_rows():
            return None
        row = self._last_result.fetchone()
        return dict(row._mapping) if row is not None else None

    def fetchall(self) -> list[dict[str, Any]]:
        if not self._has_rows():
            return []
        return [dict(r._mapping) for r in self._last_result.fetchall()]

    # --- transaction ---

    def begin(self) -> None:
        if not self._session.in_transaction():
            self._session.begin()

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def close(self) -> None:
        self._session.close()

    # --- properties ---

    @property
    def lastrowid(self) -> int | None:
        if self._last_result is None:
            return None
        return getattr(self._last_result, "lastrowid", None)

    @property
    def description(self) -> list[tuple[str, ...]] | None:
        """DB-API 2.0 compatible description from the last result."""
        if not self._has_rows():
            return None
        keys = list(self._last_result.keys())
        return [(k, None, None, None, None, None, None) for k in keys]

    @property
    def session(self) -> Session:
        """Access the underlying SA session."""
        return self._session


__all__ = [
    "CatalogSession",
    "SAConnectionBridge",
    "catalog_session_factory",
    "create_catalog_engine",
    "to_named_binds",
]
