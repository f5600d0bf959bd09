"""Connection factory: create database connections from URL strings.

Supported URL schemes
---------------------
==================  ==========================================  ============
Scheme              Example                                     Backend
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:``                   SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``                SQLite file
``(file path)``     ``./data/catalog.db``                        SQLite file
``postgresql``      ``postgresql://user:pw@host:port/db``        PostgreSQL
``postgres``        ``postgres://user:pw@host:port/db``          PostgreSQL
==================  ==========================================  ============

Anything else with a ``scheme://`` prefix is rejected with
:class:`~appcatalog.core.errors.ConfigError`.

Usage
-----
::

    from appcatalog.core.connection import create_connection

    conn, info = create_connection("sqlite:///catalog.db")
    print(info)
    # ConnectionInfo(backend='sqlite', persistent=True, path='/abs/catalog.db')
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from appcatalog.core.dialect import Dialect, get_dialect
from appcatalog.core.errors import ConfigError
from appcatalog.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a database connection."""

    backend: str
    """Backend identifier: ``"sqlite"`` or ``"postgresql"``."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The original URL or path used to create the connection."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""

    def __repr__(self) -> str:
        parts = [f"backend={self.backend!r}", f"persistent={self.persistent}"]
        if self.resolved_path:
            parts.append(f"path={self.resolved_path!r}")
        else:
            parts.append(f"url={_redact(self.url)!r}")
        return f"ConnectionInfo({', '.join(parts)})"

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_postgres(self) -> bool:
        return self.backend == "postgresql"

    @property
    def dialect(self) -> Dialect:
        return get_dialect(self.backend)


def _redact(url: str) -> str:
    """Hide the password part of ``scheme://user:pw@host`` URLs."""
    if "://" not in url or "@" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


# ── URL parsing ──────────────────────────────────────────────────────────


def parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into ``(scheme, target)``.

    ``scheme`` is one of ``"memory"``, ``"sqlite"``, ``"postgresql"``.

    Raises:
        ConfigError: For an unsupported ``scheme://`` URL.
    """
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == ":memory:":
                return "memory", ":memory:"
            return "sqlite", path

    if db.startswith(("postgresql://", "postgres://")):
        return "postgresql", db

    if db.startswith(("postgresql+", "postgres+")):
        # postgresql+psycopg://… keeps its driver suffix for SQLAlchemy
        return "postgresql", db

    if "://" in db:
        raise ConfigError(f"Unsupported database URL scheme: {_redact(db)!r}").with_context(
            operation="create_connection"
        )

    return "sqlite", db


# ── Backends ─────────────────────────────────────────────────────────────


def _create_sqlite(target: str, timeout: float) -> tuple[Any, ConnectionInfo]:
    from appcatalog.core.sqlite_conn import SqliteConnection

    if target == ":memory:":
        return SqliteConnection(":memory:", timeout=timeout), ConnectionInfo(
            backend="sqlite", persistent=False, url=":memory:"
        )

    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    resolved = str(path.resolve())
    conn = SqliteConnection(resolved, timeout=timeout)
    info = ConnectionInfo(backend="sqlite", persistent=True, url=target, resolved_path=resolved)
    return conn, info


def _create_postgresql(url: str) -> tuple[Any, ConnectionInfo]:
    from appcatalog.core.orm.session import (
        CatalogSession,
        SAConnectionBridge,
        create_catalog_engine,
    )

    engine = create_catalog_engine(url)
    conn = SAConnectionBridge(CatalogSession(bind=engine))
    return conn, ConnectionInfo(backend="postgresql", persistent=True, url=url)


# ── Main factory ─────────────────────────────────────────────────────────


def create_connection(db: str | None = None, *, timeout: float = 5.0) -> tuple[Any, ConnectionInfo]:
    """Create a database connection from a URL, path, or keyword.

    Returns:
        ``(conn, info)`` where ``conn`` satisfies the ``Connection``
        protocol and ``info`` describes the backend.

    Raises:
        ConfigError: Unsupported URL scheme.
    """
    scheme, target = parse_url(db)
    if scheme == "postgresql":
        conn, info = _create_postgresql(target)
    else:
        conn, info = _create_sqlite(target, timeout)
    logger.debug("connection_created", backend=info.backend, persistent=info.persistent)
    return conn, info


__all__ = [
    "ConnectionInfo",
    "create_connection",
    "parse_url",
]
