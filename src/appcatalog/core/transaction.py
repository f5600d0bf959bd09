"""
Transaction scopes and the database scope factory.

Manifesto:
    A catalog operation owns exactly one connection for exactly as long as
    it runs.  ``TransactionScope`` makes that ownership explicit:

    - **open / close:** the connection is acquired and always released
    - **begin / commit / rollback:** boundaries are drawn by the caller
    - **rollback on error:** leaving the scope with an exception while a
      transaction is active rolls back; a failing rollback is logged and
      the original exception keeps propagating

Architecture:
    ::

        Database(url)                       (one per process)
            │ scope()
            ▼
        TransactionScope                    (one per operation)
            ├── open()               → connection acquired
            ├── begin_transaction()  → BEGIN
            ├── commit()/rollback()  → COMMIT / ROLLBACK
            └── close()              → rollback if still active, release

Examples:
    >>> db = Database("sqlite:///catalog.db")
    >>> db.initialize()
    >>> with db.scope() as scope:
    ...     with scope.transaction() as conn:
    ...         conn.execute("INSERT INTO device_types (name, tenant_id) VALUES (?, ?)", ("android", 1))

Tags:
    transaction, scope, connection, rollback, appcatalog
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import exc as sa_exc

from appcatalog.core.connection import ConnectionInfo, create_connection, parse_url
from appcatalog.core.dialect import Dialect
from appcatalog.core.errors import CatalogError, DatabaseConnectionError
from appcatalog.core.logging import get_logger
from appcatalog.core.protocols import Connection
from appcatalog.core.repository import translate_driver_error
from appcatalog.core.schema import apply_schema

logger = get_logger(__name__)

_DRIVER_ERRORS = (sqlite3.Error, sa_exc.SQLAlchemyError)


class TransactionScope:
    """Exclusive connection plus explicit transaction boundaries.

    Usable directly (``open()`` … ``close()``) or as a context manager.
    """

    def __init__(
        self,
        connect: Callable[[], Connection],
        dialect: Dialect,
        *,
        release: Callable[[Connection], None] | None = None,
    ) -> None:
        self._connect = connect
        self._release = release
        self.dialect = dialect
        self._conn: Connection | None = None
        self._active = False

    # -- lifecycle ---------------------------------------------------------

    def open(self) -> TransactionScope:
        if self._conn is not None:
            return self
        try:
            self._conn = self._connect()
        except CatalogError:
            raise
        except (*_DRIVER_ERRORS, OSError) as exc:
            raise DatabaseConnectionError(f"Cannot open database connection: {exc}", cause=exc) from exc
        return self

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            if self._active:
                self._safe_rollback()
        finally:
            conn, self._conn = self._conn, None
            if self._release is not None:
                self._release(conn)
            else:
                conn.close()

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("TransactionScope is not open")
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        return self._active

    # -- boundaries --------------------------------------------------------

    def begin_transaction(self) -> None:
        if self._active:
            raise RuntimeError("Transaction already active in this scope")
        try:
            self.connection.begin()
        except _DRIVER_ERRORS as exc:
            raise translate_driver_error(exc, "BEGIN") from exc
        self._active = True

    def commit(self) -> None:
        try:
            self.connection.commit()
        except _DRIVER_ERRORS as exc:
            raise translate_driver_error(exc, "COMMIT") from exc
        self._active = False

    def rollback(self) -> None:
        try:
            self.connection.rollback()
        except _DRIVER_ERRORS as exc:
            raise translate_driver_error(exc, "ROLLBACK") from exc
        finally:
            self._active = False

    def _safe_rollback(self) -> None:
        try:
            self.rollback()
        except Exception as exc:
            logger.exception("rollback_failed", error=str(exc))

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Begin, yield the connection, commit; roll back on any exception."""
        self.begin_transaction()
        try:
            yield self.connection
        except BaseException:
            self._safe_rollback()
            raise
        self.commit()

    # -- context manager ---------------------------------------------------

    def __enter__(self) -> TransactionScope:
        return self.open()

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()


class Database:
    """Scope factory bound to one database URL.

    File-backed SQLite and PostgreSQL get a fresh connection per scope.
    In-memory SQLite has to keep its single connection alive, so scopes
    borrow it one at a time.
    """

    def __init__(self, url: str | None = None, *, timeout: float = 5.0, echo: bool = False) -> None:
        self.url = url or ":memory:"
        self.timeout = timeout
        self._scheme, _target = parse_url(self.url)
        self._shared: Connection | None = None
        self._shared_lock = threading.Lock()
        self._sessions: Any = None

        if self._scheme == "postgresql":
            from appcatalog.core.orm.session import catalog_session_factory, create_catalog_engine

            self._sessions = catalog_session_factory(create_catalog_engine(self.url, echo=echo))
            self.info = ConnectionInfo(backend="postgresql", persistent=True, url=self.url)
        elif self._scheme == "memory":
            self._shared, self.info = create_connection(self.url, timeout=timeout)
        else:
            probe, self.info = create_connection(self.url, timeout=timeout)
            probe.close()

    @classmethod
    def from_settings(cls, settings: Any) -> Database:
        return cls(settings.database_url, timeout=settings.database_timeout, echo=settings.database_echo)

    @property
    def dialect(self) -> Dialect:
        return self.info.dialect

    def connect(self) -> Connection:
        """Open a new connection (not scoped; caller closes it)."""
        if self._sessions is not None:
            from appcatalog.core.orm.session import SAConnectionBridge

            return SAConnectionBridge(self._sessions())
        conn, _ = create_connection(self.url, timeout=self.timeout)
        return conn

    def scope(self) -> TransactionScope:
        """Return an unopened :class:`TransactionScope`."""
        if self._shared is not None:
            return TransactionScope(self._borrow_shared, self.dialect, release=self._return_shared)
        return TransactionScope(self.connect, self.dialect)

    def _borrow_shared(self) -> Connection:
        self._shared_lock.acquire()
        return self._shared  # type: ignore[return-value]

    def _return_shared(self, _conn: Connection) -> None:
        self._shared_lock.release()

    def initialize(self) -> list[str]:
        """Apply the catalog schema (idempotent)."""
        with self.scope() as scope:
            with scope.transaction() as conn:
                try:
                    return apply_schema(conn, self.dialect)
                except _DRIVER_ERRORS as exc:
                    raise translate_driver_error(exc, "DDL") from exc

    def dispose(self) -> None:
        if self._shared is not None:
            self._shared.close()
            self._shared = None

    def __repr__(self) -> str:
        return f"Database({self.info!r})"


__all__ = ["Database", "TransactionScope"]
