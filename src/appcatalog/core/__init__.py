"""Catalog core -- domain-agnostic persistence and runtime primitives.

Architecture::

    Layer 1 -- Errors & Contracts
        errors.py          Structured error hierarchy (CatalogError, ...)
        protocols.py       Connection, RoleResolver, AuthorizationChecker, DeviceTypeLookup
        timestamps.py      UTC helpers

    Layer 2 -- Database
        dialect.py         SQLite / PostgreSQL dialects
        query.py           Predicate builder + PageSlice
        repository.py      BaseRepository + driver error translation
        sqlite_conn.py     sqlite3 adapter with explicit BEGIN
        orm/               SQLAlchemy engine + Connection bridge
        connection.py      Connection factory (create_connection)
        transaction.py     TransactionScope + Database scope factory
        schema.py          Catalog DDL

    Layer 3 -- Cross-Cutting Concerns
        logging.py         Structured logging (structlog)
        settings.py        CatalogSettings (pydantic-settings)
"""

from appcatalog.core.dialect import Dialect, PostgreSQLDialect, SQLiteDialect, get_dialect
from appcatalog.core.errors import (
    AuthorizationBackendError,
    CatalogError,
    ConfigError,
    DatabaseConnectionError,
    DuplicateKeyError,
    ErrorCategory,
    ErrorContext,
    NotFoundError,
    PersistenceError,
    ValidationError,
    is_retryable,
)
from appcatalog.core.logging import LogContext, configure_logging, get_logger
from appcatalog.core.query import PageSlice, Predicates
from appcatalog.core.repository import BaseRepository
from appcatalog.core.settings import CatalogSettings, get_settings
from appcatalog.core.transaction import Database, TransactionScope

__all__ = [
    "AuthorizationBackendError",
    "BaseRepository",
    "CatalogError",
    "CatalogSettings",
    "ConfigError",
    "Database",
    "DatabaseConnectionError",
    "Dialect",
    "DuplicateKeyError",
    "ErrorCategory",
    "ErrorContext",
    "LogContext",
    "NotFoundError",
    "PageSlice",
    "PersistenceError",
    "PostgreSQLDialect",
    "Predicates",
    "SQLiteDialect",
    "TransactionScope",
    "ValidationError",
    "configure_logging",
    "get_dialect",
    "get_logger",
    "get_settings",
    "is_retryable",
]
