"""
Structured error types for the application catalog.

Every failure that leaves the catalog core is one of a small, typed set of
errors. Each carries a category, a retry hint, structured context and the
chained driver/backend exception, so callers can route, log and decide on
retries without string-matching messages.

Manifesto:
    - **Typed taxonomy:** Validation, not-found, persistence, identity backend
    - **No leaking shapes:** Driver exceptions never cross the repository boundary
    - **Rich context:** tenant, user, application and release ids ride along
    - **Error chaining:** The original exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                        CatalogError                          │
        │   (category, retryable, context, cause)                      │
        ├──────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ValidationError     NotFoundError     ConfigError           │
        │  (VALIDATION)        (NOT_FOUND)       (CONFIG)              │
        │                                                              │
        │  PersistenceError                AuthorizationBackendError   │
        │  (DATABASE)                      (AUTH, retryable)           │
        │       │                                                      │
        │  DuplicateKeyError                                           │
        │  DatabaseConnectionError (retryable)                         │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = NotFoundError("Application 42 does not exist")
    >>> error.category
    <ErrorCategory.NOT_FOUND: 'NOT_FOUND'>
    >>> error.with_context(tenant_id=1, application_id=42).to_dict()["context"]
    {'tenant_id': 1, 'application_id': 42}

Tags:
    error-handling, exception-hierarchy, appcatalog, persistence
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    DATABASE = "DATABASE"
    AUTH = "AUTH"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Only non-``None`` fields are serialised by :meth:`to_dict`; anything
    without a dedicated field goes into ``metadata``.
    """

    tenant_id: int | None = None
    username: str | None = None
    application_id: int | None = None
    release_uuid: str | None = None
    operation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["tenant_id", "username", "application_id", "release_uuid", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class CatalogError(Exception):
    """Base exception for all catalog errors.

    Subclasses set ``default_category`` and ``default_retryable``; both
    can be overridden per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CatalogError:
        """Add context to this error (fluent API).

        Usage:
            raise NotFoundError("gone").with_context(tenant_id=1, application_id=7)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# INPUT ERRORS
# =============================================================================


class ValidationError(CatalogError):
    """Malformed input, duplicate name, or an illegal state transition."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class NotFoundError(CatalogError):
    """Referenced application or release does not exist (or is not visible)."""

    default_category = ErrorCategory.NOT_FOUND
    default_retryable = False


class ConfigError(CatalogError):
    """Settings cannot be turned into a working component."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# BACKEND ERRORS
# =============================================================================


class PersistenceError(CatalogError):
    """Storage or connectivity failure, translated from the driver."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class DuplicateKeyError(PersistenceError):
    """A uniqueness constraint rejected the write."""

    pass


class DatabaseConnectionError(PersistenceError):
    """The database could not be reached."""

    default_retryable = True


class AuthorizationBackendError(CatalogError):
    """The identity store could not answer a role or permission query."""

    default_category = ErrorCategory.AUTH
    default_retryable = True


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, CatalogError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "CatalogError",
    "ValidationError",
    "NotFoundError",
    "ConfigError",
    "PersistenceError",
    "DuplicateKeyError",
    "DatabaseConnectionError",
    "AuthorizationBackendError",
    "is_retryable",
]
