"""
Canonical protocol definitions for the catalog.

Every collaborator the catalog consumes is described here by shape, not by
inheritance: the database connection, role resolution against the tenant
identity store, the administrative authorization check, and device-type
lookup.

Architecture:
    ::

        protocols.py
        ├── Connection            — sync DB protocol (sqlite3, SQLAlchemy bridge)
        ├── RoleResolver          — roles_of(username, tenant_id) → set[str]
        ├── AuthorizationChecker  — is_authorized(username, tenant_id, permission)
        └── DeviceTypeLookup      — device_type_for(name, tenant_id) → DeviceType | None

Guardrails:
    ❌ DON'T: Look collaborators up from a global registry per call
    ✅ DO: Inject them into ApplicationManager once, at construction

Tags:
    protocol, connection, identity, device-type, contracts
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from appcatalog.catalog.models import DeviceType


@runtime_checkable
class Connection(Protocol):
    """Minimal synchronous connection interface used by every repository.

    ::

        ┌────────────────────────────────────────────────────────┐
        │ execute(sql, params)   → Execute single statement      │
        │ executemany(sql, list) → Execute for multiple params   │
        │ fetchone() / fetchall()→ Rows of the last statement    │
        │ begin()                → Open an explicit transaction  │
        │ commit() / rollback()  → End the transaction           │
        │ close()                → Release the connection        │
        └────────────────────────────────────────────────────────┘
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL statement for multiple parameter sets."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from last query."""
        ...

    def fetchall(self) -> list:
        """Fetch all rows from last query."""
        ...

    def begin(self) -> None:
        """Start an explicit transaction."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...

    def close(self) -> None:
        """Close the connection."""
        ...


@runtime_checkable
class RoleResolver(Protocol):
    """Lists the roles a user currently holds in a tenant's identity store."""

    def roles_of(self, username: str, tenant_id: int) -> set[str]:
        ...


@runtime_checkable
class AuthorizationChecker(Protocol):
    """Boolean permission check against the identity store."""

    def is_authorized(self, username: str, tenant_id: int, permission: str) -> bool:
        ...


@runtime_checkable
class DeviceTypeLookup(Protocol):
    """Resolves a device type by name for a tenant."""

    def device_type_for(self, name: str, tenant_id: int) -> DeviceType | None:
        ...


__all__ = [
    "Connection",
    "RoleResolver",
    "AuthorizationChecker",
    "DeviceTypeLookup",
]
