"""Catalog schema DDL.

All statements are ``CREATE … IF NOT EXISTS`` so :func:`apply_schema` is
idempotent.  Column types that differ between backends come from the
:class:`~appcatalog.core.dialect.Dialect`.

Tables::

    device_types ◄── applications ◄── application_tags
                          ▲   ▲
                          │   └────── unrestricted_roles
                          │
                   application_releases ◄── lifecycle_states

Tags:
    schema, ddl, sqlite, postgresql
"""

from __future__ import annotations

from appcatalog.core.dialect import Dialect
from appcatalog.core.logging import get_logger
from appcatalog.core.protocols import Connection

logger = get_logger(__name__)

TABLES = (
    "device_types",
    "applications",
    "application_tags",
    "unrestricted_roles",
    "application_releases",
    "lifecycle_states",
)


def schema_statements(dialect: Dialect) -> list[str]:
    """Return the ordered DDL statements for *dialect*."""
    pk = dialect.auto_increment()
    flag = dialect.boolean_type()
    true, false = dialect.boolean_true(), dialect.boolean_false()
    return [
        f"""CREATE TABLE IF NOT EXISTS device_types (
            id {pk},
            name TEXT NOT NULL,
            tenant_id INTEGER NOT NULL
        )""",
        "CREATE UNIQUE INDEX IF NOT EXISTS ux_device_types_tenant_name "
        "ON device_types (tenant_id, name)",
        f"""CREATE TABLE IF NOT EXISTS applications (
            id {pk},
            name TEXT NOT NULL,
            type TEXT NOT NULL,
            category TEXT,
            is_free {flag} NOT NULL DEFAULT {true},
            payment_currency TEXT,
            is_restricted {flag} NOT NULL DEFAULT {false},
            tenant_id INTEGER NOT NULL,
            device_type_id INTEGER REFERENCES device_types (id),
            created_by TEXT
        )""",
        "CREATE UNIQUE INDEX IF NOT EXISTS ux_applications_tenant_name "
        "ON applications (tenant_id, LOWER(name))",
        f"""CREATE TABLE IF NOT EXISTS application_tags (
            id {pk},
            tag TEXT NOT NULL,
            tenant_id INTEGER NOT NULL,
            application_id INTEGER NOT NULL REFERENCES applications (id)
        )""",
        "CREATE INDEX IF NOT EXISTS ix_application_tags_app ON application_tags (application_id)",
        f"""CREATE TABLE IF NOT EXISTS unrestricted_roles (
            id {pk},
            role TEXT NOT NULL,
            tenant_id INTEGER NOT NULL,
            application_id INTEGER NOT NULL REFERENCES applications (id)
        )""",
        "CREATE INDEX IF NOT EXISTS ix_unrestricted_roles_app ON unrestricted_roles (application_id)",
        f"""CREATE TABLE IF NOT EXISTS application_releases (
            id {pk},
            application_id INTEGER NOT NULL REFERENCES applications (id),
            tenant_id INTEGER NOT NULL,
            version TEXT NOT NULL,
            uuid TEXT NOT NULL UNIQUE,
            release_type TEXT,
            price REAL NOT NULL DEFAULT 0,
            stored_location TEXT,
            banner_location TEXT,
            screenshot_1 TEXT,
            screenshot_2 TEXT,
            screenshot_3 TEXT,
            hash TEXT,
            shared_with_all_tenants {flag} NOT NULL DEFAULT {false},
            meta_info TEXT,
            created_by TEXT,
            created_at TEXT,
            published_by TEXT,
            published_at TEXT,
            stars INTEGER NOT NULL DEFAULT 0
        )""",
        "CREATE INDEX IF NOT EXISTS ix_application_releases_app ON application_releases (application_id)",
        f"""CREATE TABLE IF NOT EXISTS lifecycle_states (
            id {pk},
            release_id INTEGER NOT NULL REFERENCES application_releases (id),
            current_state TEXT NOT NULL,
            changed_by TEXT,
            changed_at TEXT
        )""",
        "CREATE INDEX IF NOT EXISTS ix_lifecycle_states_release ON lifecycle_states (release_id)",
    ]


def apply_schema(conn: Connection, dialect: Dialect) -> list[str]:
    """Create every catalog table on *conn*. Returns the table names."""
    for statement in schema_statements(dialect):
        conn.execute(statement)
    logger.info("schema_applied", tables=len(TABLES), dialect=dialect.name)
    return list(TABLES)


__all__ = ["TABLES", "apply_schema", "schema_statements"]
