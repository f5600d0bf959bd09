"""Tests for appcatalog.core.schema -- DDL for both dialects."""

from __future__ import annotations

import sqlite3

import pytest

from appcatalog.core.dialect import PostgreSQLDialect, SQLiteDialect
from appcatalog.core.schema import TABLES, apply_schema, schema_statements
from appcatalog.core.sqlite_conn import SqliteConnection


@pytest.fixture
def conn():
    c = SqliteConnection(":memory:")
    apply_schema(c, SQLiteDialect())
    yield c
    c.close()


class TestSchemaStatements:
    def test_idempotent_ddl(self):
        assert all("IF NOT EXISTS" in stmt for stmt in schema_statements(SQLiteDialect()))

    def test_postgres_types(self):
        ddl = "\n".join(schema_statements(PostgreSQLDialect()))
        assert "SERIAL PRIMARY KEY" in ddl
        assert "BOOLEAN NOT NULL DEFAULT TRUE" in ddl
        assert "AUTOINCREMENT" not in ddl


class TestApplySchema:
    def test_creates_every_table(self, conn):
        names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()}
        assert set(TABLES) <= names

    def test_reapply_is_noop(self, conn):
        assert apply_schema(conn, SQLiteDialect()) == list(TABLES)

    def test_unique_application_name_per_tenant(self, conn):
        conn.execute("INSERT INTO device_types (name, tenant_id) VALUES ('android', 1)")
        insert = "INSERT INTO applications (name, type, tenant_id, device_type_id) VALUES (?, ?, ?, 1)"
        conn.execute(insert, ("Notes", "android", 1))
        conn.execute(insert, ("Notes", "android", 2))
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(insert, ("Notes", "android", 1))

    @pytest.mark.parametrize(("name", "type"), [("notes", "android"), ("NOTES", "android"), ("Notes", "ios")])
    def test_name_index_ignores_case_and_type(self, conn, name, type):
        conn.execute("INSERT INTO device_types (name, tenant_id) VALUES ('android', 1)")
        insert = "INSERT INTO applications (name, type, tenant_id, device_type_id) VALUES (?, ?, ?, 1)"
        conn.execute(insert, ("Notes", "android", 1))
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(insert, (name, type, 1))

    def test_flag_defaults(self, conn):
        conn.execute("INSERT INTO device_types (name, tenant_id) VALUES ('android', 1)")
        conn.execute("INSERT INTO applications (name, type, tenant_id) VALUES ('a', 'android', 1)")
        row = conn.execute("SELECT is_free, is_restricted FROM applications").fetchone()
        assert (row["is_free"], row["is_restricted"]) == (1, 0)

    def test_release_uuid_unique(self, conn):
        conn.execute("INSERT INTO device_types (name, tenant_id) VALUES ('android', 1)")
        conn.execute("INSERT INTO applications (name, type, tenant_id) VALUES ('a', 'android', 1)")
        insert = "INSERT INTO application_releases (application_id, tenant_id, version, uuid) VALUES (1, 1, ?, 'u-1')"
        conn.execute(insert, ("1.0",))
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(insert, ("2.0",))
