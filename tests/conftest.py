"""
Shared pytest fixtures for appcatalog tests.

This module provides:
- A quiet structlog configuration for every test
- A file-backed, initialised catalog database per test
- A static identity store with an administrator and role-holding users
- An ``ApplicationManager`` wired to all of the above
- Payload builders for applications and releases

Usage:
    def test_something(manager, make_app):
        created = manager.create_application(make_app("notes"), 1, "alice")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest
import structlog

from appcatalog.catalog import (
    Application,
    ApplicationManager,
    ApplicationRelease,
    DatabaseDeviceTypeLookup,
    StaticIdentityStore,
)
from appcatalog.catalog.repositories import DeviceTypeRepository
from appcatalog.core.settings import CatalogSettings, clear_settings_cache
from appcatalog.core.transaction import Database

ADMIN_PERMISSION = "/permission/admin/manage"


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without an explicit marker as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Logging / settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _quiet_logging():
    """Route structlog into a ReturnLogger so nothing reaches stdout."""
    structlog.configure(
        processors=[structlog.processors.KeyValueRenderer()],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """Drop cached settings and any APPCATALOG_* variables from the host."""
    import os

    for key in list(os.environ):
        if key.startswith("APPCATALOG_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "catalog.db"


@pytest.fixture
def database(db_path: Path) -> Database:
    """Initialised file database with an ``android`` device type in tenants 1 and 2."""
    db = Database(f"sqlite:///{db_path}")
    db.initialize()
    with db.scope() as scope:
        with scope.transaction() as conn:
            repo = DeviceTypeRepository(conn, scope.dialect)
            repo.add("android", 1)
            repo.add("ios", 1)
            repo.add("android", 2)
    yield db
    db.dispose()


# =============================================================================
# Identity / manager
# =============================================================================


@pytest.fixture
def identity() -> StaticIdentityStore:
    store = StaticIdentityStore()
    store.add_user("admin", 1, roles=["admin"], permissions=[ADMIN_PERMISSION])
    store.add_user("alice", 1, roles=["manager"])
    store.add_user("bob", 1, roles=["sales"])
    store.add_user("carol", 1)
    store.add_user("admin", 2, roles=["admin"], permissions=[ADMIN_PERMISSION])
    return store


@pytest.fixture
def settings() -> CatalogSettings:
    return CatalogSettings(_env_file=None)


@pytest.fixture
def manager(database: Database, identity: StaticIdentityStore, settings: CatalogSettings) -> ApplicationManager:
    return ApplicationManager(database, identity, identity, DatabaseDeviceTypeLookup(database), settings=settings)


# =============================================================================
# Payload builders
# =============================================================================


@pytest.fixture
def make_app():
    """Build a create payload with one release."""

    def _make(
        name: str = "notes",
        *,
        type: str = "android",
        category: str = "productivity",
        version: str = "1.0.0",
        tags: list[str] | None = None,
        roles: list[str] | None = None,
        restricted: bool | None = None,
        **extra: Any,
    ) -> Application:
        return Application(
            name=name,
            type=type,
            category=category,
            is_restricted=restricted,
            tags=list(tags or []),
            unrestricted_roles=list(roles or []),
            releases=[ApplicationRelease(version=version, release_type="production", price=0.0)],
            **extra,
        )

    return _make
