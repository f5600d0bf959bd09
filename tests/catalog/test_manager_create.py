"""Tests for ApplicationManager create flows."""

from __future__ import annotations

import threading
from unittest.mock import patch

import pytest

from appcatalog.catalog.lifecycle import LifecycleStateName
from appcatalog.catalog.models import Application, ApplicationRelease
from appcatalog.catalog.repositories import ApplicationRepository, ReleaseRepository, VisibilityRepository
from appcatalog.core.errors import NotFoundError, PersistenceError, ValidationError


class TestCreateApplication:
    def test_creates_application_with_initial_release(self, manager, make_app):
        created = manager.create_application(make_app("Notes", tags=["office"]), 1, "alice")

        assert created.id is not None
        assert created.tenant_id == 1
        assert created.created_by == "alice"
        assert created.is_free is True
        assert created.is_restricted is False
        [release] = created.releases
        assert release.id is not None
        assert release.uuid
        assert release.created_by == "alice"
        assert release.created_at is not None
        assert release.current_state == LifecycleStateName.CREATED.value

        stored = manager.get_application("Notes", "android", 1, "admin")
        assert stored.tags == ["office"]
        assert [r.uuid for r in stored.releases] == [release.uuid]
        states = manager.get_lifecycle_states(release.uuid, 1, "admin")
        assert [s.current_state for s in states] == ["CREATED"]

    def test_restricted_application_stores_roles(self, manager, make_app):
        created = manager.create_application(make_app("Payroll", restricted=True, roles=["manager"]), 1, "admin")
        stored = manager.get_application_by_id(created.id, 1, "admin")
        assert stored.is_restricted is True
        assert stored.unrestricted_roles == ["manager"]

    def test_restricted_without_roles_is_demoted(self, manager, make_app):
        created = manager.create_application(make_app("Open", restricted=True), 1, "admin")
        assert created.is_restricted is False
        assert manager.get_application_by_id(created.id, 1, "carol").is_restricted is False

    def test_roles_on_unrestricted_application_are_not_kept(self, manager, make_app):
        created = manager.create_application(make_app("Notes", restricted=False, roles=["sales"]), 1, "admin")
        assert created.unrestricted_roles == []
        assert manager.get_application_by_id(created.id, 1, "admin").unrestricted_roles == []

    def test_same_name_in_other_tenant(self, manager, make_app):
        manager.create_application(make_app("Notes"), 1, "admin")
        other = manager.create_application(make_app("Notes"), 2, "admin")
        assert other.tenant_id == 2


class TestCreateValidation:
    def test_none_payload(self, manager):
        with pytest.raises(ValidationError, match="payload cannot be empty"):
            manager.create_application(None, 1, "admin")

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"name": "  "}, "name cannot be empty"),
            ({"category": None}, "category can't be empty"),
            ({"type": None}, "type can't be empty"),
        ],
    )
    def test_missing_fields(self, manager, make_app, overrides, message):
        app = make_app("Notes")
        for key, value in overrides.items():
            setattr(app, key, value)
        with pytest.raises(ValidationError, match=message):
            manager.create_application(app, 1, "admin")

    def test_missing_username(self, manager, make_app):
        with pytest.raises(ValidationError, match="Username and tenant Id"):
            manager.create_application(make_app("Notes"), 1, "")

    def test_no_release(self, manager, make_app):
        app = make_app("Notes")
        app.releases = []
        with pytest.raises(ValidationError, match="should contain one application release"):
            manager.create_application(app, 1, "admin")

    def test_more_than_one_release(self, manager, make_app):
        app = make_app("Notes")
        app.releases.append(ApplicationRelease(version="2.0"))
        with pytest.raises(ValidationError, match="more than one"):
            manager.create_application(app, 1, "admin")
        assert manager.application_exists("Notes", "android", 1) is False

    def test_release_without_version(self, manager, make_app):
        app = make_app("Notes", version="")
        with pytest.raises(ValidationError, match="version cannot be empty"):
            manager.create_application(app, 1, "admin")

    def test_duplicate_name_case_insensitive(self, manager, make_app):
        manager.create_application(make_app("Notes"), 1, "admin")
        with pytest.raises(ValidationError, match="Already an application registered"):
            manager.create_application(make_app("NOTES", type="ios"), 1, "admin")

    def test_duplicate_check_ignores_partial_matches(self, manager, make_app):
        manager.create_application(make_app("Sticky Notes"), 1, "admin")
        created = manager.create_application(make_app("Notes"), 1, "admin")
        assert created.id is not None

    def test_unknown_device_type(self, manager, make_app):
        with pytest.raises(ValidationError, match="Invalid device type"):
            manager.create_application(make_app("Notes", type="blackberry"), 1, "admin")


class TestCreateAtomicity:
    def test_release_failure_rolls_back_application(self, manager, make_app):
        app = make_app("Notes", tags=["x"], restricted=True, roles=["manager"])
        with patch.object(ReleaseRepository, "create_release", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError, match="disk full"):
                manager.create_application(app, 1, "admin")

        assert app.id is None
        assert manager.application_exists("Notes", "android", 1) is False
        # nothing left behind that would block a retry
        assert manager.create_application(make_app("Notes"), 1, "admin").id is not None

    @pytest.mark.parametrize(
        ("repository", "method"),
        [(ApplicationRepository, "add_tags"), (VisibilityRepository, "add_unrestricted_roles")],
    )
    def test_tag_or_role_failure_rolls_back_application(self, manager, make_app, repository, method):
        app = make_app("Notes", tags=["x"], restricted=True, roles=["manager"])
        with patch.object(repository, method, side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError, match="disk full"):
                manager.create_application(app, 1, "admin")

        assert app.id is None
        assert manager.application_exists("Notes", "android", 1) is False

    def test_concurrent_creates_with_same_name(self, manager, make_app):
        results: list[Application] = []
        errors: list[Exception] = []
        barrier = threading.Barrier(6)

        def worker():
            payload = make_app("Race")
            barrier.wait()
            try:
                results.append(manager.create_application(payload, 1, "admin"))
            except ValidationError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 1
        assert len(errors) == 5
        assert all("Already an application" in e.message for e in errors)


class TestCreateRelease:
    def test_adds_release(self, manager, make_app):
        app = manager.create_application(make_app("Notes"), 1, "admin")
        release = manager.create_release(app.id, ApplicationRelease(version="2.0"), 1, "admin")
        assert release.current_state == "CREATED"
        versions = [r.version for r in manager.get_releases(app.id, 1, "admin")]
        assert versions == ["2.0", "1.0.0"]

    def test_duplicate_version(self, manager, make_app):
        app = manager.create_application(make_app("Notes"), 1, "admin")
        with pytest.raises(ValidationError, match="already exists"):
            manager.create_release(app.id, ApplicationRelease(version="1.0.0"), 1, "admin")

    def test_missing_version(self, manager):
        with pytest.raises(ValidationError):
            manager.create_release(1, ApplicationRelease(), 1, "admin")

    def test_hidden_application(self, manager, make_app):
        app = manager.create_application(make_app("Payroll", restricted=True, roles=["manager"]), 1, "admin")
        with pytest.raises(NotFoundError):
            manager.create_release(app.id, ApplicationRelease(version="2.0"), 1, "bob")
