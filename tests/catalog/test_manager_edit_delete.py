"""Tests for ApplicationManager edit and delete (administrators only)."""

from __future__ import annotations

import pytest

from appcatalog.catalog.models import Application
from appcatalog.core.errors import NotFoundError, ValidationError


@pytest.fixture
def payroll(manager, make_app):
    return manager.create_application(
        make_app("Payroll", restricted=True, roles=["manager"], tags=["hr"]), 1, "admin"
    )


class TestEditApplication:
    def test_non_admin_gets_not_found(self, manager, payroll):
        with pytest.raises(NotFoundError):
            manager.edit_application(Application(id=payroll.id, category="finance"), 1, "alice")

    def test_only_supplied_fields_change(self, manager, payroll):
        edited = manager.edit_application(Application(id=payroll.id, category="finance"), 1, "admin")
        assert edited.category == "finance"
        assert edited.name == "Payroll"
        assert edited.is_restricted is True
        assert edited.unrestricted_roles == ["manager"]
        assert edited.tags == ["hr"]
        assert len(edited.releases) == 1

    def test_edit_by_name_and_type(self, manager, payroll):
        edited = manager.edit_application(Application(name="Payroll", type="android", is_free=False), 1, "admin")
        assert edited.id == payroll.id
        assert edited.is_free is False

    def test_replace_roles(self, manager, payroll):
        edited = manager.edit_application(
            Application(id=payroll.id, unrestricted_roles=["sales", "finance"]), 1, "admin"
        )
        assert edited.unrestricted_roles == ["sales", "finance"]
        assert manager.get_application_by_id(payroll.id, 1, "alice") is None
        assert manager.get_application_by_id(payroll.id, 1, "bob") is not None

    def test_lifting_restriction_removes_roles(self, manager, payroll):
        edited = manager.edit_application(Application(id=payroll.id, is_restricted=False), 1, "admin")
        assert edited.is_restricted is False
        assert edited.unrestricted_roles == []
        assert manager.get_application_by_id(payroll.id, 1, "carol") is not None

    def test_restricting_without_roles_is_demoted(self, manager, make_app):
        notes = manager.create_application(make_app("Notes"), 1, "admin")
        edited = manager.edit_application(Application(id=notes.id, is_restricted=True), 1, "admin")
        assert edited.is_restricted is False

    def test_restricting_with_roles(self, manager, make_app):
        notes = manager.create_application(make_app("Notes"), 1, "admin")
        edited = manager.edit_application(
            Application(id=notes.id, is_restricted=True, unrestricted_roles=["sales"]), 1, "admin"
        )
        assert edited.is_restricted is True
        assert edited.unrestricted_roles == ["sales"]

    def test_rename_to_existing_name(self, manager, make_app, payroll):
        manager.create_application(make_app("Notes"), 1, "admin")
        with pytest.raises(ValidationError, match="Already an application"):
            manager.edit_application(Application(id=payroll.id, name="Notes"), 1, "admin")
        assert manager.get_application_by_id(payroll.id, 1, "admin").name == "Payroll"

    def test_rename_to_case_variant_of_existing_name(self, manager, make_app, payroll):
        manager.create_application(make_app("Notes"), 1, "admin")
        with pytest.raises(ValidationError, match="Already an application"):
            manager.edit_application(Application(id=payroll.id, name="notes"), 1, "admin")
        assert manager.get_application_by_id(payroll.id, 1, "admin").name == "Payroll"

    def test_rename_changing_only_case(self, manager, payroll):
        edited = manager.edit_application(Application(id=payroll.id, name="PAYROLL"), 1, "admin")
        assert edited.name == "PAYROLL"

    def test_type_change_rebinds_device_type(self, manager, payroll):
        edited = manager.edit_application(Application(id=payroll.id, type="ios"), 1, "admin")
        assert edited.type == "ios"
        assert edited.device_type_id == 2

    def test_unknown_type_rejected(self, manager, payroll):
        with pytest.raises(ValidationError, match="Invalid device type"):
            manager.edit_application(Application(id=payroll.id, type="blackberry"), 1, "admin")
        stored = manager.get_application_by_id(payroll.id, 1, "admin")
        assert (stored.type, stored.device_type_id) == ("android", 1)

    def test_missing_application(self, manager):
        with pytest.raises(NotFoundError):
            manager.edit_application(Application(id=404, category="x"), 1, "admin")

    def test_requires_identifier(self, manager):
        with pytest.raises(ValidationError):
            manager.edit_application(Application(category="x"), 1, "admin")


class TestDeleteApplication:
    def test_non_admin_gets_not_found(self, manager, payroll):
        with pytest.raises(NotFoundError):
            manager.delete_application(payroll.id, 1, "alice")
        assert manager.verify_application_existence_by_id(payroll.id, 1)

    def test_deletes_everything(self, manager, payroll):
        uuid = payroll.releases[0].uuid
        manager.change_lifecycle(uuid, "PUBLISHED", 1, "admin")
        manager.delete_application(payroll.id, 1, "admin")

        assert manager.verify_application_existence_by_id(payroll.id, 1) is False
        assert manager.get_application_by_release(uuid, 1, "admin") is None
        assert manager.get_uuid_of_latest_release(payroll.id) is None

    def test_name_reusable_after_delete(self, manager, make_app, payroll):
        manager.delete_application(payroll.id, 1, "admin")
        again = manager.create_application(make_app("Payroll"), 1, "admin")
        assert again.id is not None

    def test_missing(self, manager):
        with pytest.raises(NotFoundError):
            manager.delete_application(404, 1, "admin")

    def test_other_tenant(self, manager, payroll):
        with pytest.raises(NotFoundError):
            manager.delete_application(payroll.id, 2, "admin")
