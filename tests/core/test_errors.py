"""Tests for appcatalog.core.errors module."""

import pytest

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


class TestErrorContext:
    def test_empty_context(self):
        ctx = ErrorContext()
        assert ctx.tenant_id is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_includes_set_fields_only(self):
        ctx = ErrorContext(tenant_id=3, username="alice", metadata={"statement": "SELECT 1"})
        d = ctx.to_dict()
        assert d == {"tenant_id": 3, "username": "alice", "statement": "SELECT 1"}
        assert "release_uuid" not in d


class TestCategories:
    @pytest.mark.parametrize(
        "cls, category",
        [
            (ValidationError, ErrorCategory.VALIDATION),
            (NotFoundError, ErrorCategory.NOT_FOUND),
            (ConfigError, ErrorCategory.CONFIG),
            (PersistenceError, ErrorCategory.DATABASE),
            (DuplicateKeyError, ErrorCategory.DATABASE),
            (DatabaseConnectionError, ErrorCategory.DATABASE),
            (AuthorizationBackendError, ErrorCategory.AUTH),
        ],
    )
    def test_default_category(self, cls, category):
        assert cls("x").category is category

    def test_base_is_internal(self):
        assert CatalogError("x").category is ErrorCategory.INTERNAL

    def test_hierarchy(self):
        assert issubclass(DuplicateKeyError, PersistenceError)
        assert issubclass(DatabaseConnectionError, PersistenceError)
        assert issubclass(AuthorizationBackendError, CatalogError)


class TestWithContext:
    def test_known_fields_set_directly(self):
        err = NotFoundError("gone").with_context(tenant_id=1, application_id=7)
        assert err.context.tenant_id == 1
        assert err.context.application_id == 7

    def test_unknown_fields_go_to_metadata(self):
        err = ValidationError("bad").with_context(from_state="CREATED")
        assert err.context.metadata == {"from_state": "CREATED"}

    def test_returns_same_instance(self):
        err = ValidationError("bad")
        assert err.with_context(username="bob") is err


class TestToDict:
    def test_serialises_cause_and_context(self):
        cause = RuntimeError("driver exploded")
        err = PersistenceError("write failed", cause=cause).with_context(tenant_id=2)
        d = err.to_dict()
        assert d["error_type"] == "PersistenceError"
        assert d["category"] == "DATABASE"
        assert d["retryable"] is False
        assert d["context"] == {"tenant_id": 2}
        assert d["cause"] == "driver exploded"
        assert err.__cause__ is cause

    def test_omits_empty_context(self):
        assert "context" not in ValidationError("x").to_dict()

    def test_repr(self):
        assert repr(NotFoundError("nope")) == "NotFoundError('nope', category=NOT_FOUND)"


class TestRetryable:
    def test_defaults(self):
        assert is_retryable(DatabaseConnectionError("down")) is True
        assert is_retryable(AuthorizationBackendError("idp down")) is True
        assert is_retryable(ValidationError("bad")) is False

    def test_override_per_instance(self):
        assert is_retryable(PersistenceError("busy", retryable=True)) is True

    def test_builtin_connection_errors(self):
        assert is_retryable(ConnectionError()) is True
        assert is_retryable(TimeoutError()) is True
        assert is_retryable(KeyError()) is False
