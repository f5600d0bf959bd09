"""Tests for ``appcatalog db`` commands."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from appcatalog import __version__
from appcatalog.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_cli_logging(monkeypatch):
    monkeypatch.setattr("appcatalog.core.logging.configure_logging", lambda **kwargs: None)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'cli.db'}"


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "db" in result.output
        assert "apps" in result.output


class TestDbCommands:
    def test_init_json(self, db_url):
        result = runner.invoke(app, ["db", "init", "-d", db_url, "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["backend"] == "sqlite"
        assert "applications" in payload["tables"]

    def test_init_table_output(self, db_url):
        result = runner.invoke(app, ["db", "init", "--database", db_url])
        assert result.exit_code == 0
        assert "Initialised" in result.stdout

    def test_device_types(self, db_url):
        runner.invoke(app, ["db", "init", "-d", db_url])
        added = runner.invoke(app, ["db", "add-device-type", "android", "--tenant", "3", "-d", db_url, "--json"])
        assert added.exit_code == 0, added.output
        assert json.loads(added.stdout) == {"id": 1, "name": "android", "tenant_id": 3}

        listed = runner.invoke(app, ["db", "device-types", "-t", "3", "-d", db_url, "--json"])
        assert [d["name"] for d in json.loads(listed.stdout)] == ["android"]

    def test_duplicate_device_type_fails(self, db_url):
        runner.invoke(app, ["db", "init", "-d", db_url])
        runner.invoke(app, ["db", "add-device-type", "android", "-d", db_url])
        result = runner.invoke(app, ["db", "add-device-type", "android", "-d", db_url])
        assert result.exit_code == 1

    def test_unsupported_url(self):
        result = runner.invoke(app, ["db", "init", "-d", "mysql://localhost/db"])
        assert result.exit_code == 1
