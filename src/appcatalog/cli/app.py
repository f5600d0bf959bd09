"""
Root Typer application for the ``appcatalog`` CLI.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

app = Typer(
    name="appcatalog",
    help="appcatalog -- application catalog persistence and access control.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from appcatalog import __version__

        typer.echo(f"appcatalog {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level for diagnostics on stderr (default: APPCATALOG_LOG_LEVEL)."
    ),
) -> None:
    """appcatalog CLI -- manage the schema, device types and applications."""
    from appcatalog.core.logging import configure_logging
    from appcatalog.core.settings import get_settings

    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.json_logs,
        service=settings.service_name,
        stream=sys.stderr,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from appcatalog.cli.apps import app as apps_app  # noqa: E402
from appcatalog.cli.db import app as db_app  # noqa: E402

app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(apps_app, name="apps", help="Application catalog operations.")


if __name__ == "__main__":
    app()
