"""
CLI utility helpers: output formatting, error rendering and manager wiring.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from appcatalog.catalog.identity import StaticIdentityStore
from appcatalog.catalog.manager import ApplicationManager
from appcatalog.catalog.repositories import DatabaseDeviceTypeLookup
from appcatalog.core.errors import CatalogError
from appcatalog.core.settings import get_settings
from appcatalog.core.transaction import Database

console = Console()
err_console = Console(stderr=True)


# ── Wiring ───────────────────────────────────────────────────────────────


def open_database(database: str | None = None) -> Database:
    """Database from ``--database`` or ``APPCATALOG_DATABASE_URL``."""
    settings = get_settings()
    if database is None:
        return Database.from_settings(settings)
    return Database(database, timeout=settings.database_timeout, echo=settings.database_echo)


def make_manager(
    database: str | None,
    *,
    tenant: int,
    user: str,
    roles: list[str] | None = None,
    admin: bool = False,
) -> ApplicationManager:
    """Manager whose identity store knows exactly the calling user."""
    settings = get_settings()
    db = open_database(database)
    identity = StaticIdentityStore()
    identity.add_user(
        user,
        tenant,
        roles=roles or (),
        permissions=[settings.admin_permission] if admin else (),
    )
    return ApplicationManager(db, identity, identity, DatabaseDeviceTypeLookup(db), settings=settings)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / dict to plain dict."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def fail(error: CatalogError) -> None:
    """Print a catalog error and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    raise typer.Exit(code=1)


def output_json(data: Any) -> None:
    if isinstance(data, list | tuple):
        payload: Any = [_to_dict(d) for d in data]
    elif data is None:
        payload = None
    else:
        payload = _to_dict(data)
    typer.echo(json.dumps(payload, default=str, indent=2))


def print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(_cell(v) for v in row.values()))
    console.print(table)


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {_cell(v)}")


def _cell(value: Any) -> str:
    if isinstance(value, list | tuple):
        return ", ".join(str(v) for v in value)
    if value is None:
        return "-"
    return str(value)
