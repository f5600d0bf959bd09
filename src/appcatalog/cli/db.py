"""
CLI: ``appcatalog db`` -- schema and device-type management.
"""

from __future__ import annotations

import typer

from appcatalog.catalog.repositories import DeviceTypeRepository
from appcatalog.cli.utils import console, fail, open_database, output_json, print_table
from appcatalog.core.errors import CatalogError

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Initialise database schema (create tables)."""
    try:
        db = open_database(database)
        tables = db.initialize()
    except CatalogError as exc:
        fail(exc)
        return
    if json_out:
        output_json({"tables": tables, "backend": db.info.backend})
        return
    console.print(f"[green]Initialised[/green] {len(tables)} tables ({db.info.backend})")


@app.command("add-device-type")
def add_device_type(
    name: str = typer.Argument(..., help="Device type name, e.g. android"),
    tenant: int = typer.Option(1, "--tenant", "-t", help="Tenant id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Register a device type for a tenant."""
    try:
        db = open_database(database)
        with db.scope() as scope:
            with scope.transaction() as conn:
                device_type = DeviceTypeRepository(conn, scope.dialect).add(name, tenant)
    except CatalogError as exc:
        fail(exc)
        return
    if json_out:
        output_json(device_type)
        return
    console.print(f"[green]Added[/green] device type {device_type.name!r} (id {device_type.id})")


@app.command("device-types")
def device_types(
    tenant: int = typer.Option(1, "--tenant", "-t"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List device types registered for a tenant."""
    try:
        db = open_database(database)
        with db.scope() as scope:
            found = DeviceTypeRepository(scope.connection, scope.dialect).list_for_tenant(tenant)
    except CatalogError as exc:
        fail(exc)
        return
    if json_out:
        output_json(found)
        return
    print_table([{"id": d.id, "name": d.name, "tenant": d.tenant_id} for d in found], title="Device Types")
