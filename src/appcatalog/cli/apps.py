"""
CLI: ``appcatalog apps`` -- list, read, create and manage applications.

Every command acts on behalf of a caller described by ``--tenant``,
``--user``, ``--role`` (repeatable) and ``--admin``.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from appcatalog.catalog.models import Application, Filter
from appcatalog.cli.utils import console, fail, make_manager, output_json, print_dict, print_table
from appcatalog.core.errors import CatalogError, NotFoundError, ValidationError
from appcatalog.core.settings import get_settings

app = typer.Typer(no_args_is_help=True)

# Shared options
_TENANT = typer.Option(1, "--tenant", "-t", help="Tenant id of the caller")
_USER = typer.Option("admin", "--user", "-u", help="Username of the caller")
_ROLES = typer.Option(None, "--role", "-r", help="Role held by the caller (repeatable)")
_ADMIN = typer.Option(False, "--admin", help="Caller holds the administrative permission")
_DATABASE = typer.Option(None, "--database", "-d", help="Database URL or path")
_JSON = typer.Option(False, "--json", help="JSON output")


def _summary(application: Application) -> dict:
    return {
        "id": application.id,
        "name": application.name,
        "type": application.type,
        "category": application.category,
        "restricted": application.is_restricted,
        "tags": application.tags,
        "releases": len(application.releases),
    }


@app.command("list")
def list_apps(
    search: str | None = typer.Option(None, "--search", "-s", help="Name search"),
    full_match: bool = typer.Option(False, "--full-match", help="Match the whole name"),
    limit: int | None = typer.Option(None, "--limit", "-l", help="Page size (default: APPCATALOG_DEFAULT_PAGE_LIMIT)"),
    offset: int = typer.Option(0, "--offset", help="Page offset"),
    tenant: int = _TENANT,
    user: str = _USER,
    role: list[str] | None = _ROLES,
    admin: bool = _ADMIN,
    database: str | None = _DATABASE,
    json_out: bool = _JSON,
) -> None:
    """List applications visible to the caller."""
    try:
        manager = make_manager(database, tenant=tenant, user=user, roles=role, admin=admin)
        result = manager.get_applications(
            Filter(
                search_query=search,
                full_match=full_match,
                limit=get_settings().default_page_limit if limit is None else limit,
                offset=offset,
            ),
            tenant,
            user,
        )
    except CatalogError as exc:
        fail(exc)
        return
    if json_out:
        output_json(result)
        return
    print_table([_summary(a) for a in result.applications], title="Applications")
    p = result.pagination
    console.print(f"[dim]{p.size} shown, {p.count} total (limit {p.limit}, offset {p.offset})[/dim]")


@app.command("get")
def get_app(
    name: str = typer.Argument(..., help="Application name"),
    type: str = typer.Argument(..., help="Device type, e.g. android"),
    tenant: int = _TENANT,
    user: str = _USER,
    role: list[str] | None = _ROLES,
    admin: bool = _ADMIN,
    database: str | None = _DATABASE,
    json_out: bool = _JSON,
) -> None:
    """Show one application by name and type."""
    try:
        manager = make_manager(database, tenant=tenant, user=user, roles=role, admin=admin)
        application = manager.get_application(name, type, tenant, user)
    except CatalogError as exc:
        fail(exc)
        return
    if application is None:
        fail(NotFoundError(f"Application {name!r} ({type}) not found"))
        return
    if json_out:
        output_json(application)
        return
    print_dict(_summary(application), title=application.name or "")


@app.command("releases")
def releases(
    application_id: int = typer.Argument(..., help="Application id"),
    tenant: int = _TENANT,
    user: str = _USER,
    role: list[str] | None = _ROLES,
    admin: bool = _ADMIN,
    database: str | None = _DATABASE,
    json_out: bool = _JSON,
) -> None:
    """List the active releases of an application."""
    try:
        manager = make_manager(database, tenant=tenant, user=user, roles=role, admin=admin)
        found = manager.get_releases(application_id, tenant, user)
    except CatalogError as exc:
        fail(exc)
        return
    if json_out:
        output_json(found)
        return
    print_table(
        [
            {"uuid": r.uuid, "version": r.version, "type": r.release_type, "state": r.current_state}
            for r in found
        ],
        title="Releases",
    )


@app.command("latest-release")
def latest_release(
    application_id: int = typer.Argument(..., help="Application id"),
    tenant: int = _TENANT,
    user: str = _USER,
    database: str | None = _DATABASE,
    json_out: bool = _JSON,
) -> None:
    """UUID of the newest published release."""
    try:
        manager = make_manager(database, tenant=tenant, user=user)
        release_uuid = manager.get_uuid_of_latest_release(application_id)
    except CatalogError as exc:
        fail(exc)
        return
    if json_out:
        output_json({"application_id": application_id, "uuid": release_uuid})
        return
    console.print(release_uuid or "[dim]No published release.[/dim]")


@app.command("create")
def create(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Application payload (JSON)"),
    tenant: int = _TENANT,
    user: str = _USER,
    role: list[str] | None = _ROLES,
    admin: bool = _ADMIN,
    database: str | None = _DATABASE,
    json_out: bool = _JSON,
) -> None:
    """Create an application with its initial release from a JSON file."""
    try:
        payload = json.loads(file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        fail(ValidationError(f"Cannot read payload {file}: {exc}", cause=exc))
        return
    if not isinstance(payload, dict):
        fail(ValidationError("Application payload must be a JSON object"))
        return
    try:
        manager = make_manager(database, tenant=tenant, user=user, roles=role, admin=admin)
        created = manager.create_application(Application.from_dict(payload), tenant, user)
    except CatalogError as exc:
        fail(exc)
        return
    if json_out:
        output_json(created)
        return
    console.print(
        f"[green]Created[/green] application {created.name!r} (id {created.id}), "
        f"release {created.releases[0].uuid}"
    )


@app.command("delete")
def delete(
    application_id: int = typer.Argument(..., help="Application id"),
    tenant: int = _TENANT,
    user: str = _USER,
    admin: bool = _ADMIN,
    database: str | None = _DATABASE,
    json_out: bool = _JSON,
) -> None:
    """Delete an application with its releases (administrators only)."""
    try:
        manager = make_manager(database, tenant=tenant, user=user, admin=admin)
        manager.delete_application(application_id, tenant, user)
    except CatalogError as exc:
        fail(exc)
        return
    if json_out:
        output_json({"deleted": application_id})
        return
    console.print(f"[green]Deleted[/green] application {application_id}")


@app.command("lifecycle")
def lifecycle(
    release_uuid: str = typer.Argument(..., help="Release UUID"),
    state: str = typer.Argument(..., help="Target state: PUBLISHED or REMOVED"),
    tenant: int = _TENANT,
    user: str = _USER,
    role: list[str] | None = _ROLES,
    admin: bool = _ADMIN,
    database: str | None = _DATABASE,
    json_out: bool = _JSON,
) -> None:
    """Move a release to a new lifecycle state."""
    try:
        manager = make_manager(database, tenant=tenant, user=user, roles=role, admin=admin)
        record = manager.change_lifecycle(release_uuid, state, tenant, user)
    except CatalogError as exc:
        fail(exc)
        return
    if json_out:
        output_json(record)
        return
    console.print(f"Release {release_uuid} is now [bold]{record.current_state}[/bold]")
