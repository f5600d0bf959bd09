"""Row → entity mapping.

Joined queries return one row per (application, tag, role) combination.
Folding is an explicit grouping step keyed by application id rather than
state carried across a cursor loop.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from appcatalog.catalog.lifecycle import LifecycleState
from appcatalog.catalog.models import Application, ApplicationRelease, DeviceType

APPLICATION_COLUMNS = (
    "id",
    "name",
    "type",
    "category",
    "is_free",
    "payment_currency",
    "is_restricted",
    "tenant_id",
    "created_by",
    "device_type_id",
)

RELEASE_COLUMNS = (
    "id",
    "version",
    "uuid",
    "release_type",
    "price",
    "stored_location",
    "banner_location",
    "screenshot_1",
    "screenshot_2",
    "screenshot_3",
    "hash",
    "shared_with_all_tenants",
    "meta_info",
    "created_by",
    "created_at",
    "published_by",
    "published_at",
    "stars",
)


def _flag(value: Any) -> bool:
    return bool(value) if value is not None else False


def application_from_row(row: dict[str, Any]) -> Application:
    return Application(
        id=row["id"],
        name=row["name"],
        type=row["type"],
        category=row.get("category"),
        is_free=_flag(row.get("is_free")),
        payment_currency=row.get("payment_currency"),
        is_restricted=_flag(row.get("is_restricted")),
        tenant_id=row.get("tenant_id"),
        created_by=row.get("created_by"),
        device_type_id=row.get("device_type_id"),
    )


def release_from_row(row: dict[str, Any], prefix: str = "") -> ApplicationRelease:
    """Map a release row; *prefix* strips aliased column names (``r_version``)."""
    values = {col: row.get(f"{prefix}{col}") for col in RELEASE_COLUMNS}
    values["shared_with_all_tenants"] = _flag(values["shared_with_all_tenants"])
    values["price"] = float(values["price"] or 0)
    values["stars"] = int(values["stars"] or 0)
    release = ApplicationRelease(**values)
    release.current_state = row.get("current_state")
    return release


def lifecycle_from_row(row: dict[str, Any]) -> LifecycleState:
    return LifecycleState(
        id=row["id"],
        release_id=row["release_id"],
        current_state=row["current_state"],
        changed_by=row.get("changed_by"),
        changed_at=row.get("changed_at"),
    )


def device_type_from_row(row: dict[str, Any]) -> DeviceType:
    return DeviceType(id=row["id"], name=row["name"], tenant_id=row["tenant_id"])


def _append_unique(values: list[str], value: str | None) -> None:
    if value is not None and value not in values:
        values.append(value)


def fold_applications(
    app_rows: Iterable[dict[str, Any]],
    tag_rows: Iterable[dict[str, Any]] = (),
    role_rows: Iterable[dict[str, Any]] = (),
) -> list[Application]:
    """Attach tag and role rows (keyed by ``application_id``) to their applications.

    Output keeps the order of *app_rows*.  Children come from their own
    tables, so every row is kept, repeated tags included.
    """
    apps: dict[int, Application] = {}
    for row in app_rows:
        apps.setdefault(row["id"], application_from_row(row))
    for row in tag_rows:
        app = apps.get(row["application_id"])
        if app is not None:
            app.tags.append(row["tag"])
    for row in role_rows:
        app = apps.get(row["application_id"])
        if app is not None:
            app.unrestricted_roles.append(row["role"])
    return list(apps.values())


def fold_joined_rows(rows: Iterable[dict[str, Any]]) -> list[Application]:
    """Fold ``applications ⟕ tags ⟕ roles`` rows (columns ``tag``/``role``) by id."""
    apps: dict[int, Application] = {}
    for row in rows:
        app = apps.get(row["id"])
        if app is None:
            app = apps[row["id"]] = application_from_row(row)
        _append_unique(app.tags, row.get("tag"))
        _append_unique(app.unrestricted_roles, row.get("role"))
    return list(apps.values())


__all__ = [
    "APPLICATION_COLUMNS",
    "RELEASE_COLUMNS",
    "application_from_row",
    "device_type_from_row",
    "fold_applications",
    "fold_joined_rows",
    "lifecycle_from_row",
    "release_from_row",
]
