"""Application repository.

Translates catalog operations into parameterized SQL over ``applications``,
``application_tags`` and ``unrestricted_roles`` and maps rows back to
:class:`~appcatalog.catalog.models.Application` entities.  It enforces no
business invariants; that is the manager's job.

Tags:
    repository, applications, tags, search, pagination
"""

from __future__ import annotations

from typing import Any

from appcatalog.catalog.lifecycle import LifecycleStateName
from appcatalog.catalog.mapping import (
    APPLICATION_COLUMNS,
    RELEASE_COLUMNS,
    application_from_row,
    fold_applications,
    fold_joined_rows,
    release_from_row,
)
from appcatalog.catalog.models import Application, Filter
from appcatalog.core.errors import NotFoundError, ValidationError
from appcatalog.core.logging import get_logger
from appcatalog.core.query import PageSlice, Predicates
from appcatalog.core.repository import BaseRepository

logger = get_logger(__name__)

# Columns an edit may change, in UPDATE order
EDITABLE_COLUMNS = ("name", "type", "category", "is_free", "payment_currency", "is_restricted", "device_type_id")


class ApplicationRepository(BaseRepository):
    """CRUD and search for the ``applications`` aggregate."""

    TABLE = "applications"
    TAGS_TABLE = "application_tags"
    ROLES_TABLE = "unrestricted_roles"

    def _columns(self, alias: str = "") -> str:
        prefix = f"{alias}." if alias else ""
        return ", ".join(f"{prefix}{col}" for col in APPLICATION_COLUMNS)

    def _predicates(self, filter: Filter | None, tenant_id: int) -> Predicates:
        """Tenant scope plus the optional case-insensitive name match.

        Shared by the page query and the count query.
        """
        if filter is None:
            raise ValidationError("Filter must not be null").with_context(tenant_id=tenant_id)
        preds = Predicates(self.dialect).equals("tenant_id", tenant_id)
        if filter.has_search:
            term = (filter.search_query or "").strip()
            if filter.full_match:
                preds.equals_ci("name", term)
            else:
                preds.contains_ci("name", term)
        return preds

    # -- writes ---------------------------------------------------------------

    def create_application(self, application: Application, device_type_id: int) -> int:
        """Insert one application row and return its generated id."""
        return self.insert_returning_id(
            self.TABLE,
            {
                "name": application.name,
                "type": application.type,
                "category": application.category,
                "is_free": bool(application.is_free),
                "payment_currency": application.payment_currency,
                "is_restricted": bool(application.is_restricted),
                "tenant_id": application.tenant_id,
                "created_by": application.created_by,
                "device_type_id": device_type_id,
            },
        )

    def add_tags(self, tags: list[str], application_id: int, tenant_id: int) -> int:
        """Batch-insert tags in one statement. Returns the number inserted."""
        return self.insert_many(
            self.TAGS_TABLE,
            [{"tag": tag, "tenant_id": tenant_id, "application_id": application_id} for tag in tags],
        )

    def edit_application(self, application: Application, tenant_id: int) -> Application:
        """Write only the fields that differ from the stored row.

        The stored row is located by ``application.id`` when set, otherwise
        by name and type.
        """
        if application.id is not None:
            existing = self.query_one(
                f"SELECT {self._columns()} FROM {self.TABLE} "
                f"WHERE id = {self.ph(1)} AND tenant_id = {self.ph(1)}",
                (application.id, tenant_id),
            )
        else:
            existing = self.query_one(
                f"SELECT {self._columns()} FROM {self.TABLE} "
                f"WHERE name = {self.ph(1)} AND type = {self.ph(1)} AND tenant_id = {self.ph(1)}",
                (application.name, application.type, tenant_id),
            )
        if existing is None:
            raise NotFoundError("Tried to update an application which does not exist").with_context(
                tenant_id=tenant_id, application_id=application.id
            )

        current = application_from_row(existing)
        changes: dict[str, Any] = {}
        for column in EDITABLE_COLUMNS:
            new_value = getattr(application, column)
            if new_value is not None and new_value != getattr(current, column):
                changes[column] = new_value

        if changes:
            sets = ", ".join(f"{column} = {self.ph(1)}" for column in changes)
            self.execute(
                f"UPDATE {self.TABLE} SET {sets} WHERE id = {self.ph(1)} AND tenant_id = {self.ph(1)}",
                (*changes.values(), current.id, tenant_id),
            )
            logger.debug("application_updated", application_id=current.id, columns=list(changes))

        updated = self.get_application_by_id(current.id, tenant_id)  # type: ignore[arg-type]
        if updated is None:
            raise NotFoundError("Application vanished during update").with_context(
                tenant_id=tenant_id, application_id=current.id
            )
        return updated

    def delete_application(self, application_id: int) -> None:
        self.execute(f"DELETE FROM {self.TABLE} WHERE id = {self.ph(1)}", (application_id,))

    def delete_tags(self, application_id: int) -> None:
        self.execute(
            f"DELETE FROM {self.TAGS_TABLE} WHERE application_id = {self.ph(1)}",
            (application_id,),
        )

    # -- existence ------------------------------------------------------------

    def application_exists(self, name: str, type: str, tenant_id: int) -> bool:
        return self.get_application_id(name, type, tenant_id) != -1

    def get_application_id(self, name: str, type: str, tenant_id: int) -> int:
        """Id of the application, or ``-1`` when absent."""
        value = self.scalar(
            f"SELECT id FROM {self.TABLE} "
            f"WHERE name = {self.ph(1)} AND type = {self.ph(1)} AND tenant_id = {self.ph(1)}",
            (name, type, tenant_id),
        )
        return int(value) if value is not None else -1

    def verify_application_existence_by_id(self, application_id: int, tenant_id: int) -> bool:
        value = self.scalar(
            f"SELECT id FROM {self.TABLE} WHERE id = {self.ph(1)} AND tenant_id = {self.ph(1)}",
            (application_id, tenant_id),
        )
        return value is not None

    # -- listing --------------------------------------------------------------

    def list_applications(self, filter: Filter, tenant_id: int) -> tuple[list[Application], int]:
        """One page of applications (newest first) and the total match count."""
        preds = self._predicates(filter, tenant_id)
        where, params = preds.where()
        page_sql, page_params = PageSlice(filter.limit, filter.offset).clause(self.dialect)

        rows = self.query(
            f"SELECT {self._columns()} FROM {self.TABLE} WHERE {where} ORDER BY id DESC {page_sql}",
            (*params, *page_params),
        )
        total = self._count(where, params)
        return self._with_children(rows), total

    def get_application_count(self, filter: Filter, tenant_id: int) -> int:
        where, params = self._predicates(filter, tenant_id).where()
        return self._count(where, params)

    def _count(self, where: str, params: tuple) -> int:
        return int(self.scalar(f"SELECT COUNT(*) AS cnt FROM {self.TABLE} WHERE {where}", params, default=0))

    def _with_children(self, app_rows: list[dict[str, Any]]) -> list[Application]:
        """Load tags and roles for a page of application rows."""
        if not app_rows:
            return []
        ids = [row["id"] for row in app_rows]
        in_ids, id_params = Predicates(self.dialect).in_("application_id", ids).where()
        tag_rows = self.query(
            f"SELECT application_id, tag FROM {self.TAGS_TABLE} WHERE {in_ids} ORDER BY id",
            id_params,
        )
        role_rows = self.query(
            f"SELECT application_id, role FROM {self.ROLES_TABLE} WHERE {in_ids} ORDER BY id",
            id_params,
        )
        return fold_applications(app_rows, tag_rows, role_rows)

    # -- single reads ---------------------------------------------------------

    def _joined_sql(self, where: str) -> str:
        return (
            f"SELECT {self._columns('a')}, t.tag AS tag, ur.role AS role "
            f"FROM {self.TABLE} a "
            f"LEFT JOIN {self.TAGS_TABLE} t ON t.application_id = a.id "
            f"LEFT JOIN {self.ROLES_TABLE} ur ON ur.application_id = a.id "
            f"WHERE {where} ORDER BY t.id, ur.id"
        )

    def get_application(self, name: str, type: str, tenant_id: int) -> Application | None:
        where, params = (
            Predicates(self.dialect)
            .equals("a.name", name)
            .equals("a.type", type)
            .equals("a.tenant_id", tenant_id)
            .where()
        )
        apps = fold_joined_rows(self.query(self._joined_sql(where), params))
        return apps[0] if apps else None

    def get_application_by_id(self, application_id: int, tenant_id: int) -> Application | None:
        where, params = (
            Predicates(self.dialect).equals("a.id", application_id).equals("a.tenant_id", tenant_id).where()
        )
        apps = fold_joined_rows(self.query(self._joined_sql(where), params))
        return apps[0] if apps else None

    def get_application_by_release(self, release_uuid: str, tenant_id: int) -> Application | None:
        """The application owning *release_uuid*, carrying only that release."""
        release_cols = ", ".join(f"r.{col} AS r_{col}" for col in RELEASE_COLUMNS)
        row = self.query_one(
            f"SELECT {self._columns('a')}, {release_cols}, ls.current_state AS current_state "
            f"FROM {self.TABLE} a JOIN application_releases r ON r.application_id = a.id "
            "LEFT JOIN lifecycle_states ls ON ls.id = "
            "(SELECT MAX(s.id) FROM lifecycle_states s WHERE s.release_id = r.id) "
            f"WHERE r.uuid = {self.ph(1)} AND a.tenant_id = {self.ph(1)}",
            (release_uuid, tenant_id),
        )
        if row is None:
            return None
        app = self._with_children([row])[0]
        app.releases = [release_from_row(row, prefix="r_")]
        return app

    def get_uuid_of_latest_release(self, application_id: int) -> str | None:
        """UUID of the newest release whose latest lifecycle state is PUBLISHED."""
        return self.scalar(
            "SELECT r.uuid FROM application_releases r "
            "JOIN lifecycle_states ls ON ls.id = "
            "(SELECT MAX(s.id) FROM lifecycle_states s WHERE s.release_id = r.id) "
            f"WHERE r.application_id = {self.ph(1)} AND ls.current_state = {self.ph(1)} "
            f"ORDER BY r.id DESC LIMIT {self.ph(1)}",
            (application_id, LifecycleStateName.PUBLISHED.value, 1),
        )


__all__ = ["ApplicationRepository", "EDITABLE_COLUMNS"]
