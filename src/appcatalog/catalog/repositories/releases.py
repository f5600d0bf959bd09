"""Application release repository.

A release's ``current_state`` is read from its newest ``lifecycle_states``
record in the same query.

Tags:
    repository, releases, lifecycle
"""

from __future__ import annotations

from appcatalog.catalog.mapping import RELEASE_COLUMNS, release_from_row
from appcatalog.catalog.models import ApplicationRelease
from appcatalog.core.repository import BaseRepository

_LATEST_STATE_JOIN = (
    "LEFT JOIN lifecycle_states ls ON ls.id = "
    "(SELECT MAX(s.id) FROM lifecycle_states s WHERE s.release_id = r.id)"
)


class ReleaseRepository(BaseRepository):
    """CRUD for the ``application_releases`` table."""

    TABLE = "application_releases"

    def _select(self, *extra: str) -> str:
        columns = ", ".join([*(f"r.{col}" for col in RELEASE_COLUMNS), *extra])
        return f"SELECT {columns}, ls.current_state AS current_state FROM {self.TABLE} r {_LATEST_STATE_JOIN}"

    def create_release(self, release: ApplicationRelease, application_id: int, tenant_id: int) -> ApplicationRelease:
        """Insert *release* and return it with its generated id."""
        data = {col: getattr(release, col) for col in RELEASE_COLUMNS if col != "id"}
        data["shared_with_all_tenants"] = bool(release.shared_with_all_tenants)
        release.id = self.insert_returning_id(
            self.TABLE,
            {"application_id": application_id, "tenant_id": tenant_id, **data},
        )
        return release

    def get_releases(self, application_name: str, application_type: str, tenant_id: int) -> list[ApplicationRelease]:
        """Every release of the application, newest first."""
        rows = self.query(
            f"{self._select()} JOIN applications a ON a.id = r.application_id "
            f"WHERE a.name = {self.ph(1)} AND a.type = {self.ph(1)} AND a.tenant_id = {self.ph(1)} "
            "ORDER BY r.id DESC",
            (application_name, application_type, tenant_id),
        )
        return [release_from_row(row) for row in rows]

    def get_releases_by_application_id(self, application_id: int) -> list[ApplicationRelease]:
        rows = self.query(
            f"{self._select()} WHERE r.application_id = {self.ph(1)} ORDER BY r.id DESC",
            (application_id,),
        )
        return [release_from_row(row) for row in rows]

    def get_release(self, release_uuid: str, tenant_id: int) -> tuple[ApplicationRelease, int] | None:
        """The release and its owning application id."""
        row = self.query_one(
            f"{self._select('r.application_id AS application_id')} "
            f"WHERE r.uuid = {self.ph(1)} AND r.tenant_id = {self.ph(1)}",
            (release_uuid, tenant_id),
        )
        if row is None:
            return None
        return release_from_row(row), int(row["application_id"])

    def version_exists(self, application_id: int, version: str) -> bool:
        row = self.query_one(
            f"SELECT id FROM {self.TABLE} WHERE application_id = {self.ph(1)} AND version = {self.ph(1)}",
            (application_id, version),
        )
        return row is not None

    def mark_published(self, release_id: int, published_by: str, published_at: str) -> None:
        self.execute(
            f"UPDATE {self.TABLE} SET published_by = {self.ph(1)}, published_at = {self.ph(1)} "
            f"WHERE id = {self.ph(1)}",
            (published_by, published_at, release_id),
        )

    def delete_releases(self, application_id: int) -> None:
        self.execute(
            f"DELETE FROM {self.TABLE} WHERE application_id = {self.ph(1)}",
            (application_id,),
        )
