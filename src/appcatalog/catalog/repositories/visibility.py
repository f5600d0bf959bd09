"""Unrestricted-role (visibility) repository.

Tags:
    repository, visibility, roles
"""

from __future__ import annotations

from appcatalog.core.repository import BaseRepository


class VisibilityRepository(BaseRepository):
    """CRUD for the ``unrestricted_roles`` table."""

    TABLE = "unrestricted_roles"

    def add_unrestricted_roles(self, roles: list[str], application_id: int, tenant_id: int) -> int:
        """Batch-insert the allow-list for an application."""
        return self.insert_many(
            self.TABLE,
            [{"role": role, "tenant_id": tenant_id, "application_id": application_id} for role in roles],
        )

    def get_unrestricted_roles(self, application_id: int, tenant_id: int) -> list[str]:
        rows = self.query(
            f"SELECT role FROM {self.TABLE} "
            f"WHERE application_id = {self.ph(1)} AND tenant_id = {self.ph(1)} ORDER BY id",
            (application_id, tenant_id),
        )
        return [row["role"] for row in rows]

    def delete_unrestricted_roles(self, application_id: int, tenant_id: int) -> None:
        self.execute(
            f"DELETE FROM {self.TABLE} WHERE application_id = {self.ph(1)} AND tenant_id = {self.ph(1)}",
            (application_id, tenant_id),
        )
