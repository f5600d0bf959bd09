"""Lifecycle-state history repository (append-only).

Tags:
    repository, lifecycle, audit
"""

from __future__ import annotations

from appcatalog.catalog.lifecycle import LifecycleState
from appcatalog.catalog.mapping import lifecycle_from_row
from appcatalog.core.repository import BaseRepository


class LifecycleRepository(BaseRepository):
    """Inserts and reads ``lifecycle_states`` records."""

    TABLE = "lifecycle_states"

    def add_state(self, release_id: int, state: str, changed_by: str | None, changed_at: str) -> LifecycleState:
        record_id = self.insert_returning_id(
            self.TABLE,
            {
                "release_id": release_id,
                "current_state": state,
                "changed_by": changed_by,
                "changed_at": changed_at,
            },
        )
        return LifecycleState(
            id=record_id,
            release_id=release_id,
            current_state=state,
            changed_by=changed_by,
            changed_at=changed_at,
        )

    def latest_state(self, release_id: int) -> LifecycleState | None:
        row = self.query_one(
            f"SELECT * FROM {self.TABLE} WHERE release_id = {self.ph(1)} "
            f"ORDER BY id DESC LIMIT {self.ph(1)}",
            (release_id, 1),
        )
        return lifecycle_from_row(row) if row else None

    def get_states(self, release_id: int) -> list[LifecycleState]:
        """Full history, oldest first."""
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE release_id = {self.ph(1)} ORDER BY id",
            (release_id,),
        )
        return [lifecycle_from_row(row) for row in rows]

    def delete_states_for_application(self, application_id: int) -> None:
        self.execute(
            f"DELETE FROM {self.TABLE} WHERE release_id IN "
            f"(SELECT id FROM application_releases WHERE application_id = {self.ph(1)})",
            (application_id,),
        )
