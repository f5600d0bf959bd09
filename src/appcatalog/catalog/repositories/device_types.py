"""Device type repository and the database-backed ``DeviceTypeLookup``.

Tags:
    repository, device-types
"""

from __future__ import annotations

from appcatalog.catalog.mapping import device_type_from_row
from appcatalog.catalog.models import DeviceType
from appcatalog.core.repository import BaseRepository
from appcatalog.core.transaction import Database


class DeviceTypeRepository(BaseRepository):
    """CRUD for the ``device_types`` table."""

    TABLE = "device_types"

    def get_by_name(self, name: str, tenant_id: int) -> DeviceType | None:
        row = self.query_one(
            f"SELECT id, name, tenant_id FROM {self.TABLE} "
            f"WHERE name = {self.ph(1)} AND tenant_id = {self.ph(1)}",
            (name, tenant_id),
        )
        return device_type_from_row(row) if row else None

    def add(self, name: str, tenant_id: int) -> DeviceType:
        device_type_id = self.insert_returning_id(self.TABLE, {"name": name, "tenant_id": tenant_id})
        return DeviceType(id=device_type_id, name=name, tenant_id=tenant_id)

    def list_for_tenant(self, tenant_id: int) -> list[DeviceType]:
        rows = self.query(
            f"SELECT id, name, tenant_id FROM {self.TABLE} WHERE tenant_id = {self.ph(1)} ORDER BY name",
            (tenant_id,),
        )
        return [device_type_from_row(row) for row in rows]


class DatabaseDeviceTypeLookup:
    """``DeviceTypeLookup`` over the ``device_types`` table, one scope per call."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def device_type_for(self, name: str, tenant_id: int) -> DeviceType | None:
        with self._database.scope() as scope:
            return DeviceTypeRepository(scope.connection, scope.dialect).get_by_name(name, tenant_id)
