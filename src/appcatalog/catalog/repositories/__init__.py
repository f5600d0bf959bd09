"""Catalog repositories, one per table family.

Tags:
    repository, catalog
"""

from appcatalog.catalog.repositories.applications import ApplicationRepository
from appcatalog.catalog.repositories.device_types import DatabaseDeviceTypeLookup, DeviceTypeRepository
from appcatalog.catalog.repositories.lifecycle import LifecycleRepository
from appcatalog.catalog.repositories.releases import ReleaseRepository
from appcatalog.catalog.repositories.visibility import VisibilityRepository

__all__ = [
    "ApplicationRepository",
    "DatabaseDeviceTypeLookup",
    "DeviceTypeRepository",
    "LifecycleRepository",
    "ReleaseRepository",
    "VisibilityRepository",
]
