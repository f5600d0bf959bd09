"""Application catalog domain.

Tags:
    catalog, applications, releases, visibility
"""

from appcatalog.catalog.identity import StaticIdentityStore, UserRecord
from appcatalog.catalog.lifecycle import LifecycleState, LifecycleStateName
from appcatalog.catalog.locks import KeyedLock
from appcatalog.catalog.manager import ApplicationManager
from appcatalog.catalog.models import (
    Application,
    ApplicationList,
    ApplicationRelease,
    DeviceType,
    Filter,
    Pagination,
)
from appcatalog.catalog.repositories import DatabaseDeviceTypeLookup

__all__ = [
    "Application",
    "ApplicationList",
    "ApplicationManager",
    "ApplicationRelease",
    "DatabaseDeviceTypeLookup",
    "DeviceType",
    "Filter",
    "KeyedLock",
    "LifecycleState",
    "LifecycleStateName",
    "Pagination",
    "StaticIdentityStore",
    "UserRecord",
]
