"""Catalog entities and query value objects.

Entities mirror the catalog tables; ``Filter`` and ``Pagination`` are
ephemeral query parameters and result metadata that are never persisted.

Boolean flags on :class:`Application` default to ``None`` meaning "not
supplied": the create flow fills in defaults, the edit flow skips them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any

from appcatalog.core.errors import ValidationError

# ---------------------------------------------------------------------------
# device_types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DeviceType:
    """Device type row (``device_types``)."""

    id: int
    name: str
    tenant_id: int


# ---------------------------------------------------------------------------
# application_releases
# ---------------------------------------------------------------------------


@dataclass
class ApplicationRelease:
    """Release row (``application_releases``) plus its derived current state."""

    id: int | None = None
    version: str | None = None
    uuid: str | None = None
    release_type: str | None = None  # alpha, beta, production, ...
    price: float = 0.0
    stored_location: str | None = None
    banner_location: str | None = None
    screenshot_1: str | None = None
    screenshot_2: str | None = None
    screenshot_3: str | None = None
    hash: str | None = None
    shared_with_all_tenants: bool = False
    meta_info: str | None = None
    created_by: str | None = None
    created_at: str | None = None
    published_by: str | None = None
    published_at: str | None = None
    stars: int = 0
    current_state: str | None = None  # latest lifecycle_states record, not a column

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApplicationRelease:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


# ---------------------------------------------------------------------------
# applications (+ application_tags, unrestricted_roles)
# ---------------------------------------------------------------------------


@dataclass
class Application:
    """Application row with its tags, unrestricted roles and releases."""

    id: int | None = None
    name: str | None = None
    type: str | None = None  # device type name, e.g. "android"
    category: str | None = None
    is_free: bool | None = None
    payment_currency: str | None = None
    is_restricted: bool | None = None
    tenant_id: int | None = None
    created_by: str | None = None
    device_type_id: int | None = None
    tags: list[str] = field(default_factory=list)
    unrestricted_roles: list[str] = field(default_factory=list)
    releases: list[ApplicationRelease] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Application:
        """Build from a JSON-style payload; unknown keys are ignored."""
        known = {f.name for f in fields(cls)} - {"releases"}
        app = cls(**{k: v for k, v in data.items() if k in known})
        app.releases = [ApplicationRelease.from_dict(r) for r in data.get("releases") or []]
        return app

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Query value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Filter:
    """Listing query: name search, match mode and page window."""

    search_query: str | None = None
    full_match: bool = False
    limit: int = 20
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit <= 0:
            raise ValidationError(f"Filter limit must be positive, got {self.limit}")
        if self.offset < 0:
            raise ValidationError(f"Filter offset cannot be negative, got {self.offset}")

    @property
    def has_search(self) -> bool:
        return bool(self.search_query and self.search_query.strip())


@dataclass(frozen=True, slots=True)
class Pagination:
    """Result metadata. ``count`` is the total matching the filter, ``size`` the page length."""

    limit: int
    offset: int
    count: int
    size: int = 0


@dataclass
class ApplicationList:
    """One page of applications plus its pagination metadata."""

    applications: list[Application]
    pagination: Pagination

    def to_dict(self) -> dict[str, Any]:
        return {
            "applications": [a.to_dict() for a in self.applications],
            "pagination": asdict(self.pagination),
        }


__all__ = [
    "Application",
    "ApplicationList",
    "ApplicationRelease",
    "DeviceType",
    "Filter",
    "Pagination",
]
