"""
UTC timestamp utilities (stdlib-only).

Release creation/publication times and lifecycle-state changes are stored
as ISO 8601 text so SQLite and PostgreSQL read back the same value.

Examples:
    >>> to_iso8601(from_iso8601("2026-01-02T03:04:05+00:00"))
    '2026-01-02T03:04:05+00:00'

Tags:
    timestamps, utc, datetime, stdlib-only
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return utc_now().isoformat()


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO 8601 string."""
    if dt is None:
        return None
    return dt.isoformat()


def from_iso8601(s: str | None) -> datetime | None:
    """Parse ISO 8601 string to datetime."""
    if s is None:
        return None
    return datetime.fromisoformat(s)


__all__ = ["utc_now", "utc_now_iso", "to_iso8601", "from_iso8601"]
