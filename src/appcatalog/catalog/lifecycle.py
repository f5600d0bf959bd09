"""
Release lifecycle state machine.

A release's state is never a column on the release row: it is the latest
record of an append-only ``lifecycle_states`` history.

Architecture:
    ::

        CREATED ──► PUBLISHED ──► REMOVED
           │                         ▲
           └─────────────────────────┘

    - A release with no history is ``CREATED``.
    - ``REMOVED`` is terminal.
    - The latest record is the one with the highest id.

Examples:
    >>> can_transition(LifecycleStateName.CREATED, LifecycleStateName.PUBLISHED)
    True
    >>> can_transition("REMOVED", "PUBLISHED")
    False

Tags:
    lifecycle, state-machine, release, audit
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from appcatalog.core.errors import ValidationError


class LifecycleStateName(str, Enum):
    CREATED = "CREATED"
    PUBLISHED = "PUBLISHED"
    REMOVED = "REMOVED"


TRANSITIONS: dict[LifecycleStateName, frozenset[LifecycleStateName]] = {
    LifecycleStateName.CREATED: frozenset({LifecycleStateName.PUBLISHED, LifecycleStateName.REMOVED}),
    LifecycleStateName.PUBLISHED: frozenset({LifecycleStateName.REMOVED}),
    LifecycleStateName.REMOVED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class LifecycleState:
    """One ``lifecycle_states`` record."""

    id: int | None
    release_id: int
    current_state: str
    changed_by: str | None = None
    changed_at: str | None = None


def parse_state(value: str | LifecycleStateName) -> LifecycleStateName:
    """Coerce *value* to a state name; ``ValidationError`` if unknown."""
    if isinstance(value, LifecycleStateName):
        return value
    try:
        return LifecycleStateName(value.strip().upper())
    except (ValueError, AttributeError) as exc:
        raise ValidationError(f"Unknown lifecycle state: {value!r}", cause=exc) from exc


def effective_state(latest: str | None) -> LifecycleStateName:
    """State of a release given its latest record (``None`` → CREATED)."""
    if latest is None:
        return LifecycleStateName.CREATED
    return parse_state(latest)


def can_transition(current: str | LifecycleStateName, target: str | LifecycleStateName) -> bool:
    return parse_state(target) in TRANSITIONS[parse_state(current)]


def validate_transition(current: str | None, target: str | LifecycleStateName) -> LifecycleStateName:
    """Return the parsed target or raise ``ValidationError`` for an illegal move."""
    source = effective_state(current)
    destination = parse_state(target)
    if destination not in TRANSITIONS[source]:
        raise ValidationError(
            f"Illegal lifecycle transition {source.value} -> {destination.value}"
        ).with_context(from_state=source.value, to_state=destination.value)
    return destination


def is_active(latest: str | None) -> bool:
    """A release is listed unless its latest state is REMOVED."""
    return effective_state(latest) is not LifecycleStateName.REMOVED


__all__ = [
    "LifecycleState",
    "LifecycleStateName",
    "TRANSITIONS",
    "can_transition",
    "effective_state",
    "is_active",
    "parse_state",
    "validate_transition",
]
