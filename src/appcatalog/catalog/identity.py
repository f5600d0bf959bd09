"""In-process identity store.

Implements both :class:`~appcatalog.core.protocols.RoleResolver` and
:class:`~appcatalog.core.protocols.AuthorizationChecker` from a static
user table.  Used by the CLI (identity comes from command-line flags) and
by tests; production deployments inject an adapter over their real
identity store instead.

Tags:
    identity, roles, authorization
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class UserRecord:
    username: str
    tenant_id: int
    roles: frozenset[str] = field(default_factory=frozenset)
    permissions: frozenset[str] = field(default_factory=frozenset)


class StaticIdentityStore:
    """Users keyed by ``(tenant_id, username)``; unknown users hold nothing."""

    def __init__(self, users: Iterable[UserRecord] = ()) -> None:
        self._users: dict[tuple[int, str], UserRecord] = {}
        for user in users:
            self._users[(user.tenant_id, user.username)] = user

    def add_user(
        self,
        username: str,
        tenant_id: int,
        roles: Iterable[str] = (),
        permissions: Iterable[str] = (),
    ) -> UserRecord:
        user = UserRecord(username, tenant_id, frozenset(roles), frozenset(permissions))
        self._users[(tenant_id, username)] = user
        return user

    def roles_of(self, username: str, tenant_id: int) -> set[str]:
        user = self._users.get((tenant_id, username))
        return set(user.roles) if user else set()

    def is_authorized(self, username: str, tenant_id: int, permission: str) -> bool:
        user = self._users.get((tenant_id, username))
        return user is not None and permission in user.permissions

    def __len__(self) -> int:
        return len(self._users)


__all__ = ["StaticIdentityStore", "UserRecord"]
