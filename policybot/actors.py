"""Conditions describing which users may take an action."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from policybot.pull import Permission, PullContext, parse_permission

_ACTOR_KEYS = frozenset(
    {"users", "teams", "organizations", "admins", "write_collaborators", "permissions"}
)


def _string_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return list(value)


def _flag(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be a boolean")
    return value


@dataclass
class Actors:
    """Users allowed by name, team, organization or permission.

    The allowed set is the union of all conditions.  ``admins`` and
    ``write_collaborators`` are older spellings of the ``admin`` and
    ``write`` permissions.
    """

    users: list[str] = field(default_factory=list)
    teams: list[str] = field(default_factory=list)
    organizations: list[str] = field(default_factory=list)
    admins: bool = False
    write_collaborators: bool = False
    permissions: list[Permission] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Return True if no condition is defined."""
        return not (
            self.users
            or self.teams
            or self.organizations
            or self.permissions
            or self.admins
            or self.write_collaborators
        )

    def is_actor(self, prctx: PullContext, user: str) -> bool:
        """Return True if ``user`` satisfies at least one condition."""
        if user in self.users:
            return True
        if any(prctx.is_team_member(team, user) for team in self.teams):
            return True
        if any(prctx.is_org_member(org, user) for org in self.organizations):
            return True

        allowed = list(self.permissions)
        if self.admins:
            allowed.append(Permission.ADMIN)
        if self.write_collaborators:
            allowed.append(Permission.WRITE)

        user_permission = prctx.collaborator_permission(user)
        if user_permission is Permission.NONE:
            return False
        return any(user_permission >= p for p in allowed)

    @classmethod
    def from_config(cls, data: Mapping[str, Any] | None) -> Actors:
        """Build from a configuration mapping; unknown keys are rejected."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("actor conditions must be a mapping")
        unknown = set(data) - _ACTOR_KEYS
        if unknown:
            raise ValueError(f"unknown actor fields: {', '.join(sorted(map(str, unknown)))}")
        return cls(
            users=_string_list(data, "users"),
            teams=_string_list(data, "teams"),
            organizations=_string_list(data, "organizations"),
            admins=_flag(data, "admins"),
            write_collaborators=_flag(data, "write_collaborators"),
            permissions=[parse_permission(p) for p in _string_list(data, "permissions")],
        )