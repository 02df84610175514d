"""
Roles and the role hierarchy.

This defines WHO ranks above whom, not WHAT they may do.
What each role may do lives in the policy registry.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """
    Roles, doubling as content visibility levels.

    `PUBLIC` and `PRIVATE` are visibility levels only and are never assigned
    to a user. `PRIVATE` ranks above `ADMINISTRATOR` so that rank comparison
    alone never reaches private content.
    """

    PUBLIC = "Public"
    SUBSCRIBER = "Subscriber"
    CONTRIBUTOR = "Contributor"
    AUTHOR = "Author"
    EDITOR = "Editor"
    ADMINISTRATOR = "Administrator"
    PRIVATE = "Private"

    @property
    def rank(self) -> int:
        return ROLE_RANK[self]

    @property
    def is_assignable(self) -> bool:
        """Can a user hold this role?"""
        return self in USER_ROLES


ROLE_RANK: dict[Role, int] = {
    Role.PUBLIC: 0,
    Role.SUBSCRIBER: 1,
    Role.CONTRIBUTOR: 2,
    Role.AUTHOR: 3,
    Role.EDITOR: 4,
    Role.ADMINISTRATOR: 5,
    Role.PRIVATE: 6,
}


# Roles a user account can hold, highest first
USER_ROLES: tuple[Role, ...] = (
    Role.ADMINISTRATOR,
    Role.EDITOR,
    Role.AUTHOR,
    Role.CONTRIBUTOR,
    Role.SUBSCRIBER,
)


def rank(role: Role) -> int:
    """Position of a role in the hierarchy. Only meaningful for comparison."""
    return ROLE_RANK[role]


def outranks_or_equals(role: Role, threshold: Role) -> bool:
    """Is `role` at least as high as `threshold`?"""
    return rank(role) >= rank(threshold)


def roles_at_or_below(role: Role) -> frozenset[Role]:
    """Every visibility level a holder of `role` reaches by rank."""
    return frozenset(r for r in Role if rank(r) <= rank(role))


def parse_user_role(value: str | Role) -> Role:
    """
    Parse an assignable role.

    Raises ValueError for unknown names and for visibility-only levels.
    """
    role = Role(value)
    if not role.is_assignable:
        raise ValueError(f"{role.value} is not an assignable role")
    return role
