"""
Policy registry.

The registry is the table of "which roles may call which action on which
resource". Routes declare their rule; the application registers every
declared rule once while it is being built, then seals the registry. From
then on it is only read, so concurrent requests share it without locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Union

from bulletin.auth.roles import Role

logger = logging.getLogger(__name__)


SELF = "self"
WILDCARDS: frozenset[str] = frozenset({"*", "all", "any"})

# An allow entry is a role, "self", or a wildcard marker
AllowEntry = Union[Role, str]
RoleSpec = Union[str, Role, Iterable[Union[str, Role]], None]


class PolicyRegistryError(Exception):
    """Raised when a rule is malformed or registered too late."""
    pass


@dataclass(frozen=True)
class PolicyRule:
    """The declared policy of one (resource, action) pair."""

    resource: str
    action: str
    allow: frozenset[AllowEntry] = frozenset()
    deny: frozenset[Role] = frozenset()

    @property
    def key(self) -> tuple[str, str]:
        return (self.resource, self.action)

    @property
    def is_open(self) -> bool:
        """No restriction declared at all."""
        return not self.allow and not self.deny

    @property
    def has_wildcard(self) -> bool:
        return any(entry in WILDCARDS for entry in self.allow if not isinstance(entry, Role))

    @property
    def allows_self(self) -> bool:
        return SELF in self.allow

    @property
    def allowed_roles(self) -> frozenset[Role]:
        """The explicit roles in the allow list, without markers."""
        return frozenset(entry for entry in self.allow if isinstance(entry, Role))


def _as_list(spec: RoleSpec) -> list[str | Role]:
    if spec is None:
        return []
    if isinstance(spec, (str, Role)):
        return [spec]
    return list(spec)


def normalize_allow(spec: RoleSpec) -> frozenset[AllowEntry]:
    """Normalize an allow spec (single value or collection) to a set."""
    entries: set[AllowEntry] = set()
    for item in _as_list(spec):
        if isinstance(item, Role):
            entries.add(item)
        elif item == SELF or item in WILDCARDS:
            entries.add(item)
        else:
            entries.add(_parse_role(item))
    return frozenset(entries)


def normalize_deny(spec: RoleSpec) -> frozenset[Role]:
    """Normalize a deny spec (single value or collection) to a set of roles."""
    return frozenset(
        item if isinstance(item, Role) else _parse_role(item)
        for item in _as_list(spec)
    )


def _parse_role(name: str) -> Role:
    try:
        return Role(name)
    except ValueError:
        raise PolicyRegistryError(f"Unknown role in policy: {name!r}") from None


class PolicyRegistry:
    """
    In-memory table of policy rules keyed by (resource, action).

    At most one rule per key: registering a key again replaces the rule.
    """

    def __init__(self):
        self._rules: dict[tuple[str, str], PolicyRule] = {}
        self._sealed = False

    def register(
        self,
        resource: str,
        action: str,
        allow: RoleSpec = None,
        deny: RoleSpec = None,
    ) -> PolicyRule:
        """Register (or replace) the rule for a (resource, action) pair."""
        if self._sealed:
            raise PolicyRegistryError(
                f"Cannot register '{resource}:{action}': registry is sealed"
            )

        rule = PolicyRule(
            resource=resource,
            action=action,
            allow=normalize_allow(allow),
            deny=normalize_deny(deny),
        )

        previous = self._rules.get(rule.key)
        if previous is not None and previous != rule:
            logger.warning("Policy %s:%s replaced by a different rule", resource, action)

        self._rules[rule.key] = rule
        logger.debug("Registered policy %s:%s", resource, action)
        return rule

    def lookup(self, resource: str, action: str) -> PolicyRule | None:
        """Get the rule for a (resource, action) pair, if one is declared."""
        return self._rules.get((resource, action))

    def seal(self) -> None:
        """End the registration phase. Lookups only from here on."""
        self._sealed = True
        logger.info("Policy registry sealed with %d rules", len(self._rules))

    @property
    def sealed(self) -> bool:
        return self._sealed

    def resources(self) -> list[str]:
        """All resources with at least one rule, sorted."""
        return sorted({resource for resource, _ in self._rules})

    def __iter__(self) -> Iterator[PolicyRule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, key: object) -> bool:
        return key in self._rules
