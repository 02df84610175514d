"""
Scope reporter - what can the current caller do?

Replays every registered rule through the enforcer's own decision table,
so the report always agrees with what the enforcer would decide.
"""

from __future__ import annotations

from bulletin.auth.enforcer import Outcome, evaluate
from bulletin.auth.identity import Identity
from bulletin.auth.registry import PolicyRegistry


SELF_SUFFIX = ":self"


def report_scope(identity: Identity, registry: PolicyRegistry) -> dict[str, list[str]]:
    """
    Map each resource to the actions this identity may invoke.

    Actions permitted only through ownership are suffixed with ":self".
    Resources with nothing permitted are left out.

        {"posts": ["create", "update:self"], "users": ["update:self", "view:self"]}
    """
    scope: dict[str, list[str]] = {}

    for rule in registry:
        outcome = evaluate(rule, identity.role)
        if outcome is Outcome.ALLOW:
            scope.setdefault(rule.resource, []).append(rule.action)
        elif outcome is Outcome.SELF:
            scope.setdefault(rule.resource, []).append(rule.action + SELF_SUFFIX)

    return {resource: sorted(actions) for resource, actions in sorted(scope.items())}
