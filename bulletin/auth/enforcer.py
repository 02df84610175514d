"""
Route policy enforcer - the gate every protected request passes through.

For each request the enforcer answers one question: may this identity call
this (resource, action)? The answer is computed from the rule in the policy
registry, in a fixed order where each step short-circuits:

    1. documentation routes are exempt                      -> allow
    2. route requires auth and the caller is anonymous      -> deny
    3. no rule declared for (resource, action)              -> allow
    4. empty allow and deny, or a wildcard in allow         -> allow
    5. caller's role is in allow                            -> allow
    6. deny given, caller not in it, and no "self" in allow -> allow
    7. "self" in allow and caller not in deny               -> allow, self-scoped
    8. anything else                                        -> deny

A denial is a normal return value (`Err`), never an exception, and it never
carries the reason.
"""

from __future__ import annotations

import logging
from enum import Enum

from bulletin.auth.identity import Identity
from bulletin.auth.registry import PolicyRegistry, PolicyRule
from bulletin.auth.roles import Role
from bulletin.core.result import Ok, Result, forbidden

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """What a single rule says about a single role."""

    ALLOW = "allow"
    SELF = "self"      # allowed, but only on resources the caller owns
    DENY = "deny"


def evaluate(rule: PolicyRule, role: Role | None) -> Outcome:
    """
    Apply a rule's allow/deny lists to a role (steps 4-8).

    This is the single decision table shared by the enforcer and the
    scope reporter.
    """
    # Nothing declared, or explicitly open to anyone
    if rule.is_open or rule.has_wildcard:
        return Outcome.ALLOW

    if role is not None and role in rule.allow:
        return Outcome.ALLOW

    # A deny list without "self" lets everyone else through
    if rule.deny and role not in rule.deny and not rule.allows_self:
        return Outcome.ALLOW

    # Ownership path: let the handler finish the decision
    if rule.allows_self and role not in rule.deny:
        return Outcome.SELF

    return Outcome.DENY


def enforce(
    rule: PolicyRule | None,
    identity: Identity,
    requires_auth: bool,
    exempt: bool = False,
) -> Result[Identity]:
    """
    Decide whether `identity` may proceed past a route with `rule`.

    Returns `Ok(identity)` on allow, with `self_scoped` set when the
    self allowance was the deciding branch, or the uniform forbidden `Err`.
    """
    if exempt:
        return Ok(identity)

    if requires_auth and identity.is_anonymous:
        return forbidden()

    if rule is None:
        return Ok(identity)

    outcome = evaluate(rule, identity.role)

    if outcome is Outcome.ALLOW:
        return Ok(identity)
    if outcome is Outcome.SELF:
        return Ok(identity.with_self_scope())
    return forbidden()


class PolicyEnforcer:
    """
    Enforcer bound to a policy registry.

    Built once at startup and shared by all requests; holds no state
    besides the (read-only) registry.
    """

    def __init__(self, registry: PolicyRegistry):
        self.registry = registry

    def enforce(
        self,
        resource: str | None,
        action: str | None,
        identity: Identity,
        requires_auth: bool,
        exempt: bool = False,
    ) -> Result[Identity]:
        """Look up the rule for (resource, action) and apply it."""
        rule = None
        if resource is not None and action is not None:
            rule = self.registry.lookup(resource, action)

        result = enforce(rule, identity, requires_auth, exempt=exempt)

        if not result.ok:
            logger.info(
                "Policy denied: resource=%s action=%s subject=%s role=%s",
                resource,
                action,
                identity.subject_id or "anonymous",
                identity.role.value if identity.role else None,
            )
        return result
