"""
Authorization system - roles, ownership, and one policy per route.

Design principles:
1. A route declares its policy in a single dependency
2. Policies are collected into one registry at startup, then sealed
3. One decision table, shared by the enforcer and the scope report
4. Denials are values, and all look the same to the caller
"""

from bulletin.auth.roles import (
    Role,
    USER_ROLES,
    outranks_or_equals,
    parse_user_role,
    roles_at_or_below,
)
from bulletin.auth.identity import Identity
from bulletin.auth.registry import (
    PolicyRegistry,
    PolicyRegistryError,
    PolicyRule,
    SELF,
)
from bulletin.auth.enforcer import Outcome, PolicyEnforcer, enforce, evaluate
from bulletin.auth.scope import report_scope
from bulletin.auth.jwt import (
    InvalidCredentialError,
    issue_bearer,
    resolve_identity,
    verify_identity,
)
from bulletin.auth.policies import (
    RoutePolicy,
    authenticated,
    ensure_self,
    get_identity,
    policy,
    register_route_policies,
)

__all__ = [
    # Roles
    "Role",
    "USER_ROLES",
    "outranks_or_equals",
    "parse_user_role",
    "roles_at_or_below",
    # Identity
    "Identity",
    # Registry
    "PolicyRegistry",
    "PolicyRegistryError",
    "PolicyRule",
    "SELF",
    # Enforcer
    "Outcome",
    "PolicyEnforcer",
    "enforce",
    "evaluate",
    "report_scope",
    # Credentials
    "InvalidCredentialError",
    "issue_bearer",
    "resolve_identity",
    "verify_identity",
    # FastAPI
    "RoutePolicy",
    "authenticated",
    "ensure_self",
    "get_identity",
    "policy",
    "register_route_policies",
]
