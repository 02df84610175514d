"""
Policies - the FastAPI side of route authorization.

A route declares its policy with a single dependency:

    @router.post("/posts")
    async def create_post(
        identity: Identity = Depends(policy("posts", "create", allow=["Administrator", "Editor"])),
    ):
        ...

Design:
- `policy()` returns a `RoutePolicy`, which is both the declaration and
  the per-request gate
- at startup `register_route_policies()` walks the app's routes and puts
  every declared rule into the application's PolicyRegistry
- per request the gate resolves the bearer credential, asks the
  PolicyEnforcer, and either raises 401/403 or returns the Identity
"""

import logging
from typing import Iterable

from fastapi import Depends, Request
from fastapi.dependencies.models import Dependant
from fastapi.routing import APIRoute
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bulletin.api.errors import http_error
from bulletin.auth.enforcer import PolicyEnforcer
from bulletin.auth.identity import Identity
from bulletin.auth.jwt import InvalidCredentialError, resolve_identity, verify_identity
from bulletin.auth.registry import PolicyRegistry, RoleSpec
from bulletin.config import Settings
from bulletin.core.result import Err, ErrorKind, forbidden

logger = logging.getLogger(__name__)


# Optional bearer (doesn't fail if no token)
optional_bearer = HTTPBearer(auto_error=False)


# =============================================================================
# App State Access
# =============================================================================


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_policy_registry(request: Request) -> PolicyRegistry:
    return request.app.state.policies


def get_enforcer(request: Request) -> PolicyEnforcer:
    return request.app.state.enforcer


def _token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    return credentials.credentials if credentials else None


# =============================================================================
# Identity Dependencies
# =============================================================================


async def get_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> Identity:
    """
    Identity for routes open to anonymous callers.

    A bad token is ignored and the caller is treated as anonymous.
    """
    return resolve_identity(_token(credentials), get_settings_from_app(request))


# =============================================================================
# RoutePolicy - declaration + gate
# =============================================================================


class RoutePolicy:
    """
    The policy a route declares, and the dependency that enforces it.

    `resource`/`action` may be None for routes that only need an
    authenticated caller and declare no rule.
    """

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        allow: RoleSpec = None,
        deny: RoleSpec = None,
        auth: bool = True,
    ):
        self.resource = resource
        self.action = action
        self.allow = allow
        self.deny = deny
        self.auth = auth

    @property
    def declares_rule(self) -> bool:
        return self.resource is not None and self.action is not None

    def register(self, registry: PolicyRegistry) -> None:
        if self.declares_rule:
            registry.register(self.resource, self.action, self.allow, self.deny)

    def resolve(self, request: Request, token: str | None) -> Identity:
        """Strict on authenticated routes, lenient on open ones."""
        settings = get_settings_from_app(request)
        if not self.auth:
            return resolve_identity(token, settings)
        try:
            return verify_identity(token, settings)
        except InvalidCredentialError as e:
            logger.info("Rejected credential on %s: %s", request.url.path, e)
            raise http_error(Err(ErrorKind.INVALID_CREDENTIAL, "Invalid credentials"))

    async def __call__(
        self,
        request: Request,
        credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
    ) -> Identity:
        settings = get_settings_from_app(request)
        token = _token(credentials)
        enforcer = get_enforcer(request)

        exempt = request.url.path in settings.docs_paths
        if exempt:
            identity = resolve_identity(token, settings)
        else:
            identity = self.resolve(request, token)

        # A declared rule missing from the registry was never registered:
        # deny rather than treat the route as open
        if not exempt and self.declares_rule and (self.resource, self.action) not in enforcer.registry:
            logger.error("Policy %s:%s declared on %s but not registered", self.resource, self.action, request.url.path)
            raise http_error(forbidden())

        result = enforcer.enforce(
            self.resource,
            self.action,
            identity,
            requires_auth=self.auth,
            exempt=exempt,
        )
        if not result.ok:
            raise http_error(result)

        return result.value

    def __repr__(self) -> str:
        return f"RoutePolicy({self.resource!r}, {self.action!r}, auth={self.auth})"


def policy(
    resource: str,
    action: str,
    allow: RoleSpec = None,
    deny: RoleSpec = None,
    auth: bool = True,
) -> RoutePolicy:
    """
    Declare the policy of a route.

    Args:
        resource: Resource name, e.g. "posts"
        action: Action name, e.g. "update"
        allow: Role(s), "self", or a wildcard ("*", "all", "any")
        deny: Role(s)
        auth: If True, anonymous callers are denied
    """
    return RoutePolicy(resource, action, allow=allow, deny=deny, auth=auth)


def authenticated() -> RoutePolicy:
    """Just require authentication, no rule."""
    return RoutePolicy(auth=True)


# =============================================================================
# Ownership
# =============================================================================


def ensure_self(identity: Identity, owner_id: str) -> None:
    """
    Finish a self-scoped decision.

    The enforcer only marks the identity; the handler must confirm the
    resource really belongs to the caller.
    """
    if identity.self_scoped and not identity.owns(owner_id):
        raise http_error(forbidden())


# =============================================================================
# Startup Registration
# =============================================================================


def _route_policies(dependant: Dependant) -> Iterable[RoutePolicy]:
    for dependency in dependant.dependencies:
        if isinstance(dependency.call, RoutePolicy):
            yield dependency.call
        yield from _route_policies(dependency)


def register_route_policies(routes: Iterable, registry: PolicyRegistry) -> int:
    """
    Register every policy declared by `routes`. Returns the rule count.

    Pass a router's own `.routes` (before including it in the app); routes
    nested in included routers or mounts are walked as well.

    Call once while building the app, before serving.
    """
    count = 0
    for route in routes:
        nested = getattr(route, "routes", None)
        if not isinstance(route, APIRoute):
            if nested:
                count += register_route_policies(nested, registry)
            continue
        for route_policy in _route_policies(route.dependant):
            if route_policy.declares_rule:
                route_policy.register(registry)
                count += 1
                logger.debug(
                    "%s %s -> %s:%s",
                    ",".join(sorted(route.methods)),
                    route.path,
                    route_policy.resource,
                    route_policy.action,
                )
    return count


