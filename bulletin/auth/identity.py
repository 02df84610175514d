"""
Identity - the "who is asking" for each request.

This is the lightweight object handed to route handlers and to every
authorization decision. It is derived per request and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from bulletin.auth.roles import Role


@dataclass(frozen=True)
class Identity:
    """
    The caller of a request.

    Usage in routes:
        async def my_route(identity: Identity = Depends(policy("posts", "update", ...))):
            if identity.self_scoped:
                # only allowed because of ownership; verify it
                ...

    `self_scoped` is set by the enforcer when the only path to permission
    was the "self" allowance. It is advisory: the handler still has to
    compare `subject_id` with the owner of the resource it touches.
    """

    subject_id: str | None = None
    role: Role | None = None
    self_scoped: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.subject_id is not None and self.role is not None

    @property
    def is_anonymous(self) -> bool:
        return not self.is_authenticated

    def owns(self, owner_id: str | None) -> bool:
        """Is this identity the owner of a resource owned by `owner_id`?"""
        return self.is_authenticated and owner_id is not None and str(owner_id) == self.subject_id

    def with_self_scope(self) -> Identity:
        return replace(self, self_scoped=True)

    @classmethod
    def anonymous(cls) -> Identity:
        """Create an anonymous identity (no user)."""
        return cls()
