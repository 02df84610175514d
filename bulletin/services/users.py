"""
User service.

Accounts, login, and the per-caller rules for listing and editing users.
"""

from __future__ import annotations

import logging
from typing import Any

from bulletin.auth.identity import Identity
from bulletin.auth.jwt import hash_password, verify_password
from bulletin.auth.roles import Role
from bulletin.core.models import User
from bulletin.core.result import Err, ErrorKind, Ok, Result, forbidden, not_found
from bulletin.core.utils import generate_id, utc_now
from bulletin.storage.base import Collections, StorageProvider

logger = logging.getLogger(__name__)


class UserService:
    """Everything the API does with user accounts."""

    def __init__(self, storage: StorageProvider):
        self.metadata = storage.metadata

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_user(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        doc = await self.metadata.get(Collections.USERS, user_id)
        return User.model_validate(doc) if doc else None

    async def get_user_by_email(self, email: str) -> User | None:
        docs = await self.metadata.query(Collections.USERS, {"email": email.lower()}, limit=1)
        return User.model_validate(docs[0]) if docs else None

    async def authenticate(self, email: str, password: str) -> User | None:
        """Authenticate user by email and password."""
        user = await self.get_user_by_email(email)
        if not user or not user.password_hash:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    # =========================================================================
    # Listing
    # =========================================================================

    async def list_users(self, identity: Identity) -> list[User]:
        """
        Users visible to the caller, ordered by email.

        Anonymous callers (or tokens for accounts that no longer exist) see
        public associate profiles; other non-administrators see only
        themselves; administrators see everyone.
        """
        caller = await self.get_user(identity.subject_id)

        if caller is None:
            docs = await self.metadata.query(Collections.USERS, {"is_public": True})
        elif not caller.is_administrator:
            docs = [caller.model_dump(mode="json")]
        else:
            docs = await self.metadata.query(Collections.USERS)

        users = [User.model_validate(doc) for doc in docs]
        return sorted(users, key=lambda u: u.email)

    # =========================================================================
    # Writing
    # =========================================================================

    async def create_user(
        self,
        *,
        email: str,
        password: str | None = None,
        role: Role = Role.SUBSCRIBER,
        **profile: Any,
    ) -> Result[User]:
        """Create an account. Conflict when the email is taken."""
        email = email.lower()
        if await self.get_user_by_email(email):
            return Err(ErrorKind.CONFLICT, "User already exists")

        user = User(
            id=generate_id(),
            email=email,
            password_hash=hash_password(password) if password else "",
            role=role,
            **profile,
        )
        await self._save(user)
        logger.info("User %s created with role %s", user.id, user.role.value)
        return Ok(user)

    async def update_user(
        self,
        identity: Identity,
        user_id: str,
        changes: dict[str, Any],
        password: str | None = None,
        new_password: str | None = None,
    ) -> Result[User]:
        """
        Update an account.

        Only an Administrator may change roles. Setting a new password
        needs the current one unless the caller is an Administrator.
        """
        user = await self.get_user(user_id)
        if user is None:
            return not_found("User not found")

        is_admin = identity.role == Role.ADMINISTRATOR
        changes = {key: value for key, value in changes.items() if value is not None}

        if "role" in changes and changes["role"] != user.role and not is_admin:
            return forbidden()

        if "email" in changes:
            changes["email"] = changes["email"].lower()
            other = await self.get_user_by_email(changes["email"])
            if other is not None and other.id != user.id:
                return Err(ErrorKind.CONFLICT, "User already exists")

        if new_password:
            if not is_admin and not (password and verify_password(password, user.password_hash)):
                return Err(ErrorKind.BAD_REQUEST, "Current password is incorrect")
            changes["password_hash"] = hash_password(new_password)

        changes["updated_at"] = utc_now()
        updated = User.model_validate({**user.model_dump(), **changes})
        await self._save(updated)
        logger.info("User %s updated by %s", user.id, identity.subject_id)
        return Ok(updated)

    async def ensure_user(self, email: str, password: str, role: Role) -> User:
        """Create the account if no user has this email. Used for seeding."""
        existing = await self.get_user_by_email(email)
        if existing is not None:
            return existing

        result = await self.create_user(email=email, password=password, role=role)
        if not result.ok:
            raise RuntimeError(f"Could not seed user {email}: {result.message}")
        return result.value

    # =========================================================================
    # Internal
    # =========================================================================

    async def _save(self, user: User) -> None:
        await self.metadata.save(Collections.USERS, user.id, user.model_dump(mode="json"))
