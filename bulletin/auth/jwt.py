# =============================================================================
# JWT Credentials
# =============================================================================
#
# This module turns users into bearer tokens and bearer tokens back into
# identities:
#   - Token creation
#   - Strict verification (raises InvalidCredentialError)
#   - Lenient resolution (falls back to the anonymous identity)
#   - Password hashing
#
# =============================================================================

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel

from bulletin.auth.identity import Identity
from bulletin.auth.roles import Role, parse_user_role
from bulletin.config import Settings, get_settings
from bulletin.core.utils import utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Models
# =============================================================================

class TokenPayload(BaseModel):
    """Validated JWT claims."""
    sub: str  # user_id
    role: Role
    exp: datetime
    iat: datetime | None = None


# =============================================================================
# Errors
# =============================================================================

class InvalidCredentialError(Exception):
    """A bearer credential was supplied but cannot be trusted."""
    pass


class TokenExpiredError(InvalidCredentialError):
    """Token has expired."""
    pass


class TokenInvalidError(InvalidCredentialError):
    """Token is malformed, badly signed, or missing claims."""
    pass


# =============================================================================
# Password Hashing
# =============================================================================

def hash_password(password: str) -> str:
    """
    Hash a password using PBKDF2-SHA256.

    Returns: salt:hash format string
    """
    salt = secrets.token_hex(32)
    hash_bytes = hashlib.pbkdf2_hmac(
        'sha256',
        password.encode('utf-8'),
        salt.encode('utf-8'),
        iterations=100_000
    )
    return f"{salt}:{hash_bytes.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        salt, stored_hash = password_hash.split(':')
        hash_bytes = hashlib.pbkdf2_hmac(
            'sha256',
            password.encode('utf-8'),
            salt.encode('utf-8'),
            iterations=100_000
        )
        return secrets.compare_digest(hash_bytes.hex(), stored_hash)
    except (ValueError, AttributeError):
        return False


# =============================================================================
# Token Creation
# =============================================================================

def create_access_token(
    user_id: str,
    role: Role | str,
    settings: Settings | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """Create a signed JWT for a user."""
    settings = settings or get_settings()
    now = utc_now()
    expire = now + (expires_in if expires_in is not None else timedelta(days=settings.jwt_expire_days))

    payload = {
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": expire,
        "sub": user_id,
        "role": Role(role).value,
    }

    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def issue_bearer(user_id: str, role: Role | str, settings: Settings | None = None) -> str:
    """Create a token ready for the Authorization header ("Bearer <jwt>")."""
    settings = settings or get_settings()
    return f"{settings.token_type} {create_access_token(user_id, role, settings)}"


# =============================================================================
# Token Validation
# =============================================================================

def decode_token(token: str, settings: Settings | None = None) -> TokenPayload:
    """
    Decode and validate a JWT.

    Raises:
        TokenExpiredError: Token has expired
        TokenInvalidError: Token is invalid
    """
    settings = settings or get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "sub", "role"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {e}")

    try:
        role = parse_user_role(payload["role"])
    except ValueError:
        raise TokenInvalidError(f"Invalid role claim: {payload['role']!r}")

    iat = payload.get("iat")
    return TokenPayload(
        sub=str(payload["sub"]),
        role=role,
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        iat=datetime.fromtimestamp(iat, tz=timezone.utc) if iat is not None else None,
    )


def verify_identity(token: str | None, settings: Settings | None = None) -> Identity:
    """
    Strict resolution.

    No token means anonymous; a token that fails validation raises
    InvalidCredentialError.
    """
    if not token:
        return Identity.anonymous()

    payload = decode_token(token, settings)
    return Identity(subject_id=payload.sub, role=payload.role)


def resolve_identity(token: str | None, settings: Settings | None = None) -> Identity:
    """
    Lenient resolution.

    Any token that fails validation is treated as no token at all.
    """
    try:
        return verify_identity(token, settings)
    except InvalidCredentialError as e:
        logger.debug("Ignoring bad credential on open route: %s", e)
        return Identity.anonymous()
