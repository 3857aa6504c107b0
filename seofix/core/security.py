"""
Reviewer roles, password hashing and access tokens for the fix API.

Roles are ordered: a viewer can read the ledger, a reviewer can also approve,
reject, apply and publish fixes, and an admin can also manage accounts. A
token carries the role it was issued with; a token whose role claim is not
one of ROLES is rejected on decode.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from seofix.core.config import settings
from seofix.models.user import ROLES

BCRYPT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes.
BCRYPT_MAX_BYTES = 72

USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

ROLE_RANK = {role: rank for rank, role in enumerate(ROLES)}


def is_known_role(role: object) -> bool:
    return isinstance(role, str) and role in ROLE_RANK


def has_role(role: str, minimum: str) -> bool:
    """True when role is at least minimum, e.g. has_role('admin', 'reviewer')."""
    if minimum not in ROLE_RANK:
        raise ValueError(f"unknown role: {minimum!r}")
    return is_known_role(role) and ROLE_RANK[role] >= ROLE_RANK[minimum]


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(
        _password_bytes(plain_password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    ).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(sub: str | int, role: str, expires_minutes: int | None = None) -> str:
    """Signed token for a reviewer account. Raises ValueError for an unknown role."""
    if not is_known_role(role):
        raise ValueError(f"cannot issue a token for unknown role {role!r}")
    now = datetime.now(UTC)
    minutes = settings.JWT_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    payload: dict[str, Any] = {
        "sub": str(sub),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises jwt.PyJWTError on a bad signature, an expired token, a missing
    subject or a role claim outside ROLES.
    """
    payload = jwt.decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
    if not is_known_role(payload.get("role")):
        raise jwt.InvalidTokenError("token carries no known reviewer role")
    return payload
