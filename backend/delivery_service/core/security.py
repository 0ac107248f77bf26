"""
Credential utilities for delivery agents.

Uses bcrypt directly instead of passlib (deprecated/unmaintained).
Admin-created agents get a signed, expiring invite token instead of a
default password.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from delivery_service.core.config import settings

INVITE_TOKEN_TYPE = "invite"


# ============== Password Utilities ==============


def get_password_hash(password: str) -> str:
    """Generate password hash using bcrypt."""
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode("utf-8")


# ============== Invite Tokens ==============


_EPHEMERAL_KEY = secrets.token_urlsafe(32)


def _signing_key() -> str:
    # Development fallback keeps tokens verifiable within one process
    return settings.SECRET_KEY or _EPHEMERAL_KEY


def create_invite_token(
    agent_id: UUID,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, datetime]:
    """
    Create a signed invite token for an admin-created agent.

    Returns:
        (token, expires_at)
    """
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.INVITE_TOKEN_EXPIRE_HOURS)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode = {
        "sub": str(agent_id),
        "exp": expire,
        "type": INVITE_TOKEN_TYPE,
        "jti": secrets.token_hex(16),
    }

    token = jwt.encode(to_encode, _signing_key(), algorithm=settings.ALGORITHM)
    return token, expire


def decode_invite_token(token: str) -> Optional[UUID]:
    """Decode an invite token and return the agent id, or None if invalid."""
    try:
        payload = jwt.decode(token, _signing_key(), algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != INVITE_TOKEN_TYPE:
        return None

    try:
        return UUID(payload.get("sub", ""))
    except ValueError:
        return None
