"""
Tests for password hashing and invite tokens.
"""
from datetime import timedelta
from uuid import uuid4

import bcrypt
from jose import jwt

from delivery_service.core.config import settings
from delivery_service.core.security import (
    create_invite_token,
    decode_invite_token,
    get_password_hash,
)


class TestPasswords:
    """bcrypt hashing."""

    def test_hash_checks_with_bcrypt(self):
        hashed = get_password_hash("correct horse")

        assert hashed != "correct horse"
        assert bcrypt.checkpw(b"correct horse", hashed.encode("utf-8"))
        assert not bcrypt.checkpw(b"wrong horse", hashed.encode("utf-8"))

    def test_rounds_from_settings(self):
        hashed = get_password_hash("correct horse")
        assert hashed.startswith(f"$2b${settings.BCRYPT_ROUNDS:02d}$")


class TestInviteTokens:
    """Signed invite tokens."""

    def test_round_trip(self):
        agent_id = uuid4()
        token, expires_at = create_invite_token(agent_id)

        assert decode_invite_token(token) == agent_id
        assert expires_at.tzinfo is not None

    def test_expired_token_rejected(self):
        token, _ = create_invite_token(uuid4(), expires_delta=timedelta(seconds=-1))

        assert decode_invite_token(token) is None

    def test_tampered_token_rejected(self):
        token, _ = create_invite_token(uuid4())

        assert decode_invite_token(token[:-2] + "xx") is None

    def test_other_token_type_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "access"},
            settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
        )

        assert decode_invite_token(token) is None

    def test_tokens_are_unique(self):
        agent_id = uuid4()

        assert create_invite_token(agent_id)[0] != create_invite_token(agent_id)[0]
