"""Unit tests for auth/tokens.py -- bcrypt hashing and JWT encode/decode.

No database and no HTTP. The signing key is the dev key generated by
get_settings() (conftest.py sets DEBUG=true before this module imports).
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import JWTError, jwt

from auth.tokens import (
    _ALGORITHM,
    _settings,
    burn_password_check,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert hashed.startswith("$2")
        assert verify_password("correct horse", hashed) is True

    def test_wrong_password_fails(self):
        assert verify_password("wrong", hash_password("right")) is False

    def test_same_password_hashes_differently(self):
        """A fresh salt per hash means equal passwords never share a hash."""
        assert hash_password("repeat") != hash_password("repeat")

    def test_malformed_hash_raises(self):
        """A corrupt stored hash is a fault, not a failed login."""
        with pytest.raises(ValueError):
            verify_password("anything", "not-a-bcrypt-hash")

    def test_burn_password_check_returns_nothing(self):
        assert burn_password_check("whatever") is None


class TestAccessTokens:
    def test_round_trip_claims(self):
        token = create_access_token(user_id=7, email="ada@example.com", name="Ada", expire_seconds=60)
        payload = decode_access_token(token)
        assert payload["sub"] == "7"
        assert payload["email"] == "ada@example.com"
        assert payload["name"] == "Ada"
        assert payload["exp"] > payload["iat"]

    def test_default_lifetime_comes_from_settings(self):
        payload = decode_access_token(create_access_token(1, "a@example.com", "A"))
        assert payload["exp"] - payload["iat"] == _settings.token_expire_seconds

    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": "1", "email": "a@example.com", "name": "A", "iat": past, "exp": past + timedelta(minutes=1)},
            _settings.secret_key,
            algorithm=_ALGORITHM,
        )
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_wrong_key_rejected(self):
        token = jwt.encode(
            {"sub": "1", "email": "a@example.com", "name": "A", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "x" * 64,
            algorithm=_ALGORITHM,
        )
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_missing_identity_claim_rejected(self):
        token = jwt.encode(
            {"sub": "1", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            _settings.secret_key,
            algorithm=_ALGORITHM,
        )
        with pytest.raises(JWTError, match="email"):
            decode_access_token(token)

    def test_missing_issued_at_rejected(self):
        token = jwt.encode(
            {"sub": "1", "email": "a@example.com", "name": "A", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            _settings.secret_key,
            algorithm=_ALGORITHM,
        )
        with pytest.raises(JWTError, match="iat"):
            decode_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(JWTError):
            decode_access_token("not.a.token")
