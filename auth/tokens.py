"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub (user id as a string), email, name, iat, and exp. Verification
       raises jose.JWTError on any failure; AuthService collapses every such
       failure into one Unauthorized message.

  Passwords: bcrypt, used directly. Bcrypt is the right choice for
       low-entropy secrets because its cost factor makes brute-force
       expensive. _DUMMY_HASH enables timing equalization in
       AuthService.validate_user() so response time does not reveal whether
       an email is registered.

  SECRET_KEY: sourced from core.config.get_settings(). See Settings for the
       dev/production key policy.

Layer rule: no imports from api/, planner/, or ai/. Import from core/ is
allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# Claims every token issued by create_access_token() carries.
_REQUIRED_CLAIMS = ("sub", "email", "name", "iat", "exp")

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
#
# passlib's wrap-bug detection builds a password longer than 72 bytes, which
# bcrypt 4.x rejects outright. Direct bcrypt usage has no compatibility shim.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only reads 72 bytes of input and recent releases reject anything
    longer. The API layer caps password fields at 72 UTF-8 bytes.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt compares in constant time. A malformed stored hash raises
    ValueError, which propagates: a corrupt credential record is a store
    fault, not a wrong password.
    """
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("studyplanner_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run one bcrypt comparison against the dummy hash and discard the result.

    Called when no credential record exists, so an unknown email costs the
    same bcrypt work as a wrong password.
    """
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int | str, email: str, name: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT carrying the user's identity.

    Args:
        user_id:        Database ID, stored as the string "sub" claim (JOSE
                        requires sub to be a string).
        email:          Login email.
        name:           Display name.
        expire_seconds: Token lifetime. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "name": name,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and verify a JWT. Returns the payload dict.

    Raises jose.JWTError (or a subclass such as ExpiredSignatureError) on a
    bad signature, an expired token, a malformed string, or a payload missing
    one of the identity claims.
    """
    payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    missing = [claim for claim in _REQUIRED_CLAIMS if claim not in payload]
    if missing:
        raise JWTError(f"Token is missing claims: {', '.join(missing)}")
    return payload
