"""
auth/service.py -- Authentication orchestration.

AuthService composes the three auth collaborators:
  UserStore              -- credential lookup
  hash/verify_password   -- bcrypt
  create/decode token    -- python-jose

Failure contract:
  validate_user() returns None for "no match" and lets every collaborator
  failure (database error, corrupt hash) propagate unmodified. No retry,
  no fallback.

  validate_token() collapses EVERY verification failure -- malformed,
  expired, bad signature, missing claims -- into one UnauthorizedError with
  the fixed message "Invalid token". Distinct messages per cause would give
  a client an oracle for probing signatures and token formats.

Layer rule: no imports from api/, planner/, or ai/.
"""

from __future__ import annotations

import dataclasses
import logging

from jose import JWTError

from auth.models import User
from auth.store import UserStore
from auth.tokens import burn_password_check, create_access_token, decode_access_token, verify_password
from core.errors import UnauthorizedError

logger = logging.getLogger("studyplanner.auth")

INVALID_TOKEN_MESSAGE = "Invalid token"


class AuthService:
    """Credential validation, token issuance, and token verification.

    Usage:
        auth = AuthService(user_store)
        user = auth.validate_user("ada@example.com", "secret")
        if user is not None:
            body = auth.login(user)          # {"access_token": "..."}
        payload = auth.validate_token(body["access_token"])
    """

    def __init__(self, store: UserStore, token_expire_seconds: int = 0) -> None:
        self._store = store
        self._token_expire_seconds = token_expire_seconds

    def validate_user(self, email: str, password: str) -> User | None:
        """Return the user (without its password hash) if the credentials match.

        Always runs bcrypt whether or not the email exists:
        - Unknown email: bcrypt runs against the dummy hash, result discarded.
        - Wrong password: bcrypt runs against the real hash.
        """
        user = self._store.get_by_email(email)
        if user is None:
            burn_password_check(password)
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return dataclasses.replace(user, hashed_password=None)

    def login(self, user: User) -> dict[str, str]:
        """Issue an access token for an already-validated user.

        Does not re-check credentials; callers must pass a user obtained from
        validate_user().
        """
        token = create_access_token(
            user_id=user.id,
            email=user.email,
            name=user.name,
            expire_seconds=self._token_expire_seconds,
        )
        logger.info("Issued access token for user %s", user.id)
        return {"access_token": token}

    def validate_token(self, token: str) -> dict:
        """Verify a token and return its payload, or raise UnauthorizedError("Invalid token")."""
        try:
            return decode_access_token(token)
        except JWTError as exc:
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE) from exc

    def get_user(self, user_id: int | str) -> User | None:
        """Resolve a token subject to its current user record, without the hash.

        A non-numeric subject cannot name a stored user and resolves to None.
        """
        try:
            key = int(user_id)
        except (TypeError, ValueError):
            return None
        user = self._store.get_by_id(key)
        if user is None:
            return None
        return dataclasses.replace(user, hashed_password=None)
