"""
auth/guard.py -- Application-wide access guard.

AccessGuard is installed once as an app-level FastAPI dependency
(FastAPI(dependencies=[Depends(guard)])), so every route is protected unless
its (method, path) pair appears in the guard's exemption set.

Exemptions:
  The set of public (method, path) pairs is passed to the constructor and
  compared by exact string equality -- no prefixes, no patterns, no config
  file. Making a new endpoint public is a code change at the single place
  api/main.py builds the guard, which keeps the trust boundary auditable.

Verification (every non-exempt request, exactly once):
  1. Read the bearer token from the Authorization header.
  2. AuthService.validate_token() -- signature and expiry.
  3. AuthService.get_user() -- the token subject must still exist.
  Any of these coming up empty leaves the request without a user.
  handle_request() turns that into a 401; an exception raised while
  resolving the user is re-raised unchanged.

The resolved user is stored on request.state.user for route handlers
(see auth/dependencies.get_current_user).

Layer rule: no imports from api/, planner/, or ai/.
"""

import logging
from collections.abc import Iterable

from fastapi import Request

from auth.models import User
from auth.service import AuthService
from core.errors import UnauthorizedError

logger = logging.getLogger("studyplanner.auth")

MISSING_USER_MESSAGE = "Invalid or expired token"


def bearer_token(request: Request) -> str | None:
    """Return the token from an "Authorization: Bearer <token>" header, or None."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AccessGuard:
    """Per-request authorization decision point.

    Usage:
        guard = AccessGuard({("POST", "/users"), ("POST", "/auth/login")})
        app = FastAPI(dependencies=[Depends(guard)])
    """

    def __init__(self, exemptions: Iterable[tuple[str, str]]) -> None:
        self.exemptions: frozenset[tuple[str, str]] = frozenset(
            (method.upper(), path) for method, path in exemptions
        )

    def is_exempt(self, method: str, path: str) -> bool:
        return (method.upper(), path) in self.exemptions

    def handle_request(self, error: BaseException | None, user: User | None) -> User:
        """Map the verification outcome to allow (return user) or deny (raise).

        An upstream error wins over a missing user and is re-raised as-is so
        its type and message reach the error handlers untouched.
        """
        if error is not None:
            raise error
        if user is None:
            raise UnauthorizedError(MISSING_USER_MESSAGE)
        return user

    def __call__(self, request: Request) -> User | None:
        if self.is_exempt(request.method, request.url.path):
            return None

        error: Exception | None = None
        user: User | None = None
        try:
            user = self._verify(request)
        except Exception as exc:  # noqa: BLE001 -- handed to handle_request, which re-raises it
            error = exc

        user = self.handle_request(error, user)
        request.state.user = user
        return user

    def _verify(self, request: Request) -> User | None:
        token = bearer_token(request)
        if token is None:
            return None
        auth: AuthService = request.app.state.auth_service
        try:
            payload = auth.validate_token(token)
        except UnauthorizedError:
            logger.debug("Rejected token on %s %s", request.method, request.url.path)
            return None
        return auth.get_user(payload["sub"])
