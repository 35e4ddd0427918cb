"""
auth/dependencies.py -- FastAPI Depends() helpers for authenticated routes.

Authentication itself happens once per request in the app-level AccessGuard
(auth/guard.py). These helpers only read what the guard resolved.

get_current_user() is used by handlers that need the caller's identity
(e.g. GET /auth/me). It raises 401 when called on a route the guard left
public, so a handler can never silently run without a user it asked for.

Layer rule: no imports from api/, planner/, or ai/.
"""

from __future__ import annotations

from fastapi import Request

from auth.guard import MISSING_USER_MESSAGE
from auth.models import User
from core.errors import UnauthorizedError


def get_current_user(request: Request) -> User:
    """Return the user the AccessGuard attached to this request.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: User = Depends(get_current_user)): ...
    """
    user = getattr(request.state, "user", None)
    if user is None:
        raise UnauthorizedError(MISSING_USER_MESSAGE)
    return user
