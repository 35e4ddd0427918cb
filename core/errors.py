"""
core/errors.py -- Raised error types for the CRUD side of the API.

Every error a route handler raises carries a structured detail dict
({"code", "message"}) so api/main.py can render it in the shared
ErrorResponse envelope without stringifying anything.

Two error conventions coexist on purpose:
  - CRUD and auth routes RAISE the ApiError subclasses below.
  - AI routes never raise on upstream failure; they RETURN an AIResult
    envelope with success=False (see ai/models.py).

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
planner/, or ai/.
"""

from __future__ import annotations

from fastapi import HTTPException


class ApiError(HTTPException):
    """Base class: an HTTPException whose detail is always {"code", "message"}."""

    status_code_default: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, headers: dict[str, str] | None = None) -> None:
        super().__init__(
            status_code=self.status_code_default,
            detail={"code": self.code, "message": message},
            headers=headers,
        )
        self.message = message


class NotFoundError(ApiError):
    """Requested entity is absent (404)."""

    status_code_default = 404
    code = "not_found"


class UnauthorizedError(ApiError):
    """Missing, invalid, or expired credentials (401).

    The message is always one of a small set of fixed strings. Callers must
    never put the underlying verification failure reason in it.
    """

    status_code_default = 401
    code = "unauthorized"

    def __init__(self, message: str) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ConflictError(ApiError):
    """Unique-key violation on insert or update (409)."""

    status_code_default = 409
    code = "conflict"


class BadRequestError(ApiError):
    """Request is well-formed but cannot be applied (400)."""

    status_code_default = 400
    code = "bad_request"


class ServiceUnavailableError(ApiError):
    """A required collaborator is not configured (503)."""

    status_code_default = 503
    code = "service_unavailable"
