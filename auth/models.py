"""
auth/models.py -- Domain dataclass for user accounts.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in planner/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/, core/, planner/, or ai/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    email is the login identifier and is unique across all users.

    hashed_password is the bcrypt hash. It is None on copies handed out by
    AuthService.validate_user() so a validated user can never leak its hash
    into a response or token payload.
    """

    name: str
    email: str
    mobile: str
    id: int | None = None
    hashed_password: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
