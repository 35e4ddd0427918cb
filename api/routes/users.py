"""
api/routes/users.py -- User account routes.

Routes (static paths before /users/{user_id} to avoid path capture):
  POST   /users                  -- public registration
  GET    /users                  -- list all users
  POST   /users/search           -- first user matching the given fields
  GET    /users/email/{email}    -- lookup by email
  GET    /users/mobile/{mobile}  -- lookup by mobile
  GET    /users/{user_id}        -- lookup by id
  PUT    /users/{user_id}        -- partial update (password re-hashed)
  DELETE /users/{user_id}        -- delete; returns true

Passwords are hashed before they reach the store and never leave it:
responses are built with UserResponse, which has no password field.
Emails are unique; a duplicate on create or update is a 409.
"""

import logging

from fastapi import APIRouter, Request
from sqlalchemy.exc import IntegrityError

from api.models import UserCreate, UserQuery, UserResponse, UserUpdate
from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from core.errors import BadRequestError, ConflictError, NotFoundError

logger = logging.getLogger("studyplanner.api")

router = APIRouter()

USER_NOT_FOUND_MESSAGE = "User not found."
DUPLICATE_EMAIL_MESSAGE = "A user with this email already exists."


def _user_or_404(user: User | None) -> UserResponse:
    if user is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return UserResponse.from_user(user)


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserResponse:
    """Register a new user. No authentication required."""
    store: UserStore = request.app.state.user_store
    user = User(
        name=body.name,
        email=body.email,
        mobile=body.mobile,
        hashed_password=hash_password(body.password),
    )
    try:
        user_id = store.create_user(user)
    except IntegrityError as exc:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from exc
    logger.info("Registered user %d", user_id)
    return UserResponse.from_user(store.get_by_id(user_id))


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in store.list_users()]


@router.post("/users/search", response_model=UserResponse)
def search_users(request: Request, body: UserQuery) -> UserResponse:
    """Return the first user whose fields equal every non-empty field in the body."""
    store: UserStore = request.app.state.user_store
    return _user_or_404(store.find_one(**body.filters()))


@router.get("/users/email/{email}", response_model=UserResponse)
def get_user_by_email(request: Request, email: str) -> UserResponse:
    store: UserStore = request.app.state.user_store
    return _user_or_404(store.get_by_email(email))


@router.get("/users/mobile/{mobile}", response_model=UserResponse)
def get_user_by_mobile(request: Request, mobile: str) -> UserResponse:
    store: UserStore = request.app.state.user_store
    return _user_or_404(store.get_by_mobile(mobile))


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: int) -> UserResponse:
    store: UserStore = request.app.state.user_store
    return _user_or_404(store.get_by_id(user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(request: Request, user_id: int, body: UserUpdate) -> UserResponse:
    """Apply the fields present in the body. A new password is hashed first."""
    store: UserStore = request.app.state.user_store
    fields = body.model_dump(exclude_none=True)
    if not fields:
        raise BadRequestError("No fields to update.")
    if "password" in fields:
        fields["hashed_password"] = hash_password(fields.pop("password"))

    try:
        updated = store.update_user(user_id, **fields)
    except IntegrityError as exc:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from exc
    if not updated:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return _user_or_404(store.get_by_id(user_id))


@router.delete("/users/{user_id}")
def delete_user(request: Request, user_id: int) -> bool:
    store: UserStore = request.app.state.user_store
    if not store.delete_user(user_id):
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    logger.info("Deleted user %d", user_id)
    return True
