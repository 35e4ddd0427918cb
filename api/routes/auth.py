"""
api/routes/auth.py -- Login and current-user routes.

Routes:
  POST /auth/login -- public; exchange email + password for an access token
  GET  /auth/me    -- the user the access guard resolved for this request

Login never reveals which half of the credentials was wrong: unknown email
and wrong password produce the same 401 body, and AuthService.validate_user()
equalizes their timing. Both outcomes carry Cache-Control: no-store so no
proxy or browser cache keeps a token or a failed attempt.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, UserResponse
from auth.dependencies import get_current_user
from auth.models import User
from auth.service import AuthService

router = APIRouter()

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and return a bearer token."""
    auth: AuthService = request.app.state.auth_service
    user = auth.validate_user(body.email, body.password)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "unauthorized", "message": INVALID_CREDENTIALS_MESSAGE}},
            headers={"WWW-Authenticate": "Bearer"},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(status_code=200, content=LoginResponse(**auth.login(user)).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)) -> UserResponse:
    """Return the authenticated user's profile."""
    return UserResponse.from_user(user)
