"""
api/main.py -- FastAPI application entry point for Study Planner.

Exposes user accounts, topics, learning plans, and the AI plan generator over
HTTP.

Run with:  uvicorn asgi:app --reload

Access control:
  One AccessGuard is installed as an app-level dependency, so it runs before
  every route handler. PUBLIC_ROUTES is the complete list of (method, path)
  pairs it lets through unauthenticated; everything else needs a valid
  bearer token whose subject still exists.

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for allowed browser origins
  2. log_requests   -- one INFO line per request with status and latency

Lifespan builds the stores and services on startup and closes them on
shutdown, in reverse order.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.responses import JSONResponse

from ai.client import CompletionClient
from ai.service import AIService
from api.models import ErrorDetail, ErrorResponse
from api.routes.ai import router as ai_router
from api.routes.auth import router as auth_router
from api.routes.learning_plans import router as learning_plans_router
from api.routes.topics import router as topics_router
from api.routes.users import router as users_router
from auth.guard import AccessGuard
from auth.service import AuthService
from auth.store import UserStore
from core.config import get_settings
from planner.store import PlannerStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("studyplanner.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Access control
#
# Exact (method, path) matches only. Making a route public means adding it
# here and nowhere else.
# ---------------------------------------------------------------------------

PUBLIC_ROUTES: frozenset[tuple[str, str]] = frozenset(
    {
        ("POST", "/users"),
        ("POST", "/auth/login"),
    }
)

access_guard = AccessGuard(PUBLIC_ROUTES)


def _build_ai_service() -> AIService | None:
    """Return an AIService, or None (with a warning) when no API key is set."""
    if not _settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set -- AI endpoints will answer 503")
        return None
    client = CompletionClient(
        api_key=_settings.openai_api_key,
        base_url=_settings.openai_base_url,
        timeout=_settings.openai_timeout_seconds,
    )
    return AIService(client, model=_settings.openai_model, json_max_tokens=_settings.ai_json_max_tokens)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The auth service depends on the user store, so the store is
    built first and closed last.
    """
    logger.info("Study Planner API starting up")
    app.state.user_store = UserStore(_settings.database_url)
    app.state.planner_store = PlannerStore(_settings.database_url)
    app.state.auth_service = AuthService(
        app.state.user_store,
        token_expire_seconds=_settings.token_expire_seconds,
    )
    app.state.ai_service = _build_ai_service()
    logger.info(
        "Stores initialized (ai_enabled=%s)",
        app.state.ai_service is not None,
    )

    yield

    if app.state.ai_service is not None:
        app.state.ai_service.close()
    app.state.planner_store.close()
    app.state.user_store.close()
    logger.info("Study Planner API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Study Planner API",
    description="User accounts, topics, learning plans, and AI-generated study plans.",
    version="0.1.0",
    lifespan=lifespan,
    dependencies=[Depends(access_guard)],
    # Built-in /docs, /redoc and /openapi.json are replaced below so they sit
    # behind the guard like every other route.
    openapi_url=None,
    docs_url=None,
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(users_router, tags=["Users"])
app.include_router(topics_router, tags=["Topics"])
app.include_router(learning_plans_router, tags=["Learning Plans"])
app.include_router(ai_router, tags=["AI"])


# ---------------------------------------------------------------------------
# API documentation
#
# Registered as ordinary routes, so the app-level guard covers them too.
# ---------------------------------------------------------------------------


@app.get("/openapi.json", include_in_schema=False)
async def openapi_schema() -> JSONResponse:
    return JSONResponse(app.openapi())


@app.get("/docs", include_in_schema=False)
async def docs():
    """Swagger UI -- requires authentication."""
    return get_swagger_ui_html(openapi_url="/openapi.json", title="Study Planner API")


@app.get("/redoc", include_in_schema=False)
async def redoc():
    """ReDoc UI -- requires authentication."""
    return get_redoc_html(openapi_url="/openapi.json", title="Study Planner API")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    ApiError subclasses (core/errors.py) already carry a {"code", "message"}
    dict as detail; it is used directly as the error field. Plain
    HTTPExceptions get a generic http_<status> code.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )
