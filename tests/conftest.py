"""
tests/conftest.py -- Shared test fixtures for Study Planner integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + planner
  - _patch_lifespan(): wires test stores and services into app.state
  - api_client: TestClient plus a valid bearer token for a registered user

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from ai.service import AIService
from api.main import app
from auth.models import User
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from planner.store import PlannerStore

TEST_NAME = "Test User"
TEST_EMAIL = "tester@example.com"
TEST_MOBILE = "5550100"
TEST_PASSWORD = "testpass123"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, PlannerStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. the test module's name).
    """
    users_url = f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true"
    planner_url = f"sqlite:///file:test_planner_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=users_url), PlannerStore(db_url=planner_url)


def _patch_lifespan(user_store: UserStore, planner_store: PlannerStore, ai_service):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database. The AI service is
    a MagicMock so no test ever reaches a real provider.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.planner_store = planner_store
        app.state.auth_service = AuthService(user_store, token_expire_seconds=3600)
        app.state.ai_service = ai_service
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The TestClient uses the real FastAPI app (real access guard, real routes)
    with a patched lifespan. The test user is registered before the client
    starts and can log in with TEST_EMAIL / TEST_PASSWORD.

    The mocked AI service is reachable as client.app.state.ai_service.
    """
    db_suffix = request.module.__name__.rsplit(".", 1)[-1]
    user_store, planner_store = _make_test_stores(db_suffix)

    uid = user_store.create_user(
        User(
            name=TEST_NAME,
            email=TEST_EMAIL,
            mobile=TEST_MOBILE,
            hashed_password=hash_password(TEST_PASSWORD),
        )
    )
    token = create_access_token(user_id=uid, email=TEST_EMAIL, name=TEST_NAME, expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(user_store, planner_store, MagicMock(spec=AIService))

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    user_store.close()
    planner_store.close()
