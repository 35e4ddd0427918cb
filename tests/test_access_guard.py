"""Unit tests for auth/guard.py -- AccessGuard decisions without the HTTP stack.

Requests are SimpleNamespace stand-ins carrying only what the guard reads:
method, url.path, headers, app.state.auth_service and state. The auth service
is a MagicMock so each test decides what verification yields.

The end-to-end behaviour through FastAPI is covered in test_api_routes.py.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from auth.guard import MISSING_USER_MESSAGE, AccessGuard, bearer_token
from auth.models import User
from auth.service import AuthService
from core.errors import UnauthorizedError

PUBLIC = {("POST", "/users"), ("POST", "/auth/login")}
ADA = User(id=1, name="Ada", email="ada@example.com", mobile="555")


def _request(method: str, path: str, token: str | None = "tok", auth=None) -> SimpleNamespace:
    headers = {"Authorization": f"Bearer {token}"} if token is not None else {}
    if auth is None:
        auth = MagicMock(spec=AuthService)
    return SimpleNamespace(
        method=method,
        url=SimpleNamespace(path=path),
        headers=headers,
        app=SimpleNamespace(state=SimpleNamespace(auth_service=auth)),
        state=SimpleNamespace(),
    )


@pytest.fixture
def auth():
    service = MagicMock(spec=AuthService)
    service.validate_token.return_value = {"sub": "1"}
    service.get_user.return_value = ADA
    return service


class TestBearerToken:
    def test_extracts_token(self):
        assert bearer_token(_request("GET", "/x", token="abc")) == "abc"

    def test_scheme_is_case_insensitive(self):
        req = _request("GET", "/x", token=None)
        req.headers = {"Authorization": "bearer abc"}
        assert bearer_token(req) == "abc"

    @pytest.mark.parametrize("header", ["", "Bearer", "Bearer   ", "Basic abc", "abc"])
    def test_unusable_headers(self, header):
        req = _request("GET", "/x", token=None)
        req.headers = {"Authorization": header}
        assert bearer_token(req) is None


class TestExemptions:
    def test_exact_pairs_only(self):
        guard = AccessGuard(PUBLIC)
        assert guard.is_exempt("POST", "/users")
        assert guard.is_exempt("post", "/auth/login")
        assert not guard.is_exempt("GET", "/users")
        assert not guard.is_exempt("POST", "/users/")
        assert not guard.is_exempt("POST", "/users/search")

    @pytest.mark.parametrize("method,path", sorted(PUBLIC))
    def test_exempt_request_never_verifies(self, auth, method, path):
        req = _request(method, path, token=None, auth=auth)
        assert AccessGuard(PUBLIC)(req) is None
        auth.validate_token.assert_not_called()
        auth.get_user.assert_not_called()


class TestVerification:
    def test_valid_token_attaches_user(self, auth):
        req = _request("GET", "/topics", auth=auth)
        assert AccessGuard(PUBLIC)(req) is ADA
        assert req.state.user is ADA
        auth.validate_token.assert_called_once_with("tok")
        auth.get_user.assert_called_once_with("1")

    def test_missing_token_is_401(self, auth):
        req = _request("GET", "/topics", token=None, auth=auth)
        with pytest.raises(UnauthorizedError) as excinfo:
            AccessGuard(PUBLIC)(req)
        assert excinfo.value.message == MISSING_USER_MESSAGE
        auth.validate_token.assert_not_called()

    def test_invalid_token_is_401_without_user_lookup(self, auth):
        auth.validate_token.side_effect = UnauthorizedError("Invalid token")
        req = _request("GET", "/topics", auth=auth)
        with pytest.raises(UnauthorizedError) as excinfo:
            AccessGuard(PUBLIC)(req)
        assert excinfo.value.message == MISSING_USER_MESSAGE
        auth.get_user.assert_not_called()

    def test_unknown_subject_is_401(self, auth):
        auth.get_user.return_value = None
        with pytest.raises(UnauthorizedError):
            AccessGuard(PUBLIC)(_request("GET", "/topics", auth=auth))

    def test_lookup_error_is_reraised_unchanged(self, auth):
        boom = RuntimeError("database is locked")
        auth.get_user.side_effect = boom
        with pytest.raises(RuntimeError) as excinfo:
            AccessGuard(PUBLIC)(_request("GET", "/topics", auth=auth))
        assert excinfo.value is boom


class TestHandleRequest:
    def test_user_is_returned(self):
        assert AccessGuard(PUBLIC).handle_request(None, ADA) is ADA

    def test_error_wins_over_user(self):
        err = ValueError("upstream")
        with pytest.raises(ValueError) as excinfo:
            AccessGuard(PUBLIC).handle_request(err, ADA)
        assert excinfo.value is err

    def test_no_user_is_401(self):
        with pytest.raises(UnauthorizedError) as excinfo:
            AccessGuard(PUBLIC).handle_request(None, None)
        assert excinfo.value.headers == {"WWW-Authenticate": "Bearer"}
