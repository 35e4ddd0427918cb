"""Unit tests for core/config.py -- Settings defaults and the SECRET_KEY policy.

Settings() is constructed directly with keyword arguments, which take
precedence over environment variables, so these tests are independent of the
DEBUG=true set by conftest.py.
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings

_KEY = "k" * 32


def test_production_requires_secret_key():
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(debug=False, secret_key="")


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(debug=True, secret_key="too-short")


def test_debug_generates_secret_key():
    settings = Settings(debug=True, secret_key="")
    assert len(settings.secret_key) == 64


def test_defaults():
    settings = Settings(debug=False, secret_key=_KEY)
    assert settings.token_expire_seconds == 3600
    assert settings.database_url == "sqlite:///studyplanner.db"
    assert settings.openai_base_url == "https://api.openai.com/v1"
    assert settings.ai_json_max_tokens == 4096


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
    monkeypatch.setenv("TOKEN_EXPIRE_SECONDS", "60")
    settings = Settings(debug=False, secret_key=_KEY)
    assert settings.openai_api_key == "sk-from-env"
    assert settings.token_expire_seconds == 60


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
