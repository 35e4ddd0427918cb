"""
core/config.py -- Study Planner settings, read from the environment.

Every knob the service has lives on Settings: the token signing key and
lifetime, the database URL, allowed CORS origins, and the AI provider
connection. Other modules ask get_settings() for them and never read
os.environ themselves.

Sources, highest priority first: explicit keyword arguments (tests only),
environment variables, then a .env file in the working directory. Names are
case-insensitive upper-case versions of the field names, so openai_api_key is
set with OPENAI_API_KEY.

get_settings() is wrapped in lru_cache, so the environment is read once per
process. Modules that capture settings at import time (auth/tokens.py,
api/main.py) therefore see the values present when they were first imported.

Signing key policy:
  - Keys shorter than 32 characters are refused in every mode.
  - With DEBUG=true and no SECRET_KEY, a random key is generated and a
    warning logged. Tokens issued by one process are useless to the next.
  - Without DEBUG, a missing SECRET_KEY stops startup.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
planner/, or ai/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("studyplanner.config")


class Settings(BaseSettings):
    """Runtime configuration. Every field has a default except the signing key,
    which validate_secret_key() fills in or rejects.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = 3600

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    # Any SQLAlchemy URL. Users, topics, and learning plans share one database.
    database_url: str = "sqlite:///studyplanner.db"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # AI provider (any OpenAI-compatible REST API)
    # ------------------------------------------------------------------

    # Empty string means the provider is disabled -- AI routes answer 503.
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: int = 60
    ai_json_max_tokens: int = 4096

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Generate a dev key or refuse to start; see the module docstring."""
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning(
                    "SECRET_KEY not set; using a generated key. Tokens will not survive a restart."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set it in the environment or .env, or run with DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, built on first call."""
    return Settings()
