"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the SSO service happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. token_ttl_seconds -> TOKEN_TTL_SECONDS). Type coercion and
      validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. Used to refuse a weak bcrypt cost in production.

Only the process bootstrap (main.py, api/main.py) reads Settings. The auth
service receives TTL, hashing cost and leeway by value at construction.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("sso.config")

# Below this cost a bcrypt hash takes only a few milliseconds on current CPUs.
_MIN_PROD_BCRYPT_ROUNDS = 10


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Process
    # ------------------------------------------------------------------

    # local: human-readable DEBUG logs; dev: DEBUG; prod: INFO.
    env: Literal["local", "dev", "prod"] = "local"
    host: str = "0.0.0.0"  # nosec B104 -- container deployments bind all interfaces
    port: int = Field(default=8080, ge=1, le=65535)
    shutdown_timeout_seconds: int = Field(default=5, gt=0)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = "sqlite:///./storage/sso.db"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_ttl_seconds: int = Field(default=3600, gt=0)
    # 0 = strict expiry check, no clock skew tolerance.
    token_leeway_seconds: int = Field(default=0, ge=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def token_ttl(self) -> timedelta:
        return timedelta(seconds=self.token_ttl_seconds)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_prod_hardening(self) -> "Settings":
        """Refuse to start in production with a cheap password hash.

        Low bcrypt rounds are useful in tests (BCRYPT_ROUNDS=4 keeps the
        suite fast) but make offline brute force of a leaked users table
        practical. Local and dev environments only get a warning.
        """
        if self.bcrypt_rounds < _MIN_PROD_BCRYPT_ROUNDS:
            if self.env == "prod":
                raise ValueError(f"BCRYPT_ROUNDS must be at least {_MIN_PROD_BCRYPT_ROUNDS} in production.")
            logger.warning("Using bcrypt cost %d -- not suitable for production.", self.bcrypt_rounds)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
