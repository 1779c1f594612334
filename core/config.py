"""
core/config.py -- Centralized service configuration via pydantic-settings.

All environment variable reads for the SSO service happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. token_ttl_seconds -> TOKEN_TTL_SECONDS). Type coercion and
      validation are built in, so a bad value stops the process at startup.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or storage/.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    # Only affects logging: local = text/DEBUG, dev = JSON/DEBUG, prod = JSON/INFO.
    env: Literal["local", "dev", "prod"] = "local"
    storage_path: str = "sqlite:///./sso.db"

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = Field(default=44044, ge=1, le=65535)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_ttl_seconds: int = 3600
    # 12 is bcrypt's default work factor. Tests drop this to 4.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_token_ttl(self) -> "Settings":
        """Reject a non-positive TTL. Every issued token would be born expired."""
        if self.token_ttl_seconds <= 0:
            raise ValueError("TOKEN_TTL_SECONDS must be a positive number of seconds.")
        return self

    @property
    def token_ttl(self) -> timedelta:
        return timedelta(seconds=self.token_ttl_seconds)


@lru_cache
def get_settings() -> Settings:
    """Return the Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
