"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

REDIS_URI is optional: without it the app runs on the in-memory store, which
is only suitable for local development and tests.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    redis_uri: Optional[str] = None
    redis_socket_timeout: float = 5.0


class TokenSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Per-record fetch timeout and fan-out limit used while listing tokens
    token_fetch_timeout_seconds: float = 2.0
    token_fetch_concurrency: int = 16

    token_key_prefix: str = "token:"
    user_tokens_key_prefix: str = "user_tokens:"


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Empty means "not configured": every request is rejected
    api_key: str = ""


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "tokenkeeper"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    redis: Optional[RedisSettings] = None
    tokens: Optional[TokenSettings] = None
    auth: Optional[AuthSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.redis is None:
            self.redis = RedisSettings()
        if self.tokens is None:
            self.tokens = TokenSettings()
        if self.auth is None:
            self.auth = AuthSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
