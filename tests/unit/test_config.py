"""Unit tests for AppSettings and sub-configs."""

import pytest

from config import (
    AppSettings,
    AuthSettings,
    LoggingSettings,
    RedisSettings,
    TokenSettings,
)


# ---------------------------------------------------------------------------
# RedisSettings
# ---------------------------------------------------------------------------


class TestRedisSettings:
    def test_redis_uri_optional(self, monkeypatch):
        monkeypatch.delenv("REDIS_URI", raising=False)
        assert RedisSettings().redis_uri is None

    def test_redis_uri_loaded(self, monkeypatch):
        monkeypatch.setenv("REDIS_URI", "redis://localhost:6379")
        assert RedisSettings().redis_uri == "redis://localhost:6379"

    def test_socket_timeout_default(self, monkeypatch):
        monkeypatch.delenv("REDIS_SOCKET_TIMEOUT", raising=False)
        assert RedisSettings().redis_socket_timeout == 5.0


# ---------------------------------------------------------------------------
# TokenSettings
# ---------------------------------------------------------------------------


class TestTokenSettings:
    def test_defaults(self, monkeypatch):
        for var in (
            "TOKEN_FETCH_TIMEOUT_SECONDS",
            "TOKEN_FETCH_CONCURRENCY",
            "TOKEN_KEY_PREFIX",
            "USER_TOKENS_KEY_PREFIX",
        ):
            monkeypatch.delenv(var, raising=False)
        s = TokenSettings()
        assert s.token_fetch_timeout_seconds == 2.0
        assert s.token_fetch_concurrency == 16
        assert s.token_key_prefix == "token:"
        assert s.user_tokens_key_prefix == "user_tokens:"

    def test_overrides_from_env(self, monkeypatch):
        monkeypatch.setenv("TOKEN_FETCH_CONCURRENCY", "4")
        monkeypatch.setenv("TOKEN_FETCH_TIMEOUT_SECONDS", "0.5")
        s = TokenSettings()
        assert s.token_fetch_concurrency == 4
        assert s.token_fetch_timeout_seconds == 0.5


# ---------------------------------------------------------------------------
# AuthSettings / LoggingSettings
# ---------------------------------------------------------------------------


def test_api_key_defaults_to_unconfigured(monkeypatch):
    monkeypatch.delenv("API_KEY", raising=False)
    assert AuthSettings().api_key == ""


def test_api_key_loaded(monkeypatch):
    monkeypatch.setenv("API_KEY", "s3cret")
    assert AuthSettings().api_key == "s3cret"


def test_logging_defaults(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    s = LoggingSettings()
    assert s.log_level == "INFO"
    assert s.log_format == "console"


# ---------------------------------------------------------------------------
# AppSettings
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "env, expected",
    [("production", True), ("development", False)],
    ids=["production", "development"],
)
def test_is_production(monkeypatch, env, expected):
    monkeypatch.setenv("ENV", env)
    assert AppSettings().is_production is expected


class TestAppSettings:
    def test_sub_configs_populated(self):
        s = AppSettings()
        for attr in ("redis", "tokens", "auth", "logging", "sentry"):
            assert getattr(s, attr) is not None, f"sub-config '{attr}' is None"

    def test_cors_origins_default(self):
        assert AppSettings().cors_origins == ["*"]

    def test_explicit_sub_config_kept(self):
        tokens = TokenSettings(token_fetch_concurrency=2)
        assert AppSettings(tokens=tokens).tokens.token_fetch_concurrency == 2
