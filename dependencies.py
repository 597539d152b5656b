"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system.
"""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, Header, Request

from config import AppSettings
from errors import AuthenticationError
from infrastructure.store.protocol import ExpiringKeyValueStore
from services.token_service import TokenLifecycleManager
from shared.logging import get_logger

log = get_logger(__name__)


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_store(request: Request) -> ExpiringKeyValueStore:
    """Return the token store created in the app lifespan."""
    return request.app.state.store


def get_token_manager(
    store: ExpiringKeyValueStore = Depends(get_store),
    settings: AppSettings = Depends(get_settings),
) -> TokenLifecycleManager:
    """Build a per-request manager; it is stateless, so this is cheap."""
    return TokenLifecycleManager(
        store,
        fetch_timeout=settings.tokens.token_fetch_timeout_seconds,
        max_concurrent_fetches=settings.tokens.token_fetch_concurrency,
        token_key_prefix=settings.tokens.token_key_prefix,
        user_tokens_key_prefix=settings.tokens.user_tokens_key_prefix,
    )


def require_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="x-api-key"),
    settings: AppSettings = Depends(get_settings),
) -> None:
    """Reject the request unless ``x-api-key`` matches the configured API_KEY."""
    expected = settings.auth.api_key
    if not expected:
        log.warning("api_key_not_configured", api_key_configured=False)
        raise AuthenticationError("Invalid or missing API key")
    if x_api_key is None or not secrets.compare_digest(
        x_api_key.encode(), expected.encode()
    ):
        raise AuthenticationError("Invalid or missing API key")
