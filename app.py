"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppSettings
from errors import register_error_handlers
from infrastructure.store.memory_store import InMemoryExpiringStore
from infrastructure.store.protocol import ExpiringKeyValueStore
from infrastructure.store.redis_client import build_redis_client, mask_uri
from infrastructure.store.redis_store import RedisTokenStore
from routes.health_routes import router as health_router
from routes.token_routes import router as token_router
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    store: Optional[ExpiringKeyValueStore] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application.

    ``store`` overrides the store built from settings (used by tests).
    """
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging.log_level, settings.logging.log_format)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        app.state.settings = settings

        redis_client = None
        if store is not None:
            app.state.store = store
        elif settings.redis.redis_uri:
            redis_client = build_redis_client(
                settings.redis.redis_uri, settings.redis.redis_socket_timeout
            )
            app.state.store = RedisTokenStore(redis_client)
            log.info(
                "token_store_ready",
                backend="redis",
                uri=mask_uri(settings.redis.redis_uri),
            )
        else:
            app.state.store = InMemoryExpiringStore()
            log.warning("token_store_in_memory", reason="redis_uri_not_configured")

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(token_router)

    return app
