"""
Health check endpoint.

GET /health — checks the token store.
Rules:
- Redis ping failure → "unhealthy" (503) — tokens cannot be issued or listed.
- In-memory store → "degraded" (200) — works, but nothing survives a restart.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from errors import StorageUnavailableError
from infrastructure.store.memory_store import InMemoryExpiringStore

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    store = request.app.state.store
    if isinstance(store, InMemoryExpiringStore):
        checks["store"] = "in_memory"
        overall = "degraded"
    else:
        try:
            await store.ping()
            checks["store"] = "ok"
        except StorageUnavailableError:
            checks["store"] = "error"
            overall = "unhealthy"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content={"status": overall, "checks": checks},
    )
