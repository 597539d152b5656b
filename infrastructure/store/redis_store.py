"""Redis-backed ExpiringKeyValueStore.

Uses ``SET ... EXAT`` so the record expiry is an absolute instant fixed at
creation, and plain Redis sets for the per-user index. Every Redis failure is
translated into the application's storage errors; nothing is swallowed here.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from errors import StorageTimeoutError, StorageUnavailableError
from shared.logging import get_logger

log = get_logger(__name__)


class RedisTokenStore:
    def __init__(self, redis_client: aioredis.Redis) -> None:
        self._redis = redis_client

    def _fail(self, op: str, exc: RedisError) -> StorageUnavailableError:
        log.error(
            "redis_operation_failed",
            op=op,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        if isinstance(exc, RedisTimeoutError):
            return StorageTimeoutError(f"redis {op} timed out")
        return StorageUnavailableError(f"redis {op} failed")

    async def set_with_absolute_expiry(
        self, key: str, value: str, expire_at: int
    ) -> None:
        try:
            await self._redis.set(key, value, exat=expire_at)
        except RedisError as e:
            raise self._fail("set", e) from e

    async def add_to_set(self, set_key: str, member: str) -> None:
        try:
            await self._redis.sadd(set_key, member)
        except RedisError as e:
            raise self._fail("sadd", e) from e

    async def list_set_members(self, set_key: str) -> set[str]:
        try:
            members = await self._redis.smembers(set_key)
        except RedisError as e:
            raise self._fail("smembers", e) from e
        return {m.decode() if isinstance(m, bytes) else m for m in members or ()}

    async def get(self, key: str) -> Optional[str]:
        try:
            raw = await self._redis.get(key)
        except RedisError as e:
            raise self._fail("get", e) from e
        if isinstance(raw, bytes):
            return raw.decode()
        return raw

    async def remove_from_set(self, set_key: str, member: str) -> None:
        try:
            await self._redis.srem(set_key, member)
        except RedisError as e:
            raise self._fail("srem", e) from e

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            raise self._fail("ping", e) from e
