"""Async Redis connection factory.

The client connects lazily; connection problems surface on first use as
RedisError, which RedisTokenStore turns into StorageUnavailableError.
"""

import redis.asyncio as aioredis


def mask_uri(redis_uri: str) -> str:
    """Strip credentials from a Redis URI before logging it."""
    return redis_uri.split("@")[-1]


def build_redis_client(redis_uri: str, socket_timeout: float = 5.0) -> aioredis.Redis:
    """Create a client with bounded connect and socket timeouts."""
    return aioredis.from_url(
        redis_uri,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=socket_timeout,
        socket_timeout=socket_timeout,
    )
