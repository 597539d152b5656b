"""In-process ExpiringKeyValueStore.

Used when REDIS_URI is not configured and as the fake store in tests.
Expiry is enforced lazily on read against an injectable clock, which mirrors
Redis semantics closely enough for the token manager: a key past its expiry
instant is never returned.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from shared.datetime_utils import utcnow


class InMemoryExpiringStore:
    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._values: dict[str, tuple[str, int]] = {}
        self._sets: dict[str, set[str]] = {}

    def _now(self) -> float:
        return self._clock().timestamp()

    async def set_with_absolute_expiry(
        self, key: str, value: str, expire_at: int
    ) -> None:
        self._values[key] = (value, expire_at)

    async def add_to_set(self, set_key: str, member: str) -> None:
        self._sets.setdefault(set_key, set()).add(member)

    async def list_set_members(self, set_key: str) -> set[str]:
        return set(self._sets.get(set_key, ()))

    async def get(self, key: str) -> Optional[str]:
        entry = self._values.get(key)
        if entry is None:
            return None
        value, expire_at = entry
        if self._now() >= expire_at:
            del self._values[key]
            return None
        return value

    async def remove_from_set(self, set_key: str, member: str) -> None:
        members = self._sets.get(set_key)
        if members is None:
            return
        members.discard(member)
        if not members:
            del self._sets[set_key]

    async def ping(self) -> bool:
        return True

    def delete(self, key: str) -> None:
        """Drop *key* immediately, as if its expiry had fired."""
        self._values.pop(key, None)
