"""ExpiringKeyValueStore protocol — the token manager depends on this, not on Redis."""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ExpiringKeyValueStore(Protocol):
    """Key→string storage with absolute expiry plus unordered string sets.

    Implementations raise ``StorageUnavailableError`` when the backend cannot
    be reached and ``StorageTimeoutError`` when a single call times out.
    """

    async def set_with_absolute_expiry(
        self, key: str, value: str, expire_at: int
    ) -> None:
        """Store *value*; the key becomes unreadable at or after epoch second *expire_at*."""
        ...

    async def add_to_set(self, set_key: str, member: str) -> None: ...

    async def list_set_members(self, set_key: str) -> set[str]: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def remove_from_set(self, set_key: str, member: str) -> None: ...

    async def ping(self) -> bool:
        """Round-trip to the backend; raises ``StorageUnavailableError`` when down."""
        ...
