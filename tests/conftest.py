"""Shared fixtures: a controllable clock, the in-memory store and a manager."""

from datetime import datetime, timedelta, timezone

import pytest

from infrastructure.store.memory_store import InMemoryExpiringStore
from services.token_service import TokenLifecycleManager


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    return InMemoryExpiringStore(clock=clock)


@pytest.fixture
def manager(store, clock):
    return TokenLifecycleManager(store, clock=clock)
