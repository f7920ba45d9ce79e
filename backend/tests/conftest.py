"""Shared fixtures for the queue tests."""

import pytest

from barberqueue.services.queue_engine import QueueEngine
from barberqueue.store.memory import MemoryStore

START_MS = 1_760_000_000_000


class FakeClock:
    """Millisecond clock that moves forward a fixed step on every read."""

    def __init__(self, start: int = START_MS, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def engine(store, clock):
    return QueueEngine(store, clock)
