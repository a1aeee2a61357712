"""Pytest configuration and fixtures for the porpoise test suite."""
import sys
from pathlib import Path

import pytest

# Ensure the src layout is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from porpoise.cache.store import PorpoiseStore  # noqa: E402
from porpoise.storage.memory import MemoryStorage  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# CLOCK & STORAGE FIXTURES
# ============================================================================

@pytest.fixture
def clock():
    """Fake clock shared by storage and short-life cache."""
    return FakeClock()


@pytest.fixture
def storage(clock):
    """In-memory backend driven by the fake clock."""
    return MemoryStorage(clock=clock)


@pytest.fixture
def make_store(storage, clock):
    """Factory for stores over the shared backend."""
    def factory(namespace="porpoise-test", **kwargs):
        kwargs.setdefault("clock", clock)
        return PorpoiseStore(storage, namespace=namespace, **kwargs)
    return factory


@pytest.fixture
def store(make_store):
    """Default store in the 'porpoise-test' namespace."""
    return make_store()
