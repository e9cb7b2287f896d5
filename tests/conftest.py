"""
Shared fixtures: an in-memory store, a controllable clock and a registry
wired to both.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from shortlink.services.url_registry import URLRegistry
from shortlink.storage import MemoryKeyValueStore

BASE_URL = "http://short.test"


class FakeClock:
    """Clock whose time only moves when told to."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def make_registry(store, clock):
    """Build registries sharing the same store and clock (a restart is a new registry)."""
    def _make(**kwargs):
        kwargs.setdefault("base_url", BASE_URL)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("rng", random.Random(1234))
        return URLRegistry(store, **kwargs)
    return _make


@pytest.fixture
def registry(make_registry):
    return make_registry()
