"""Shared fixtures; forces test mode before application modules are imported."""

import os

os.environ["APP_ENV"] = "test"

import pytest  # noqa: E402

from reqcache.core.cache import TTLCache  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    store = TTLCache(clock=clock)
    yield store
    store.destroy()
