"""Shared pytest fixtures for crawler tests.

Fixture summary
---------------
memory_store    : Fresh ``InMemoryCacheStore`` driven by a manual clock.
fake_clock      : The manual clock used by ``memory_store``.
no_sleep        : ``AsyncMock`` standing in for ``asyncio.sleep`` in backoff.
http_client     : ``httpx.AsyncClient``; pair it with ``respx.mock``.

No test needs a live network or Redis: HTTP is mocked with respx and Redis
with ``AsyncMock``.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Set before any application module is imported so that Settings() picks
# them up during collection.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "REDIS_URL": "redis://localhost:6379/15",
    "CACHE_BACKEND": "memory",
    "LOG_LEVEL": "INFO",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

from deepsearch_crawler.config.settings import get_settings  # noqa: E402
from deepsearch_crawler.scraper.cache import InMemoryCacheStore  # noqa: E402

# Clear the lru_cache so Settings() re-reads from the patched environment.
get_settings.cache_clear()


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def memory_store(fake_clock: ManualClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=fake_clock)


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest_asyncio.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as client:
        yield client
