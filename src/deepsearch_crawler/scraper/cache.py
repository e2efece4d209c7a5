"""Cache-aside memoization for crawl operations.

:func:`cached` wraps an async function so that calls with the same key are
served from a shared key-value store until the entry's TTL expires::

    fetch = cached(
        fetch_one,
        key_of=lambda url, max_retries=3: make_cache_key("crawlWebsite", url=url, max_retries=max_retries),
        ttl=6 * 60 * 60,
        store=RedisCacheStore.from_url("redis://localhost:6379/0"),
        serialize=serialize_outcome,
        deserialize=deserialize_outcome,
    )

The cache is best-effort.  A store that is unreachable, rejects a write, or
returns an entry that cannot be deserialized is logged and treated as a miss;
the wrapped function always runs in that case and its result is returned.

Two stores are provided:

- :class:`RedisCacheStore`: ``redis.asyncio`` with ``GET`` / ``SETEX``.
  Entries are shared across processes and expire server-side.
- :class:`InMemoryCacheStore`: process-local dict with lazy expiry, for
  development and tests.
"""

from __future__ import annotations

import functools
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol, TypeVar

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from deepsearch_crawler.core.exceptions import CacheStoreError
from deepsearch_crawler.scraper.outcomes import FetchOutcome, outcome_from_dict

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class CacheStore(Protocol):
    """Key-value store with per-entry TTL.  Single-key operations must be atomic."""

    async def get(self, key: str) -> str | bytes | None: ...

    async def set(self, key: str, value: str, ttl: int) -> None: ...


@dataclass
class RedisCacheStore:
    """Cache store backed by Redis.

    Attributes:
        redis_client: An initialised ``redis.asyncio.Redis`` connection.
    """

    redis_client: aioredis.Redis

    @classmethod
    def from_url(cls, redis_url: str) -> RedisCacheStore:
        """Create a store with short socket timeouts so an outage fails fast."""
        client: aioredis.Redis = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        return cls(redis_client=client)

    async def get(self, key: str) -> str | bytes | None:
        try:
            return await self.redis_client.get(key)
        except (RedisError, OSError) as exc:
            raise CacheStoreError(f"Redis GET failed: {exc}", key=key) from exc

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.redis_client.setex(key, ttl, value)
        except (RedisError, OSError) as exc:
            raise CacheStoreError(f"Redis SETEX failed: {exc}", key=key) from exc

    async def ping(self) -> bool:
        """Return ``True`` if Redis answers ``PING``."""
        try:
            return bool(await self.redis_client.ping())
        except (RedisError, OSError):
            return False

    async def aclose(self) -> None:
        await self.redis_client.aclose()


class InMemoryCacheStore:
    """Process-local cache store.  Expired entries are dropped on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._entries[key] = (self._clock() + ttl, value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Keys and serialization
# ---------------------------------------------------------------------------


def make_cache_key(namespace: str, *args: Any, **kwargs: Any) -> str:
    """Build a deterministic cache key from a namespace and call arguments.

    Keyword order does not matter; ``make_cache_key("ns", url=u, max_retries=3)``
    and ``make_cache_key("ns", max_retries=3, url=u)`` are equal.
    """
    payload = json.dumps(
        {"args": list(args), "kwargs": kwargs},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return f"{namespace}:{payload}"


def serialize_outcome(outcome: FetchOutcome) -> str:
    return json.dumps(outcome.to_dict(), ensure_ascii=False)


def deserialize_outcome(raw: str | bytes) -> FetchOutcome:
    return outcome_from_dict(json.loads(raw))


# ---------------------------------------------------------------------------
# Decorator
# ---------------------------------------------------------------------------


def cached(
    fn: Callable[..., Awaitable[T]],
    *,
    key_of: Callable[..., str],
    ttl: int,
    store: CacheStore,
    serialize: Callable[[T], str] = json.dumps,
    deserialize: Callable[[str | bytes], T] = json.loads,
) -> Callable[..., Awaitable[T]]:
    """Return ``fn`` wrapped with cache-aside memoization.

    Args:
        fn: Async function to memoize.
        key_of: Called with the same arguments as ``fn``; returns the cache
            key.  Must cover every argument that affects the result.
        ttl: Entry lifetime in seconds.
        store: Shared :class:`CacheStore`.
        serialize: Converts a result of ``fn`` to the stored string.
        deserialize: Converts a stored string back into a result.

    Returns:
        An async callable with the same signature as ``fn``.
    """

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        key = key_of(*args, **kwargs)

        try:
            raw = await store.get(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache: lookup failed for %s, fetching live: %s", key, exc)
            raw = None

        if raw is not None:
            try:
                value = deserialize(raw)
            except Exception as exc:  # noqa: BLE001
                logger.warning("cache: discarding unreadable entry %s: %s", key, exc)
            else:
                logger.debug("cache: hit %s", key)
                return value

        result = await fn(*args, **kwargs)

        try:
            await store.set(key, serialize(result), ttl)
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache: write failed for %s: %s", key, exc)

        return result

    return wrapper
