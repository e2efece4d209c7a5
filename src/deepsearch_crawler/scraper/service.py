"""Crawler service: wires the fetcher, cache, robots policy, and observers.

:class:`CrawlerService` is the entry point most callers want::

    async with CrawlerService.from_settings() as crawler:
        batch = await crawler.fetch_all(["https://example.com/a", "https://example.org/b"])

Composition per URL::

    fetch_one ─ observe ─ cached(crawlWebsite) ─ http_fetcher.fetch_one
                                                   ├─ robots.is_allowed ─ [cached(robotsTxt)] ─ fetch_robots_txt
                                                   ├─ httpx GET (retries + backoff)
                                                   └─ extract_article_text

The per-URL cache key covers the URL and ``max_retries``, so a batch of ten
URLs with nine cached entries performs exactly one live fetch.  robots.txt
bodies are cached per origin only when ``robots_cache_ttl`` is positive.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Iterable

import httpx

from deepsearch_crawler.config.settings import Settings, get_settings
from deepsearch_crawler.core.logging_config import crawl_id_var
from deepsearch_crawler.scraper import bulk_crawler, http_fetcher, robots
from deepsearch_crawler.scraper.cache import (
    CacheStore,
    InMemoryCacheStore,
    RedisCacheStore,
    cached,
    deserialize_outcome,
    make_cache_key,
    serialize_outcome,
)
from deepsearch_crawler.scraper.config import (
    CRAWL_CACHE_NAMESPACE,
    DEFAULT_CACHE_TTL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    ROBOTS_CACHE_NAMESPACE,
    ROBOTS_USER_AGENT,
    USER_AGENT,
)
from deepsearch_crawler.scraper.observer import (
    CompositeObserver,
    CrawlObserver,
    LoggingObserver,
    MetricsObserver,
    NullObserver,
    observe,
)
from deepsearch_crawler.scraper.outcomes import BatchOutcome, FetchOutcome

logger = logging.getLogger(__name__)


def _crawl_key(url: str, max_retries: int) -> str:
    return make_cache_key(CRAWL_CACHE_NAMESPACE, url=url, max_retries=max_retries)


def _robots_key(robots_url: str) -> str:
    return make_cache_key(ROBOTS_CACHE_NAMESPACE, robots_url=robots_url)


def _serialize_robots_body(body: str | None) -> str:
    return json.dumps({"body": body}, ensure_ascii=False)


def _deserialize_robots_body(raw: str | bytes) -> str | None:
    return json.loads(raw)["body"]


class CrawlerService:
    """Cached, observed, robots-aware crawler bound to one HTTP client.

    Args:
        client: Shared :class:`httpx.AsyncClient`.
        store: Cache store; ``None`` disables caching.
        observer: Receives a report for every ``fetch_one`` / ``fetch_all``.
        cache_ttl: Lifetime of cached crawl outcomes in seconds.
        robots_cache_ttl: Lifetime of cached robots.txt bodies in seconds;
            ``0`` fetches robots.txt fresh for every URL.
        timeout: Per-request HTTP timeout in seconds.
        user_agent: ``User-Agent`` header for all requests.
        robots_user_agent: Agent token evaluated against robots.txt.
        default_max_retries: Attempts per URL when callers pass ``None``.
        overall_timeout: Optional per-URL deadline for batches, in seconds.
        sleep: Backoff sleep; injectable for tests.
        owns_client: Close ``client`` (and a Redis store) in :meth:`aclose`.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        store: CacheStore | None = None,
        observer: CrawlObserver | None = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        robots_cache_ttl: int = 0,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
        robots_user_agent: str = ROBOTS_USER_AGENT,
        default_max_retries: int = DEFAULT_MAX_RETRIES,
        overall_timeout: float | None = None,
        sleep: http_fetcher.Sleep = asyncio.sleep,
        owns_client: bool = False,
    ) -> None:
        self.client = client
        self.store = store
        self.observer: CrawlObserver = observer or NullObserver()
        self.timeout = timeout
        self.user_agent = user_agent
        self.robots_user_agent = robots_user_agent
        self.default_max_retries = default_max_retries
        self.overall_timeout = overall_timeout
        self._sleep = sleep
        self._owns_client = owns_client

        self._fetch_robots_body: robots.FetchBody | None = None
        if store is not None and robots_cache_ttl > 0:
            self._fetch_robots_body = cached(
                self._fetch_robots_live,
                key_of=_robots_key,
                ttl=robots_cache_ttl,
                store=store,
                serialize=_serialize_robots_body,
                deserialize=_deserialize_robots_body,
            )

        self._fetch = self._fetch_live
        if store is not None:
            self._fetch = cached(
                self._fetch_live,
                key_of=_crawl_key,
                ttl=cache_ttl,
                store=store,
                serialize=serialize_outcome,
                deserialize=deserialize_outcome,
            )

    # ------------------------------------------------------------------
    # Construction / teardown
    # ------------------------------------------------------------------

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        store: CacheStore | None = None,
        observer: CrawlObserver | None = None,
    ) -> CrawlerService:
        """Build a service from application settings.

        Any collaborator passed explicitly is used as-is and is not closed by
        :meth:`aclose`.
        """
        settings = settings or get_settings()

        owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=settings.request_timeout_seconds,
                headers={"User-Agent": settings.user_agent},
            )

        if store is None and settings.cache_enabled:
            if settings.cache_backend == "redis":
                store = RedisCacheStore.from_url(settings.redis_url)
            else:
                store = InMemoryCacheStore()

        if observer is None:
            observers: list[CrawlObserver] = [LoggingObserver()]
            if settings.metrics_enabled:
                observers.append(MetricsObserver())
            observer = CompositeObserver(observers)

        return cls(
            client=client,
            store=store,
            observer=observer,
            cache_ttl=settings.cache_ttl_seconds,
            robots_cache_ttl=settings.robots_cache_ttl_seconds,
            timeout=settings.request_timeout_seconds,
            user_agent=settings.user_agent,
            robots_user_agent=settings.robots_user_agent,
            default_max_retries=settings.default_max_retries,
            overall_timeout=settings.overall_timeout_seconds,
            owns_client=owns_client,
        )

    async def aclose(self) -> None:
        if not self._owns_client:
            return
        await self.client.aclose()
        if isinstance(self.store, RedisCacheStore):
            await self.store.aclose()

    async def __aenter__(self) -> CrawlerService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Live operations (uncached)
    # ------------------------------------------------------------------

    async def _fetch_robots_live(self, robots_url: str) -> str | None:
        return await robots.fetch_robots_txt(
            robots_url,
            client=self.client,
            timeout=self.timeout,
            request_user_agent=self.user_agent,
        )

    async def _fetch_live(self, url: str, max_retries: int) -> FetchOutcome:
        return await http_fetcher.fetch_one(
            url,
            max_retries,
            client=self.client,
            robots_check=self.is_allowed,
            timeout=self.timeout,
            user_agent=self.user_agent,
            sleep=self._sleep,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def is_allowed(self, url: str) -> bool:
        """Return ``True`` if robots.txt permits the configured agent to fetch ``url``."""
        return await robots.is_allowed(
            url,
            self.robots_user_agent,
            client=self.client,
            timeout=self.timeout,
            request_user_agent=self.user_agent,
            fetch_body=self._fetch_robots_body,
        )

    async def fetch_one(self, url: str, max_retries: int | None = None) -> FetchOutcome:
        """Fetch one URL, serving it from the cache when possible."""
        retries = max_retries if max_retries is not None else self.default_max_retries
        return await observe(
            self.observer,
            "fetch_one",
            {"url": url, "max_retries": retries},
            lambda: self._fetch(url, retries),
        )

    async def fetch_all(
        self,
        urls: Iterable[str],
        max_retries: int | None = None,
        *,
        trace_id: str | None = None,
    ) -> BatchOutcome:
        """Fetch a batch of URLs concurrently.

        Args:
            urls: URLs to crawl, in the order results should be returned.
            max_retries: Attempts per URL; ``None`` uses the service default.
            trace_id: Correlation ID bound as ``crawl_id`` on every log record
                of this batch.  A random one is generated when omitted.

        Returns:
            A :class:`BatchOutcome` with one entry per URL.
        """
        url_list = list(urls)
        retries = max_retries if max_retries is not None else self.default_max_retries
        token = crawl_id_var.set(trace_id or uuid.uuid4().hex)
        try:
            return await observe(
                self.observer,
                "fetch_all",
                {"urls": url_list, "max_retries": retries},
                lambda: bulk_crawler.fetch_all(
                    url_list,
                    retries,
                    fetch=self.fetch_one,
                    overall_timeout=self.overall_timeout,
                ),
            )
        finally:
            crawl_id_var.reset(token)

    async def cache_status(self) -> str:
        """Return ``"ok"``, ``"error"`` or ``"disabled"`` for health reporting."""
        if self.store is None:
            return "disabled"
        if isinstance(self.store, RedisCacheStore):
            return "ok" if await self.store.ping() else "error"
        return "ok"
