"""Concurrent batch crawling.

:func:`fetch_all` starts one asyncio task per URL and waits for all of them.
A failing URL never cancels its siblings, and the returned
:class:`~deepsearch_crawler.scraper.outcomes.BatchOutcome` lists outcomes in
input order regardless of completion order.

Concurrency is unbounded (one task per URL).  This suits batches of tens of
URLs; callers with larger lists split them into batches themselves.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

from deepsearch_crawler.scraper.config import DEFAULT_MAX_RETRIES
from deepsearch_crawler.scraper.outcomes import (
    BatchOutcome,
    Failure,
    FailureKind,
    FetchOutcome,
)

logger = logging.getLogger(__name__)

FetchFn = Callable[[str, int], Awaitable[FetchOutcome]]


async def _fetch_guarded(
    fetch: FetchFn,
    url: str,
    max_retries: int,
    overall_timeout: float | None,
) -> FetchOutcome:
    """Run ``fetch`` for one URL, converting timeouts and stray exceptions to failures."""
    try:
        if overall_timeout is None:
            return await fetch(url, max_retries)
        return await asyncio.wait_for(fetch(url, max_retries), timeout=overall_timeout)
    except asyncio.TimeoutError:
        logger.warning("scraper: %s timed out after %ss", url, overall_timeout)
        return Failure(
            f"Timed out after {overall_timeout:g} seconds", FailureKind.TIMED_OUT
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("scraper: fetch for %s raised: %s", url, exc)
        return Failure(
            f"Unexpected error: {exc or type(exc).__name__}",
            FailureKind.UNEXPECTED_ERROR,
        )


async def fetch_all(
    urls: Iterable[str],
    max_retries: int = DEFAULT_MAX_RETRIES,
    *,
    fetch: FetchFn,
    overall_timeout: float | None = None,
) -> BatchOutcome:
    """Fetch every URL concurrently and aggregate the outcomes.

    Args:
        urls: URLs to crawl.  Duplicates are fetched (or served from cache)
            once per occurrence and each appears in the result.
        max_retries: Attempts per URL, passed through to ``fetch``.
        fetch: Coroutine function ``(url, max_retries) -> FetchOutcome``,
            typically a cached :func:`~deepsearch_crawler.scraper.http_fetcher.fetch_one`.
        overall_timeout: Optional deadline in seconds, applied to every URL
            from the moment the batch starts.

    Returns:
        A :class:`BatchOutcome`.  Never raises for per-URL problems.
    """
    url_list = list(urls)
    outcomes = await asyncio.gather(
        *(_fetch_guarded(fetch, url, max_retries, overall_timeout) for url in url_list)
    )
    batch = BatchOutcome.from_results(list(zip(url_list, outcomes)))

    failed = sum(1 for _, outcome in batch.per_url if isinstance(outcome, Failure))
    logger.info(
        "scraper: batch finished, %d urls, %d failed", len(url_list), failed
    )
    return batch
