"""``scrape_pages`` tool adapter.

Exposes the bulk crawler to an agent as a tool: validated input in, a flat
per-URL result list out.  The output shape is the one the HTTP API returns
from ``POST /crawl``.
"""

from __future__ import annotations

from typing import List, Optional

import structlog
from pydantic import BaseModel, Field

from deepsearch_crawler.scraper.outcomes import BatchOutcome, Failure
from deepsearch_crawler.scraper.service import CrawlerService

logger = structlog.get_logger(__name__)

#: Per-URL error reported when the crawl as a whole raised.
UNEXPECTED_BATCH_ERROR = "Failed to process due to an unexpected error"


class ScrapePagesInput(BaseModel):
    """Tool input.

    Attributes:
        urls: Absolute URLs to scrape, at least one.
        max_retries: Attempts per URL; ``None`` uses the service default.
    """

    urls: List[str] = Field(min_length=1)
    max_retries: Optional[int] = Field(default=None, ge=1, le=10)


class ScrapeResult(BaseModel):
    url: str
    success: bool
    data: Optional[str] = None
    error: Optional[str] = None


class ScrapePagesOutput(BaseModel):
    """Tool output.

    Attributes:
        success: ``True`` iff every URL was scraped.
        error: Aggregate error listing every failing URL, when any failed.
        results: One entry per requested URL, in request order.
    """

    success: bool
    error: Optional[str] = None
    results: List[ScrapeResult]

    @classmethod
    def from_batch(cls, batch: BatchOutcome) -> ScrapePagesOutput:
        results = []
        for url, outcome in batch.per_url:
            if isinstance(outcome, Failure):
                results.append(ScrapeResult(url=url, success=False, error=outcome.reason))
            else:
                results.append(ScrapeResult(url=url, success=True, data=outcome.content))
        return cls(
            success=batch.overall_success,
            error=batch.aggregate_error,
            results=results,
        )


async def scrape_pages(
    urls: List[str],
    *,
    service: CrawlerService,
    max_retries: Optional[int] = None,
    trace_id: Optional[str] = None,
) -> ScrapePagesOutput:
    """Scrape ``urls`` and map the batch to :class:`ScrapePagesOutput`.

    Never raises: if the crawl itself fails, every URL is reported with
    :data:`UNEXPECTED_BATCH_ERROR`.
    """
    try:
        batch = await service.fetch_all(urls, max_retries, trace_id=trace_id)
    except Exception:
        logger.exception("scrape_pages_failed", url_count=len(urls))
        return ScrapePagesOutput(
            success=False,
            error=UNEXPECTED_BATCH_ERROR,
            results=[
                ScrapeResult(url=url, success=False, error=UNEXPECTED_BATCH_ERROR)
                for url in urls
            ],
        )
    return ScrapePagesOutput.from_batch(batch)
