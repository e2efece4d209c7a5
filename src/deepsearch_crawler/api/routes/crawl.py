"""Crawl route handlers.

Routes:
    POST /crawl : crawl a batch of URLs and return per-URL markdown or errors.

The handler always answers HTTP 200 once the body validates; per-URL
failures are reported inside the response, never as HTTP errors.
"""

from __future__ import annotations

from typing import Annotated, Optional

import structlog
from fastapi import APIRouter, Depends, Header, Request

from deepsearch_crawler.scraper.service import CrawlerService
from deepsearch_crawler.scraper.tool import (
    ScrapePagesInput,
    ScrapePagesOutput,
    scrape_pages,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["crawl"])


def get_crawler(request: Request) -> CrawlerService:
    """Return the :class:`CrawlerService` created by the application lifespan."""
    return request.app.state.crawler


@router.post("/crawl", response_model=ScrapePagesOutput)
async def crawl(
    payload: ScrapePagesInput,
    crawler: Annotated[CrawlerService, Depends(get_crawler)],
    x_trace_id: Annotated[Optional[str], Header()] = None,
) -> ScrapePagesOutput:
    """Crawl ``payload.urls`` concurrently.

    Args:
        payload: Validated URL list and optional ``max_retries``.
        crawler: Injected crawler service.
        x_trace_id: Optional ``X-Trace-ID`` header, bound as ``crawl_id`` on
            every log line of the batch.

    Returns:
        A :class:`ScrapePagesOutput` with one result per URL, in request order.
    """
    logger.info("crawl_requested", url_count=len(payload.urls))
    return await scrape_pages(
        payload.urls,
        service=crawler,
        max_retries=payload.max_retries,
        trace_id=x_trace_id,
    )
