"""Health check route handlers.

``GET /api/health``
    Liveness check that also reports the cache store: ``"ok"`` when Redis
    answers ``PING`` (or the in-memory store is in use), ``"error"`` when
    Redis is unreachable, ``"disabled"`` when caching is off.  Always
    returns HTTP 200; ``status`` is ``"degraded"`` when the cache is in
    error.  The crawler keeps working without its cache, so this never
    raises HTTP 5xx.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from deepsearch_crawler import __version__
from deepsearch_crawler.scraper.service import CrawlerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


async def _check_cache(crawler: CrawlerService) -> str:
    try:
        return await crawler.cache_status()
    except Exception:
        logger.exception("Health check: cache store unreachable")
        return "error"


@router.get("/api/health", include_in_schema=True)
async def system_health(request: Request) -> JSONResponse:
    """Return process health including cache connectivity.

    Returns:
        JSON with keys: ``status``, ``version``, ``cache``, ``timestamp``.
    """
    cache_status = await _check_cache(request.app.state.crawler)
    payload = {
        "status": "degraded" if cache_status == "error" else "ok",
        "version": __version__,
        "cache": cache_status,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    logger.info("system_health_check", extra={"health": payload})
    return JSONResponse(payload)
