"""FastAPI application factory and entry point.

Creates the application instance, registers the request-logging middleware,
and mounts the crawl, health, and metrics routes.  One
:class:`~deepsearch_crawler.scraper.service.CrawlerService` is shared by all
requests via ``app.state.crawler``.

Usage::

    # Development server (from project root)
    uvicorn deepsearch_crawler.api.main:app --reload
"""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

import structlog
from fastapi import FastAPI, Request, Response

from deepsearch_crawler import __version__
from deepsearch_crawler.config.settings import get_settings
from deepsearch_crawler.core.logging_config import configure_logging, request_id_var
from deepsearch_crawler.scraper.service import CrawlerService

# ---------------------------------------------------------------------------
# Logging configuration: applied once at import time so that records emitted
# during app construction are captured.  The level from settings is applied
# inside create_app().
# ---------------------------------------------------------------------------

configure_logging("INFO")

logger = structlog.get_logger(__name__)


def _route_path(request: Request) -> str:
    """Return the matched route template, keeping metric label cardinality bounded."""
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(crawler: CrawlerService | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Args:
        crawler: Crawler service to serve requests with.  When omitted, one is
            built from settings at startup and closed at shutdown.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()

    # Re-apply logging configuration with the correct level from settings.
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        owned: CrawlerService | None = None
        if getattr(application.state, "crawler", None) is None:
            owned = CrawlerService.from_settings(settings)
            application.state.crawler = owned
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            debug=settings.debug,
            log_level=settings.log_level,
            cache_backend=settings.cache_backend if settings.cache_enabled else "disabled",
        )
        try:
            yield
        finally:
            if owned is not None:
                await owned.aclose()
            logger.info("application_shutdown")

    application = FastAPI(
        title=settings.app_name,
        description="Bulk web crawler returning page content as markdown.",
        version=__version__,
        debug=settings.debug,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    application.state.crawler = crawler

    # ---- Request logging middleware ----------------------------------------

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with its status and duration, and record HTTP metrics.

        Attaches a unique ``request_id`` to the structlog context so that all
        log lines emitted during a request can be correlated.
        """
        request_id = str(uuid.uuid4())
        # Populate the ContextVar so stdlib logging records also carry the ID.
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed = time.perf_counter() - start
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn(
                "request_complete",
                status_code=status_code,
                elapsed_ms=round(elapsed * 1000, 2),
            )
            if settings.metrics_enabled:
                from deepsearch_crawler.api import metrics  # noqa: PLC0415

                path = _route_path(request)
                metrics.http_requests_total.labels(
                    method=request.method, path=path, status=str(status_code)
                ).inc()
                metrics.http_request_duration_seconds.labels(
                    method=request.method, path=path
                ).observe(elapsed)

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Routers -----------------------------------------------------------

    from deepsearch_crawler.api.routes import (  # noqa: PLC0415
        crawl as crawl_routes,
        health as health_routes,
    )

    application.include_router(crawl_routes.router)
    application.include_router(health_routes.router)

    # ---- Metrics endpoint --------------------------------------------------

    if settings.metrics_enabled:

        @application.get("/metrics", tags=["system"], include_in_schema=False)
        async def prometheus_metrics() -> Response:
            """Expose Prometheus metrics in the text exposition format."""
            from deepsearch_crawler.api.metrics import get_metrics_response  # noqa: PLC0415

            body, content_type = get_metrics_response()
            return Response(content=body, media_type=content_type)

    return application


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

app = create_app()
"""The FastAPI application instance.

This is the ASGI callable passed to Uvicorn.
"""
