"""Prometheus metrics for the crawler.

All metrics are module-level singletons registered on the default
``REGISTRY``.  They are updated by
:class:`~deepsearch_crawler.scraper.observer.MetricsObserver` and by the
request middleware in ``api/main.py``, and exposed at ``GET /metrics``.

Metrics defined here:

  crawl_fetches_total{result}
      Counter: per-URL fetch outcomes.  ``result`` is ``success`` or a
      failure kind (policy_blocked, http_status_exhausted,
      network_exhausted, unexpected_error, timed_out).

  crawl_batches_total{status}
      Counter: completed batches by verdict (success, partial_failure).

  crawl_operation_duration_seconds{operation}
      Histogram: wall-clock duration of ``fetch_one`` and ``fetch_all``.

  http_requests_total{method, path, status}
      Counter: HTTP requests handled by the FastAPI application.

  http_request_duration_seconds{method, path}
      Histogram: HTTP request latency in seconds.

Usage::

    from deepsearch_crawler.api.metrics import crawl_fetches_total
    crawl_fetches_total.labels(result="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Crawl metrics
# ---------------------------------------------------------------------------

crawl_fetches_total: Counter = Counter(
    "crawl_fetches_total",
    "Per-URL crawl outcomes by result.",
    labelnames=["result"],
)

crawl_batches_total: Counter = Counter(
    "crawl_batches_total",
    "Completed crawl batches by overall verdict.",
    labelnames=["status"],
)

crawl_operation_duration_seconds: Histogram = Histogram(
    "crawl_operation_duration_seconds",
    "Wall-clock duration of crawl operations in seconds.",
    labelnames=["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
)
"""Histogram of crawl operation durations.

Labels:
  operation: ``fetch_one`` or ``fetch_all``
"""

# ---------------------------------------------------------------------------
# HTTP metrics (populated by middleware in main.py)
# ---------------------------------------------------------------------------

http_requests_total: Counter = Counter(
    "http_requests_total",
    "HTTP requests handled by the FastAPI application.",
    labelnames=["method", "path", "status"],
)

http_request_duration_seconds: Histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    labelnames=["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)


# ---------------------------------------------------------------------------
# Response helper
# ---------------------------------------------------------------------------


def get_metrics_response() -> tuple[bytes, str]:
    """Return ``(body, content_type)`` for the Prometheus text exposition."""
    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # noqa: PLC0415

    return generate_latest(), CONTENT_TYPE_LATEST
