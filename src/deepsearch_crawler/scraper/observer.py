"""Optional observation hooks for crawl operations.

An observer is told about every completed ``fetch_one`` / ``fetch_all``
call: the operation name, its input, the outcome, and the duration.  The
crawler behaves identically whichever observer is installed; observer
exceptions are logged and otherwise ignored.

Implementations:

- :class:`NullObserver`: does nothing (the default).
- :class:`LoggingObserver`: one structlog event per operation.
- :class:`MetricsObserver`: Prometheus counters and histograms.
- :class:`CompositeObserver`: fans out to several observers.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, Iterable, Protocol, TypeVar, Union

import structlog

from deepsearch_crawler.scraper.outcomes import BatchOutcome, Failure, FetchOutcome

logger = logging.getLogger(__name__)

Outcome = Union[FetchOutcome, BatchOutcome]
T = TypeVar("T", bound=Outcome)


class CrawlObserver(Protocol):
    def on_complete(
        self,
        operation: str,
        payload: dict[str, Any],
        outcome: Outcome,
        duration: float,
    ) -> None: ...


class NullObserver:
    def on_complete(
        self,
        operation: str,
        payload: dict[str, Any],
        outcome: Outcome,
        duration: float,
    ) -> None:
        return None


class LoggingObserver:
    """Emit a ``crawl_operation_complete`` structlog event per operation."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger("deepsearch_crawler.trace")

    def on_complete(
        self,
        operation: str,
        payload: dict[str, Any],
        outcome: Outcome,
        duration: float,
    ) -> None:
        fields: dict[str, Any] = {
            "operation": operation,
            "input": payload,
            "duration_ms": round(duration * 1000, 2),
        }
        if isinstance(outcome, BatchOutcome):
            fields["success"] = outcome.overall_success
            fields["url_count"] = len(outcome.per_url)
        elif isinstance(outcome, Failure):
            fields["success"] = False
            fields["error"] = outcome.reason
            fields["kind"] = outcome.kind.value
        else:
            fields["success"] = True
            fields["content_length"] = len(outcome.content)
        self._logger.info("crawl_operation_complete", **fields)


class MetricsObserver:
    """Record crawl outcomes in the Prometheus metrics of :mod:`deepsearch_crawler.api.metrics`."""

    def on_complete(
        self,
        operation: str,
        payload: dict[str, Any],
        outcome: Outcome,
        duration: float,
    ) -> None:
        from deepsearch_crawler.api import metrics  # noqa: PLC0415

        metrics.crawl_operation_duration_seconds.labels(operation=operation).observe(duration)
        if isinstance(outcome, BatchOutcome):
            status = "success" if outcome.overall_success else "partial_failure"
            metrics.crawl_batches_total.labels(status=status).inc()
        elif isinstance(outcome, Failure):
            metrics.crawl_fetches_total.labels(result=outcome.kind.value).inc()
        else:
            metrics.crawl_fetches_total.labels(result="success").inc()


class CompositeObserver:
    def __init__(self, observers: Iterable[CrawlObserver]) -> None:
        self.observers = list(observers)

    def on_complete(
        self,
        operation: str,
        payload: dict[str, Any],
        outcome: Outcome,
        duration: float,
    ) -> None:
        for observer in self.observers:
            observer.on_complete(operation, payload, outcome, duration)


async def observe(
    observer: CrawlObserver,
    operation: str,
    payload: dict[str, Any],
    call: Callable[[], Awaitable[T]],
) -> T:
    """Await ``call()`` and report its outcome and duration to ``observer``."""
    start = time.perf_counter()
    outcome = await call()
    duration = time.perf_counter() - start
    try:
        observer.on_complete(operation, payload, outcome, duration)
    except Exception as exc:  # noqa: BLE001
        logger.warning("observer: %s hook failed: %s", operation, exc)
    return outcome
