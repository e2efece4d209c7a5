"""Structured JSON logging configuration using structlog.

Call ``configure_logging()`` once at startup; ``create_app()`` does so for
the HTTP API.  Modules can then use either the stdlib logging API or structlog:

Stdlib usage::

    import logging
    logger = logging.getLogger(__name__)
    logger.info("message", extra={"key": "value"})

Structlog usage (richer context binding)::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("message", url=url, attempt=2)

Two context variables are merged into every record when set:

- ``request_id``: populated by the request-logging middleware in
  ``api/main.py``.
- ``crawl_id``: populated by ``CrawlerService.fetch_all`` for the lifetime
  of one batch, so per-URL log lines can be correlated with their batch.
"""

from __future__ import annotations

import logging
import logging.config
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, WrappedLogger

# ---------------------------------------------------------------------------
# Context variables, read by the log processor below
# ---------------------------------------------------------------------------

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Per-request ID propagated from the HTTP middleware to log processors."""

crawl_id_var: ContextVar[str | None] = ContextVar("crawl_id", default=None)
"""Per-batch trace ID propagated from the crawler service to log processors."""


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------


_SECRET_SUBSTRINGS: frozenset[str] = frozenset({
    "api_key",
    "password",
    "secret",
    "token",
    "credential",
    "bearer",
    "authorization",
    "cookie",
})
"""Lower-cased substrings that identify log event-dict keys whose values
must be redacted before the record reaches any renderer."""


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Replace values of secret-bearing keys with a redaction marker.

    Scans top-level keys and one level of nested ``dict`` values (e.g.
    ``headers={...}``).  Keys are matched case-insensitively against
    :data:`_SECRET_SUBSTRINGS`.
    """
    redacted = "[REDACTED]"
    for key in list(event_dict.keys()):
        key_lower = key.lower()
        if any(secret in key_lower for secret in _SECRET_SUBSTRINGS):
            event_dict[key] = redacted
            continue
        val = event_dict[key]
        if isinstance(val, dict):
            for nested_key in list(val.keys()):
                if any(secret in nested_key.lower() for secret in _SECRET_SUBSTRINGS):
                    val[nested_key] = redacted
    return event_dict


def _inject_context_ids(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Inject the current request and crawl IDs into the event dict if set.

    Runs after ``merge_contextvars`` so it only fills in IDs that were not
    already bound through structlog.
    """
    rid = request_id_var.get()
    if rid is not None and "request_id" not in event_dict:
        event_dict["request_id"] = rid
    cid = crawl_id_var.get()
    if cid is not None and "crawl_id" not in event_dict:
        event_dict["crawl_id"] = cid
    return event_dict


# ---------------------------------------------------------------------------
# Public configuration entry-point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog with JSON output for production.

    When ``log_level`` is ``"DEBUG"`` structlog's ``ConsoleRenderer`` is
    used for human-readable output; otherwise each record is rendered as
    one line of JSON.

    Standard fields on every record: ``timestamp`` (ISO 8601), ``level``,
    ``logger``, ``event``, plus ``request_id`` / ``crawl_id`` when set.

    Calling this more than once is safe; handlers are replaced, not added.

    Args:
        log_level: ``"DEBUG"``, ``"INFO"``, ``"WARNING"``, ``"ERROR"`` or
            ``"CRITICAL"``.  Case-insensitive.
    """
    level_upper = log_level.upper()
    numeric_level = getattr(logging, level_upper, logging.INFO)
    is_development = level_upper == "DEBUG"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_context_ids,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if is_development:
        final_renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(
            colors=True,
        )
    else:
        final_renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            final_renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    # httpx logs one line per request; the crawler already logs each attempt.
    if not is_development:
        for noisy_logger in ("uvicorn.access", "httpx", "httpcore"):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
