"""Exception hierarchy for the crawler.

Per-URL fetch problems are never raised to callers; they are reported as
:class:`~deepsearch_crawler.scraper.outcomes.Failure` values.  The
exceptions below are internal signals that the fetcher and cache layer
catch at their boundaries.

Hierarchy::

    CrawlerError
    ├── InvalidURLError
    └── CacheStoreError
"""

from __future__ import annotations


class CrawlerError(Exception):
    """Base class for all crawler exceptions."""


class InvalidURLError(CrawlerError):
    """Raised when a URL is not an absolute ``http``/``https`` URL.

    Args:
        url: The rejected URL.
    """

    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid URL: {url!r}")
        self.url = url


class CacheStoreError(CrawlerError):
    """Raised when the cache store cannot be reached or rejects an operation.

    The cache layer treats this as a miss (fail-open).

    Args:
        message: Description of the store failure.
        key: Cache key involved in the failed operation, if any.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
