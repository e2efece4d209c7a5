"""Constants and tuning parameters for the crawler.

Values that operators are expected to change per deployment live in
:mod:`deepsearch_crawler.config.settings`; the values here are fixed
behaviour of the fetch/extract pipeline.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Retry / backoff
# ---------------------------------------------------------------------------

#: Attempts per URL when the caller does not override ``max_retries``.
DEFAULT_MAX_RETRIES: int = 3

#: Backoff base delay (seconds).  Delay before retry *n* is
#: ``min(BASE_DELAY_SECONDS * 2**n, MAX_DELAY_SECONDS)``.
BASE_DELAY_SECONDS: float = 0.5

#: Upper bound on a single backoff sleep (seconds).
MAX_DELAY_SECONDS: float = 8.0

#: Default HTTP request timeout in seconds.
DEFAULT_TIMEOUT: float = 30.0

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

#: User-agent string sent with every HTTP request.
USER_AGENT: str = (
    "DeepSearchCrawler/0.1 (+https://github.com/deepsearch-crawler; "
    "article fetcher)"
)

#: robots.txt user-agent token to check against.
ROBOTS_USER_AGENT: str = "LinkedInBot"

# ---------------------------------------------------------------------------
# Content extraction
# ---------------------------------------------------------------------------

#: Elements removed before a content container is chosen.
STRIP_SELECTORS: str = "script, style, nav, header, footer, iframe, noscript"

#: Content-container selectors, tried in order; the first match wins.
ARTICLE_SELECTORS: tuple[str, ...] = (
    "article",
    '[role="main"]',
    ".post-content",
    ".article-content",
    "main",
    ".content",
)

# ---------------------------------------------------------------------------
# Failure messages
# ---------------------------------------------------------------------------

ROBOTS_DISALLOWED_MESSAGE: str = "Crawling disallowed by robots.txt"

AGGREGATE_ERROR_PREFIX: str = "Failed to crawl some websites:"

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

#: Default lifetime of a cached crawl outcome (seconds).
DEFAULT_CACHE_TTL: int = 6 * 60 * 60

#: Namespace prefix for per-URL crawl outcomes.
CRAWL_CACHE_NAMESPACE: str = "crawlWebsite"

#: Namespace prefix for robots.txt bodies, keyed by robots.txt URL.
ROBOTS_CACHE_NAMESPACE: str = "robotsTxt"
