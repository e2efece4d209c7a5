"""Single-URL fetcher: robots.txt check, HTTP GET with bounded retries, extraction.

:func:`fetch_one` never raises (except for task cancellation).  Every failure
becomes a :class:`~deepsearch_crawler.scraper.outcomes.Failure` whose
``kind`` tells the four causes apart:

1. **Policy block**: robots.txt disallows the URL.  No page request is made.
2. **HTTP status exhausted**: every attempt returned a non-2xx status.
3. **Network exhausted**: every attempt raised an ``httpx.RequestError``
   (timeouts, refused connections, DNS failures, too many redirects).
4. **Unexpected error**: anything else, e.g. a malformed URL.  Not retried.

Retries back off exponentially: after the *n*-th failed attempt the fetcher
sleeps ``min(BASE_DELAY_SECONDS * 2**n, MAX_DELAY_SECONDS)`` seconds, i.e.
1s, 2s, 4s, 8s, 8s, ... with the default constants.  There is no jitter.
"""

from __future__ import annotations

import asyncio
import logging
import urllib.parse
from dataclasses import dataclass, replace
from typing import Awaitable, Callable

import httpx

from deepsearch_crawler.core.exceptions import InvalidURLError
from deepsearch_crawler.scraper import robots
from deepsearch_crawler.scraper.config import (
    BASE_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    MAX_DELAY_SECONDS,
    ROBOTS_DISALLOWED_MESSAGE,
    ROBOTS_USER_AGENT,
    USER_AGENT,
)
from deepsearch_crawler.scraper.content_extractor import extract_article_text
from deepsearch_crawler.scraper.outcomes import Failure, FailureKind, FetchOutcome, Success

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
RobotsCheck = Callable[[str], Awaitable[bool]]


# ---------------------------------------------------------------------------
# Retry state
# ---------------------------------------------------------------------------


def backoff_delay(
    attempt: int,
    base: float = BASE_DELAY_SECONDS,
    maximum: float = MAX_DELAY_SECONDS,
) -> float:
    """Return the sleep (seconds) before the retry that follows failed attempt ``attempt``."""
    return min(base * (2**attempt), maximum)


@dataclass(frozen=True)
class RetryState:
    """Attempt counter for one fetch.  Advanced by value, never shared.

    Attributes:
        max_retries: Total number of attempts allowed.
        attempt: Number of failed attempts so far.
    """

    max_retries: int
    attempt: int = 0

    def advance(self) -> RetryState:
        return replace(self, attempt=self.attempt + 1)

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_retries

    @property
    def delay(self) -> float:
        return backoff_delay(self.attempt)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def validate_url(url: str) -> str:
    """Return ``url`` unchanged if it is an absolute http(s) URL.

    Raises:
        InvalidURLError: If the URL has no http/https scheme or no host.
    """
    if not isinstance(url, str):
        raise InvalidURLError(str(url))
    parsed = urllib.parse.urlsplit(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURLError(url)
    return url


def _describe(exc: BaseException) -> str:
    """Return a non-empty description of ``exc`` (httpx timeouts often have no message)."""
    return str(exc) or type(exc).__name__


# ---------------------------------------------------------------------------
# Public fetch function
# ---------------------------------------------------------------------------


async def fetch_one(
    url: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    *,
    client: httpx.AsyncClient,
    robots_check: RobotsCheck | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = USER_AGENT,
    robots_user_agent: str = ROBOTS_USER_AGENT,
    sleep: Sleep = asyncio.sleep,
) -> FetchOutcome:
    """Fetch one URL and return its extracted markdown or a failure reason.

    Args:
        url: Absolute http(s) URL to fetch.
        max_retries: Total attempts against the page before giving up.
            Values below 1 are treated as 1.
        client: Shared :class:`httpx.AsyncClient` instance.
        robots_check: Coroutine deciding whether ``url`` may be fetched.
            Defaults to a fresh :func:`~deepsearch_crawler.scraper.robots.is_allowed`
            call for ``robots_user_agent``.
        timeout: Per-request timeout in seconds.
        user_agent: ``User-Agent`` header for page requests.
        robots_user_agent: Agent token used by the default robots check.
        sleep: Awaitable used for backoff; injectable for tests.

    Returns:
        :class:`Success` with the extracted markdown, or :class:`Failure`.
    """
    try:
        validate_url(url)

        if robots_check is None:
            allowed = await robots.is_allowed(
                url,
                robots_user_agent,
                client=client,
                timeout=timeout,
                request_user_agent=user_agent,
            )
        else:
            allowed = await robots_check(url)
        if not allowed:
            logger.info("scraper: robots.txt disallows %s", url)
            return Failure(ROBOTS_DISALLOWED_MESSAGE, FailureKind.POLICY_BLOCKED)

        state = RetryState(max_retries=max(1, max_retries))
        while True:
            try:
                response = await client.get(
                    url,
                    timeout=timeout,
                    follow_redirects=True,
                    headers={"User-Agent": user_agent},
                )
            except httpx.RequestError as exc:
                state = state.advance()
                if state.exhausted:
                    logger.warning(
                        "scraper: network error for %s, giving up after %d attempts: %s",
                        url,
                        state.max_retries,
                        _describe(exc),
                    )
                    return Failure(
                        f"Network error after {state.max_retries} attempts: {_describe(exc)}",
                        FailureKind.NETWORK_EXHAUSTED,
                    )
                logger.info(
                    "scraper: network error for %s (attempt %d/%d): %s",
                    url,
                    state.attempt,
                    state.max_retries,
                    _describe(exc),
                )
            else:
                if response.is_success:
                    content = extract_article_text(response.text)
                    logger.debug(
                        "scraper: fetched %s (%d chars extracted)", url, len(content)
                    )
                    return Success(content)

                state = state.advance()
                if state.exhausted:
                    logger.warning(
                        "scraper: HTTP %d for %s, giving up after %d attempts",
                        response.status_code,
                        url,
                        state.max_retries,
                    )
                    return Failure(
                        f"Failed to fetch website after {state.max_retries} attempts: "
                        f"{response.status_code} {response.reason_phrase}",
                        FailureKind.HTTP_STATUS_EXHAUSTED,
                    )
                logger.info(
                    "scraper: HTTP %d for %s (attempt %d/%d)",
                    response.status_code,
                    url,
                    state.attempt,
                    state.max_retries,
                )

            await sleep(state.delay)
    except Exception as exc:  # noqa: BLE001
        logger.warning("scraper: unexpected error fetching %s: %s", url, exc)
        return Failure(f"Unexpected error: {_describe(exc)}", FailureKind.UNEXPECTED_ERROR)
