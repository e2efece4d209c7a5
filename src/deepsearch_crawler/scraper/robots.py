"""robots.txt policy checks.

Fetches ``<scheme>://<host>/robots.txt`` with httpx and evaluates it with
:class:`urllib.robotparser.RobotFileParser`.  The check is fail-open: a
missing robots.txt, a non-2xx response, a network error or an unparseable
file all mean the URL is allowed.

By default each :func:`is_allowed` call performs one robots.txt fetch.  To
reuse a site's robots.txt across calls, pass a ``fetch_body`` coroutine
(for example :func:`fetch_robots_txt` wrapped with
:func:`deepsearch_crawler.scraper.cache.cached`, keyed by robots.txt URL).
"""

from __future__ import annotations

import logging
import urllib.parse
import urllib.robotparser
from typing import Awaitable, Callable

import httpx

from deepsearch_crawler.scraper.config import (
    DEFAULT_TIMEOUT,
    ROBOTS_USER_AGENT,
    USER_AGENT,
)

logger = logging.getLogger(__name__)

FetchBody = Callable[[str], Awaitable["str | None"]]


def robots_url_for(url: str) -> str:
    """Return the robots.txt URL for the origin (scheme + host) of ``url``."""
    parsed = urllib.parse.urlsplit(url)
    return f"{parsed.scheme}://{parsed.netloc}/robots.txt"


async def fetch_robots_txt(
    robots_url: str,
    *,
    client: httpx.AsyncClient,
    timeout: float = DEFAULT_TIMEOUT,
    request_user_agent: str = USER_AGENT,
) -> str | None:
    """Fetch a robots.txt body.

    Returns:
        The body text, or ``None`` when the server answers with a non-2xx
        status (no enforceable policy).

    Raises:
        httpx.RequestError: On network failure.  Not converted to ``None``
            so that a transient outage is never cached as "no policy".
    """
    response = await client.get(
        robots_url,
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": request_user_agent},
    )
    if not response.is_success:
        logger.debug(
            "scraper: robots.txt returned HTTP %d for %s",
            response.status_code,
            robots_url,
        )
        return None
    return response.text


def is_allowed_by(body: str | None, url: str, user_agent: str) -> bool:
    """Evaluate a robots.txt body for ``url`` and ``user_agent``.

    ``None`` (no policy) allows everything; so does a body with no group
    matching the agent.
    """
    if body is None:
        return True
    rp = urllib.robotparser.RobotFileParser()
    rp.set_url(robots_url_for(url))
    rp.parse(body.splitlines())
    return bool(rp.can_fetch(user_agent, url))


async def is_allowed(
    url: str,
    user_agent: str = ROBOTS_USER_AGENT,
    *,
    client: httpx.AsyncClient,
    timeout: float = DEFAULT_TIMEOUT,
    request_user_agent: str = USER_AGENT,
    fetch_body: FetchBody | None = None,
) -> bool:
    """Return ``True`` if ``user_agent`` may fetch ``url`` according to robots.txt.

    Never raises.

    Args:
        url: Target URL.
        user_agent: Agent token evaluated against the robots.txt groups.
        client: Shared :class:`httpx.AsyncClient` instance.
        timeout: Seconds to wait for the robots.txt response.
        request_user_agent: ``User-Agent`` header sent with the robots.txt
            request itself.
        fetch_body: Optional replacement for :func:`fetch_robots_txt`,
            called with the robots.txt URL.

    Returns:
        ``False`` only when robots.txt was fetched, parsed, and disallows
        the URL.
    """
    try:
        robots_url = robots_url_for(url)
        if fetch_body is None:
            body = await fetch_robots_txt(
                robots_url,
                client=client,
                timeout=timeout,
                request_user_agent=request_user_agent,
            )
        else:
            body = await fetch_body(robots_url)
        return is_allowed_by(body, url, user_agent)
    except Exception as exc:  # noqa: BLE001
        logger.debug("scraper: robots.txt check failed for %s: %s, allowing", url, exc)
        return True
