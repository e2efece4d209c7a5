"""Unit tests for the single-URL fetcher.

Covers the robots.txt gate, retry counting and backoff, the four failure
messages, and successful extraction, using respx-mocked httpx responses and
an injected sleep so no test waits on real backoff.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from deepsearch_crawler.core.exceptions import InvalidURLError
from deepsearch_crawler.scraper.http_fetcher import (
    RetryState,
    backoff_delay,
    fetch_one,
    validate_url,
)
from deepsearch_crawler.scraper.outcomes import Failure, FailureKind, Success

_ARTICLE_HTML = "<html><body><nav>Menu</nav><article><p>Hello reader</p></article></body></html>"


def _allow_all() -> AsyncMock:
    return AsyncMock(return_value=True)


# ---------------------------------------------------------------------------
# Retry state and backoff
# ---------------------------------------------------------------------------


class TestBackoffDelay:
    def test_doubles_from_one_second(self) -> None:
        assert [backoff_delay(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max(self) -> None:
        assert backoff_delay(5) == 8.0
        assert backoff_delay(30) == 8.0

    def test_custom_base_and_max(self) -> None:
        assert backoff_delay(3, base=0.1, maximum=0.5) == 0.5


class TestRetryState:
    def test_advance_returns_new_state(self) -> None:
        state = RetryState(max_retries=3)
        advanced = state.advance()
        assert state.attempt == 0
        assert advanced.attempt == 1

    def test_exhausted_after_max_attempts(self) -> None:
        state = RetryState(max_retries=2).advance()
        assert not state.exhausted
        assert state.advance().exhausted

    def test_delay_follows_attempt(self) -> None:
        assert RetryState(max_retries=3, attempt=2).delay == 2.0


class TestValidateUrl:
    def test_accepts_http_and_https(self) -> None:
        assert validate_url("http://example.com") == "http://example.com"
        assert validate_url("https://example.com/a?b=c") == "https://example.com/a?b=c"

    @pytest.mark.parametrize("url", ["not a url", "ftp://example.com/x", "https://", "/relative"])
    def test_rejects_invalid(self, url: str) -> None:
        with pytest.raises(InvalidURLError) as excinfo:
            validate_url(url)
        assert excinfo.value.url == url


# ---------------------------------------------------------------------------
# fetch_one
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestFetchOneSuccess:
    async def test_returns_extracted_markdown(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/robots.txt").mock(return_value=httpx.Response(404))
            mock.get("/article").mock(return_value=httpx.Response(200, text=_ARTICLE_HTML))
            outcome = await fetch_one(
                "https://example.com/article", client=http_client, sleep=no_sleep
            )

        assert outcome == Success("Hello reader")
        no_sleep.assert_not_awaited()

    async def test_retries_then_succeeds(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            route = mock.get("/flaky").mock(
                side_effect=[
                    httpx.Response(503),
                    httpx.ConnectError("reset"),
                    httpx.Response(200, text=_ARTICLE_HTML),
                ]
            )
            outcome = await fetch_one(
                "https://example.com/flaky",
                client=http_client,
                robots_check=_allow_all(),
                sleep=no_sleep,
            )

        assert isinstance(outcome, Success)
        assert route.call_count == 3
        assert [c.args[0] for c in no_sleep.await_args_list] == [1.0, 2.0]

    async def test_follows_redirects(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/old").mock(
                return_value=httpx.Response(301, headers={"Location": "https://example.com/new"})
            )
            mock.get("/new").mock(return_value=httpx.Response(200, text=_ARTICLE_HTML))
            outcome = await fetch_one(
                "https://example.com/old",
                client=http_client,
                robots_check=_allow_all(),
                sleep=no_sleep,
            )

        assert outcome == Success("Hello reader")


@pytest.mark.asyncio
class TestFetchOneFailures:
    async def test_robots_block_makes_no_page_request(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        with respx.mock(base_url="https://example.com", assert_all_called=False) as mock:
            mock.get("/robots.txt").mock(
                return_value=httpx.Response(200, text="User-agent: *\nDisallow: /\n")
            )
            page = mock.get("/secret").mock(return_value=httpx.Response(200, text=_ARTICLE_HTML))
            outcome = await fetch_one(
                "https://example.com/secret", client=http_client, sleep=no_sleep
            )

        assert outcome == Failure(
            "Crawling disallowed by robots.txt", FailureKind.POLICY_BLOCKED
        )
        assert page.call_count == 0

    async def test_http_500_exhausts_retries(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            route = mock.get("/broken").mock(return_value=httpx.Response(500))
            outcome = await fetch_one(
                "https://example.com/broken",
                3,
                client=http_client,
                robots_check=_allow_all(),
                sleep=no_sleep,
            )

        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.HTTP_STATUS_EXHAUSTED
        assert outcome.reason == (
            "Failed to fetch website after 3 attempts: 500 Internal Server Error"
        )
        assert route.call_count == 3
        assert no_sleep.await_count == 2

    async def test_max_retries_respected(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            route = mock.get("/gone").mock(return_value=httpx.Response(404))
            outcome = await fetch_one(
                "https://example.com/gone",
                5,
                client=http_client,
                robots_check=_allow_all(),
                sleep=no_sleep,
            )

        assert route.call_count == 5
        assert "after 5 attempts" in outcome.reason
        assert "404" in outcome.reason

    async def test_zero_retries_still_attempts_once(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            route = mock.get("/gone").mock(return_value=httpx.Response(404))
            outcome = await fetch_one(
                "https://example.com/gone",
                0,
                client=http_client,
                robots_check=_allow_all(),
                sleep=no_sleep,
            )

        assert route.call_count == 1
        assert "after 1 attempts" in outcome.reason

    async def test_network_error_exhausts_retries(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            route = mock.get("/slow").mock(side_effect=httpx.ReadTimeout("timed out"))
            outcome = await fetch_one(
                "https://example.com/slow",
                client=http_client,
                robots_check=_allow_all(),
                sleep=no_sleep,
            )

        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.NETWORK_EXHAUSTED
        assert outcome.reason.startswith("Network error after 3 attempts:")
        assert route.call_count == 3

    async def test_invalid_url_is_unexpected_error(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        robots_check = _allow_all()
        outcome = await fetch_one(
            "not a url", client=http_client, robots_check=robots_check, sleep=no_sleep
        )

        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.UNEXPECTED_ERROR
        assert outcome.reason.startswith("Unexpected error:")
        robots_check.assert_not_awaited()

    async def test_robots_check_crash_is_unexpected_error(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        robots_check = AsyncMock(side_effect=RuntimeError("checker broke"))
        outcome = await fetch_one(
            "https://example.com/a",
            client=http_client,
            robots_check=robots_check,
            sleep=no_sleep,
        )

        assert outcome == Failure("Unexpected error: checker broke", FailureKind.UNEXPECTED_ERROR)

    async def test_failure_reasons_are_distinct(
        self, http_client: httpx.AsyncClient, no_sleep: AsyncMock
    ) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/status").mock(return_value=httpx.Response(502))
            mock.get("/network").mock(side_effect=httpx.ConnectError("refused"))
            status_outcome = await fetch_one(
                "https://example.com/status",
                1,
                client=http_client,
                robots_check=_allow_all(),
                sleep=no_sleep,
            )
            network_outcome = await fetch_one(
                "https://example.com/network",
                1,
                client=http_client,
                robots_check=_allow_all(),
                sleep=no_sleep,
            )

        assert status_outcome.reason != network_outcome.reason
        assert status_outcome.kind is not network_outcome.kind
