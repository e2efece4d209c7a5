"""Per-URL and per-batch crawl outcomes.

A single fetch produces exactly one :data:`FetchOutcome`, either
:class:`Success` (extracted markdown) or :class:`Failure` (a human-readable,
cause-distinguishing reason).  The bulk crawler assembles these into a
:class:`BatchOutcome` whose ``per_url`` order mirrors the requested URLs.

All outcome types are frozen dataclasses.  ``to_dict()`` and
:func:`outcome_from_dict` provide the JSON-safe form used by the cache layer
and the HTTP API.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Union

from deepsearch_crawler.scraper.config import AGGREGATE_ERROR_PREFIX


class FailureKind(str, enum.Enum):
    """Why a fetch failed.

    ``POLICY_BLOCKED`` is permanent; ``HTTP_STATUS_EXHAUSTED``,
    ``NETWORK_EXHAUSTED`` and ``TIMED_OUT`` may succeed when retried later;
    ``UNEXPECTED_ERROR`` will not succeed until the input changes.
    """

    POLICY_BLOCKED = "policy_blocked"
    HTTP_STATUS_EXHAUSTED = "http_status_exhausted"
    NETWORK_EXHAUSTED = "network_exhausted"
    UNEXPECTED_ERROR = "unexpected_error"
    TIMED_OUT = "timed_out"

    @property
    def retryable(self) -> bool:
        return self not in (FailureKind.POLICY_BLOCKED, FailureKind.UNEXPECTED_ERROR)


@dataclass(frozen=True)
class Success:
    """Successful fetch.

    Attributes:
        content: Article content converted to markdown.
    """

    content: str
    success: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "data": self.content}


@dataclass(frozen=True)
class Failure:
    """Failed fetch.

    Attributes:
        reason: Human-readable description of the failure.
        kind: Machine-readable failure category.
    """

    reason: str
    kind: FailureKind = FailureKind.UNEXPECTED_ERROR
    success: bool = field(default=False, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.reason, "kind": self.kind.value}


FetchOutcome = Union[Success, Failure]


def outcome_from_dict(data: dict[str, Any]) -> FetchOutcome:
    """Rebuild a :data:`FetchOutcome` from its ``to_dict()`` form.

    Raises:
        ValueError: If ``data`` is not a recognisable outcome mapping.
    """
    if not isinstance(data, dict) or "success" not in data:
        raise ValueError(f"Not a fetch outcome: {data!r}")
    if data["success"]:
        content = data.get("data")
        if not isinstance(content, str):
            raise ValueError("Success outcome is missing string 'data'")
        return Success(content=content)
    reason = data.get("error")
    if not isinstance(reason, str):
        raise ValueError("Failure outcome is missing string 'error'")
    kind = FailureKind(data.get("kind", FailureKind.UNEXPECTED_ERROR.value))
    return Failure(reason=reason, kind=kind)


@dataclass(frozen=True)
class BatchOutcome:
    """Result of crawling a batch of URLs.

    Attributes:
        per_url: ``(url, outcome)`` pairs in the order the URLs were given.
        overall_success: ``True`` iff every outcome is a :class:`Success`.
        aggregate_error: Summary of every failing URL, or ``None`` on
            overall success.
    """

    per_url: tuple[tuple[str, FetchOutcome], ...]
    overall_success: bool
    aggregate_error: str | None = None

    @classmethod
    def from_results(cls, results: list[tuple[str, FetchOutcome]]) -> BatchOutcome:
        """Aggregate ordered per-URL outcomes into a batch verdict."""
        failures = [
            (url, outcome) for url, outcome in results if isinstance(outcome, Failure)
        ]
        if not failures:
            return cls(per_url=tuple(results), overall_success=True)

        lines = "\n".join(f"{url}: {outcome.reason}" for url, outcome in failures)
        return cls(
            per_url=tuple(results),
            overall_success=False,
            aggregate_error=f"{AGGREGATE_ERROR_PREFIX}\n{lines}",
        )

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.per_url]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.overall_success,
            "results": [
                {"url": url, "result": outcome.to_dict()} for url, outcome in self.per_url
            ],
        }
        if self.aggregate_error is not None:
            payload["error"] = self.aggregate_error
        return payload
