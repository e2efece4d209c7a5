"""Unit tests for outcome types and their dict form."""

from __future__ import annotations

import dataclasses

import pytest

from deepsearch_crawler.scraper.outcomes import (
    BatchOutcome,
    Failure,
    FailureKind,
    Success,
    outcome_from_dict,
)


class TestFetchOutcome:
    def test_success_flag(self) -> None:
        assert Success("x").success is True
        assert Failure("y").success is False

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            Success("x").content = "changed"  # type: ignore[misc]

    def test_failure_default_kind(self) -> None:
        assert Failure("y").kind is FailureKind.UNEXPECTED_ERROR

    def test_to_dict(self) -> None:
        assert Success("md").to_dict() == {"success": True, "data": "md"}
        assert Failure("nope", FailureKind.POLICY_BLOCKED).to_dict() == {
            "success": False,
            "error": "nope",
            "kind": "policy_blocked",
        }

    @pytest.mark.parametrize(
        "kind, retryable",
        [
            (FailureKind.POLICY_BLOCKED, False),
            (FailureKind.UNEXPECTED_ERROR, False),
            (FailureKind.HTTP_STATUS_EXHAUSTED, True),
            (FailureKind.NETWORK_EXHAUSTED, True),
            (FailureKind.TIMED_OUT, True),
        ],
    )
    def test_retryable(self, kind: FailureKind, retryable: bool) -> None:
        assert kind.retryable is retryable


class TestOutcomeFromDict:
    def test_failure_without_kind(self) -> None:
        assert outcome_from_dict({"success": False, "error": "e"}) == Failure("e")

    def test_empty_success_content(self) -> None:
        assert outcome_from_dict({"success": True, "data": ""}) == Success("")

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"success": True},
            {"success": False},
            {"success": True, "data": 5},
            {"success": False, "error": "e", "kind": "bogus"},
            ["success", True],
        ],
    )
    def test_rejects_malformed(self, data: object) -> None:
        with pytest.raises(ValueError):
            outcome_from_dict(data)  # type: ignore[arg-type]


class TestBatchOutcome:
    def test_all_success(self) -> None:
        batch = BatchOutcome.from_results([("https://a", Success("A"))])
        assert batch.overall_success is True
        assert batch.aggregate_error is None
        assert batch.to_dict() == {
            "success": True,
            "results": [{"url": "https://a", "result": {"success": True, "data": "A"}}],
        }

    def test_partial_failure(self) -> None:
        batch = BatchOutcome.from_results(
            [("https://a", Success("A")), ("https://b", Failure("bad"))]
        )
        assert batch.overall_success is False
        assert batch.aggregate_error == "Failed to crawl some websites:\nhttps://b: bad"
        assert batch.to_dict()["error"] == batch.aggregate_error

    def test_per_url_is_immutable_tuple(self) -> None:
        batch = BatchOutcome.from_results([("https://a", Success("A"))])
        assert isinstance(batch.per_url, tuple)
