"""Tests for source-priority consolidation."""

from __future__ import annotations

import pytest

from historic_detective.models import Candidate, ToolResult, ToolStatus
from historic_detective.resolution.consolidator import (
    CandidateConsolidator,
    ConsolidationPolicy,
)

ARCHIVE_FIRST = ConsolidationPolicy(("archive", "property"))


def candidate(source: str, score: float | None = None, **fields) -> Candidate:
    return Candidate(source=source, score=score, **fields)


class TestConsolidationPolicy:
    def test_requires_sources(self) -> None:
        with pytest.raises(ValueError):
            ConsolidationPolicy(())

    def test_rejects_duplicates(self) -> None:
        with pytest.raises(ValueError, match="duplicate"):
            ConsolidationPolicy(("archive", "archive"))

    def test_is_immutable(self) -> None:
        with pytest.raises(AttributeError):
            ARCHIVE_FIRST.sources = ("property",)  # type: ignore[misc]

    def test_of_preserves_order(self) -> None:
        policy = ConsolidationPolicy.of(["image_index", "archive"])
        assert list(policy) == ["image_index", "archive"]


class TestCandidateConsolidator:
    def test_priority_overrides_score(self) -> None:
        archive = candidate("archive", 0.60, id="a1")
        prop = candidate("property", 0.95, id="p1")

        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({
            "archive": ToolResult.ok([archive]),
            "property": ToolResult.ok([prop]),
        })

        assert outcome.candidate == archive
        assert outcome.source == "archive"
        assert outcome.matched

    def test_result_order_independent_of_mapping_order(self) -> None:
        archive = candidate("archive", 0.1)
        prop = candidate("property", 0.9)

        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({
            "property": ToolResult.ok([prop]),
            "archive": ToolResult.ok([archive]),
        })

        assert outcome.candidate is archive

    def test_falls_through_error(self) -> None:
        prop = candidate("property", 0.5, id="p1")

        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({
            "archive": ToolResult.error(error="timeout"),
            "property": ToolResult.ok([prop]),
        })

        assert outcome.candidate is prop
        assert outcome.source == "property"

    def test_falls_through_empty(self) -> None:
        prop = candidate("property")

        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({
            "archive": ToolResult.empty(msg="no local archives loaded"),
            "property": ToolResult.ok([prop]),
        })

        assert outcome.candidate is prop

    def test_error_status_with_candidates_is_not_used(self) -> None:
        stale = candidate("archive", 0.99)
        prop = candidate("property", 0.1)

        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({
            "archive": ToolResult(status=ToolStatus.ERROR, candidates=(stale,)),
            "property": ToolResult.ok([prop]),
        })

        assert outcome.candidate is prop

    def test_takes_first_not_best_within_source(self) -> None:
        first = candidate("archive", 0.2, id="first")
        better = candidate("archive", 0.9, id="better")

        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({
            "archive": ToolResult.ok([first, better]),
        })

        assert outcome.candidate is first

    def test_no_match_when_all_empty_or_error(self) -> None:
        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({
            "archive": ToolResult.empty(msg="nothing"),
            "property": ToolResult.error(error="timeout"),
        })

        assert outcome.candidate is None
        assert outcome.source is None
        assert not outcome.matched

    def test_meta_covers_every_source(self) -> None:
        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({
            "archive": ToolResult.ok([candidate("archive")], n=1),
            "property": ToolResult.error(error="timeout"),
            "geocode": ToolResult.empty(msg="no hits"),
        })

        assert set(outcome.meta) == {"archive", "property", "geocode"}
        assert outcome.meta["property"] == {
            "status": "error",
            "n": 0,
            "meta": {"error": "timeout"},
        }
        assert outcome.meta["geocode"]["meta"] == {"msg": "no hits"}

    def test_sources_outside_policy_never_win(self) -> None:
        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({
            "geocode": ToolResult.ok([candidate("geocode", 1.0)]),
        })
        assert outcome.candidate is None

    def test_missing_policy_source_is_skipped(self) -> None:
        prop = candidate("property")
        outcome = CandidateConsolidator(ARCHIVE_FIRST).consolidate({"property": ToolResult.ok([prop])})
        assert outcome.candidate is prop

    def test_candidates_not_modified(self) -> None:
        archive = candidate("archive", 0.3, id="a1", title="Arcade")
        result = ToolResult.ok([archive])

        CandidateConsolidator(ARCHIVE_FIRST).consolidate({"archive": result})

        assert result.candidates == (archive,)
        assert archive.score == 0.3
        assert archive.title == "Arcade"
