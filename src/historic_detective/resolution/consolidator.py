"""Cross-source consolidation under a fixed source-priority policy.

Rule: walk the policy in order; the first source whose result is OK with at
least one candidate wins, and its top candidate (index 0) is the answer.

Source precedence strictly overrides score. A 0.60 archive candidate beats a
0.95 property candidate under ``[archive, property]``. Nothing is re-scored,
re-ranked or mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from historic_detective.models.schemas import Candidate, ToolResult


@dataclass(frozen=True)
class ConsolidationPolicy:
    """Ordered source names, highest precedence first. Fixed at configuration time."""

    sources: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.sources:
            raise ValueError("consolidation policy needs at least one source")
        if len(set(self.sources)) != len(self.sources):
            raise ValueError(f"duplicate source in policy: {self.sources}")

    @classmethod
    def of(cls, sources: Iterable[str]) -> ConsolidationPolicy:
        return cls(tuple(sources))

    def __iter__(self):
        return iter(self.sources)


@dataclass
class Consolidation:
    """Outcome of consolidation."""

    candidate: Candidate | None
    """Winning candidate, or None for no match."""

    source: str | None
    """Policy source that produced the winner."""

    meta: dict[str, Any] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]
    """Diagnostics for every supplied source, winner or not."""

    @property
    def matched(self) -> bool:
        return self.candidate is not None


class CandidateConsolidator:
    """Select one winning Candidate from several adapters' results.

    Usage:
        consolidator = CandidateConsolidator(ConsolidationPolicy(("archive", "property")))
        outcome = consolidator.consolidate({"archive": archive_result, "property": prop_result})
        outcome.candidate  # archive top if usable, else property top, else None
    """

    def __init__(self, policy: ConsolidationPolicy) -> None:
        self._policy = policy

    @property
    def policy(self) -> ConsolidationPolicy:
        return self._policy

    def consolidate(self, results_by_source: Mapping[str, ToolResult]) -> Consolidation:
        meta = {source: result.diagnostics() for source, result in results_by_source.items()}

        for source in self._policy:
            result = results_by_source.get(source)
            if result is not None and result.usable:
                return Consolidation(candidate=result.candidates[0], source=source, meta=meta)

        return Consolidation(candidate=None, source=None, meta=meta)
