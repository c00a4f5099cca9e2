"""Candidate resolution pipeline.

Submodules:
- consolidator: source-priority selection of one winning candidate
- dispatcher: per-modality state machine that invokes adapters
"""

from historic_detective.resolution.consolidator import (
    CandidateConsolidator,
    Consolidation,
    ConsolidationPolicy,
)
from historic_detective.resolution.dispatcher import AdapterSet, DispatchState, InputDispatcher

__all__ = [
    "AdapterSet",
    "CandidateConsolidator",
    "Consolidation",
    "ConsolidationPolicy",
    "DispatchState",
    "InputDispatcher",
]
