"""Data model for Historic Detective."""

from historic_detective.models.enums import Metric, Modality, ResolutionStatus, Source, ToolStatus
from historic_detective.models.schemas import Candidate, Query, Resolution, ToolResult

__all__ = [
    "Candidate",
    "Metric",
    "Modality",
    "Query",
    "Resolution",
    "ResolutionStatus",
    "Source",
    "ToolResult",
    "ToolStatus",
]
