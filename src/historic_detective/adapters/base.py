"""The ToolAdapter contract shared by every external collaborator."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import BaseModel

from historic_detective.models.schemas import Candidate, ToolResult


class ToolAdapter(Protocol):
    """Protocol for lookup sources.

    Each adapter wraps one external or local source and always answers with a
    ToolResult (ok / empty / error). Adapters are async because most of them
    do IO (HTTP, subprocesses, model inference); CPU-bound work is pushed to a
    worker thread so the event loop stays free.

    Adapters may raise; the dispatcher turns exceptions and timeouts into
    error results for that adapter only.
    """

    name: str

    async def run(self, request: Mapping[str, Any]) -> ToolResult:
        """Answer a modality-specific request.

        Args:
            request: e.g. ``{"query": ...}``, ``{"lat": ..., "lon": ...}``
                or ``{"image_path": ...}``.

        Returns:
            Result with candidates in the adapter's relevance order.
        """
        ...


class Report(BaseModel):
    """Rendered report for a winning candidate."""

    report_markdown: str


class ReportComposer(Protocol):
    """Renders a report for a Candidate. Called only once a winner exists."""

    async def compose(self, candidate: Candidate) -> Report: ...
