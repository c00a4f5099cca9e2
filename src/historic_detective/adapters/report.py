"""Markdown report rendering for a resolved building."""

from __future__ import annotations

from historic_detective.adapters.base import Report
from historic_detective.models.schemas import Candidate

UNKNOWN = "Unknown"


def _field(value: object | None) -> str:
    # Only a missing value is unknown; an empty string renders as-is
    return UNKNOWN if value is None else str(value)


class MarkdownReportComposer:
    """Render a short Markdown report for one Candidate."""

    async def compose(self, candidate: Candidate) -> Report:
        return Report(report_markdown=render_report(candidate))


def render_report(candidate: Candidate) -> str:
    lines = [
        "# Historic Building Report",
        "",
        f"**Title / Name:** {_field(candidate.title)}",
        "",
        f"**Address:** {_field(candidate.address)}",
        "",
        f"**Year built:** {_field(candidate.year)}",
        "",
        "**Sources:**",
        f"- {candidate.source}",
    ]
    if candidate.url is not None:
        lines.append(f"- {candidate.url}")
    return "\n".join(lines) + "\n"
