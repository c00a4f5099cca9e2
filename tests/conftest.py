"""Shared pytest fixtures for Historic Detective tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import pytest

from historic_detective.adapters.base import Report
from historic_detective.adapters.report import MarkdownReportComposer
from historic_detective.models import Candidate, ToolResult
from historic_detective.resolution.dispatcher import AdapterSet, InputDispatcher


class StubAdapter:
    """ToolAdapter fake that returns a canned result and records its requests."""

    def __init__(
        self,
        name: str,
        result: ToolResult | None = None,
        *,
        raises: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.result = result if result is not None else ToolResult.empty()
        self.raises = raises
        self.delay = delay
        self.calls: list[dict[str, Any]] = []
        self.cancelled = False

    async def run(self, request: Mapping[str, Any]) -> ToolResult:
        self.calls.append(dict(request))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.raises is not None:
            raise self.raises
        return self.result


class RecordingComposer:
    """Report collaborator fake that records which candidates it rendered."""

    def __init__(self, *, raises: Exception | None = None) -> None:
        self.rendered: list[Candidate] = []
        self.raises = raises
        self._inner = MarkdownReportComposer()

    async def compose(self, candidate: Candidate) -> Report:
        self.rendered.append(candidate)
        if self.raises is not None:
            raise self.raises
        return await self._inner.compose(candidate)


MakeStubs = Callable[..., dict[str, StubAdapter]]
MakeDispatcher = Callable[..., InputDispatcher]


@pytest.fixture
def stubs() -> dict[str, StubAdapter]:
    """One empty stub per adapter role."""
    return {
        "geocode": StubAdapter("geocode"),
        "property": StubAdapter("property"),
        "archive": StubAdapter("archive"),
        "image_index": StubAdapter("image_index"),
        "ocr": StubAdapter("ocr"),
    }


@pytest.fixture
def composer() -> RecordingComposer:
    return RecordingComposer()


@pytest.fixture
def make_dispatcher(
    stubs: dict[str, StubAdapter], composer: RecordingComposer
) -> MakeDispatcher:
    """Factory fixture building a dispatcher over the stub adapters."""

    def _make(**kwargs: Any) -> InputDispatcher:
        adapters = AdapterSet(
            geocoder=stubs["geocode"],
            parcels=stubs["property"],
            archives=stubs["archive"],
            image_index=stubs["image_index"],
            ocr=stubs["ocr"],
        )
        kwargs.setdefault("default_timeout", 1.0)
        kwargs.setdefault("timeouts", {})
        return InputDispatcher(adapters, kwargs.pop("composer", composer), **kwargs)

    return _make


@pytest.fixture
def parcels_csv(tmp_path: Path) -> Path:
    path = tmp_path / "parcels.csv"
    path.write_text(
        "id,title,address,lat,lon,year\n"
        "P-100,The Arcade,401 Euclid Ave,41.5000,-81.6900,1890\n"
        "P-200,Rockefeller Building,614 W Superior Ave,41.5089,-81.6954,1905\n"
        "P-300,,123 Main St,41.4900,-81.7000,\n"
        "P-400,No Coordinates,1 Nowhere Rd,,,1950\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def archives_csv(tmp_path: Path) -> Path:
    path = tmp_path / "archives.csv"
    path.write_text(
        "id,title,address,year,url\n"
        "42,The Arcade,401 Euclid Ave,1890,https://example.org/arcade\n"
        "7,Old Stone Church,91 Public Square,1855,\n"
        "420,Arcade Annex,420 Euclid Ave,,\n",
        encoding="utf-8",
    )
    return path
