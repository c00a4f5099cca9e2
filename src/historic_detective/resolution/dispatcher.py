"""Per-modality dispatch of a resolution request.

States:
    TEXT_QUERY      geocode → property (sequential) ‖ archive; policy [archive, property]
    IMAGE_QUERY     ocr ‖ image recognition → archive(top id); policy [archive, image_index]
    LOCATION_QUERY  property(lat, lon); policy [property]
    INVALID_MODALITY  terminal error, no adapters invoked

Every adapter call is bounded by a timeout. Timeouts and adapter failures
become error results for that adapter only; the request degrades to whatever
did arrive. The report collaborator is called only after a winner exists.
The dispatcher never retries.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from historic_detective.adapters.base import ReportComposer, ToolAdapter
from historic_detective.config import settings
from historic_detective.errors import AdapterError, InvalidInput
from historic_detective.models.enums import Modality, ResolutionStatus, Source, ToolStatus
from historic_detective.models.schemas import Candidate, Query, Resolution, ToolResult
from historic_detective.resolution.consolidator import (
    CandidateConsolidator,
    Consolidation,
    ConsolidationPolicy,
)

logger = logging.getLogger(__name__)


class DispatchState(str, Enum):
    """Dispatcher state selected from the query modality."""

    TEXT_QUERY = "text_query"
    IMAGE_QUERY = "image_query"
    LOCATION_QUERY = "location_query"
    INVALID_MODALITY = "invalid_modality"


_STATE_BY_MODALITY = {
    Modality.TEXT: DispatchState.TEXT_QUERY,
    Modality.IMAGE: DispatchState.IMAGE_QUERY,
    Modality.LOCATION: DispatchState.LOCATION_QUERY,
}


@dataclass(frozen=True)
class AdapterSet:
    """Named adapters wired in at service composition time."""

    geocoder: ToolAdapter
    parcels: ToolAdapter
    archives: ToolAdapter
    image_index: ToolAdapter
    ocr: ToolAdapter


def _skipped(reason: str) -> ToolResult:
    """Placeholder for a dependent adapter that was not called."""
    return ToolResult.empty(skipped=True, msg=reason)


class InputDispatcher:
    """Run the modality pipeline for a query and return one Resolution.

    Usage:
        dispatcher = InputDispatcher(adapters, MarkdownReportComposer())
        resolution = await dispatcher.resolve(Query.for_text("The Arcade Cleveland"))
        resolution.status     # success / no_match / error
        resolution.candidate  # winning Candidate on success
    """

    def __init__(
        self,
        adapters: AdapterSet,
        composer: ReportComposer,
        *,
        text_policy: ConsolidationPolicy | None = None,
        image_policy: ConsolidationPolicy | None = None,
        location_policy: ConsolidationPolicy | None = None,
        default_timeout: float | None = None,
        timeouts: Mapping[str, float] | None = None,
        report_timeout: float | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            adapters: The adapters to call.
            composer: Report collaborator for winning candidates.
            text_policy: Precedence for text queries (default from config).
            image_policy: Precedence for image queries (default from config).
            location_policy: Precedence for location queries (default from config).
            default_timeout: Seconds allowed per adapter call (default from config).
            timeouts: Per-source overrides, keyed by source name.
            report_timeout: Seconds allowed for report composition.
        """
        self._adapters = adapters
        self._composer = composer
        self._consolidators = {
            DispatchState.TEXT_QUERY: CandidateConsolidator(
                text_policy or ConsolidationPolicy.of(settings.text_policy)
            ),
            DispatchState.IMAGE_QUERY: CandidateConsolidator(
                image_policy or ConsolidationPolicy.of(settings.image_policy)
            ),
            DispatchState.LOCATION_QUERY: CandidateConsolidator(
                location_policy or ConsolidationPolicy.of(settings.location_policy)
            ),
        }
        self._default_timeout = (
            settings.adapter_timeout if default_timeout is None else default_timeout
        )
        self._timeouts = dict(settings.adapter_timeouts if timeouts is None else timeouts)
        self._report_timeout = (
            settings.report_timeout if report_timeout is None else report_timeout
        )

    @staticmethod
    def state_for(query: Query) -> DispatchState:
        mode = query.mode
        if mode is None:
            return DispatchState.INVALID_MODALITY
        return _STATE_BY_MODALITY[mode]

    async def resolve(self, query: Query | Mapping[str, Any]) -> Resolution:
        """Resolve a query to a single best candidate.

        Args:
            query: A Query, or a raw request mapping to validate.

        Returns:
            SUCCESS with candidate and report, NO_MATCH with diagnostics, or
            ERROR for invalid input / when every adapter failed.
        """
        if not isinstance(query, Query):
            try:
                query = Query.parse(dict(query))
            except InvalidInput as e:
                return self._invalid(str(e))

        state = self.state_for(query)
        logger.debug("Dispatching %s query", state.value)

        if state == DispatchState.TEXT_QUERY:
            results, extra = await self._run_text(query)
        elif state == DispatchState.IMAGE_QUERY:
            results, extra = await self._run_image(query)
        elif state == DispatchState.LOCATION_QUERY:
            results, extra = await self._run_location(query)
        else:
            return self._invalid(f"unsupported input mode: {query.modality}")

        consolidation = self._consolidators[state].consolidate(results)
        return await self._finish(state, consolidation, results, extra)

    # ── Modality pipelines ─────────────────────────────────────────────────

    async def _run_text(self, query: Query) -> tuple[dict[str, ToolResult], dict[str, Any]]:
        text = query.text or ""
        archive, (geocode, prop) = await asyncio.gather(
            self._invoke(Source.ARCHIVE, self._adapters.archives, {"query": text}),
            self._geocode_then_property(text),
        )
        results = {
            Source.ARCHIVE.value: archive,
            Source.PROPERTY.value: prop,
            Source.GEOCODE.value: geocode,
        }
        return results, {}

    async def _geocode_then_property(self, text: str) -> tuple[ToolResult, ToolResult]:
        geocode = await self._invoke(Source.GEOCODE, self._adapters.geocoder, {"query": text})
        point = geocode.top if geocode.usable else None
        if point is None or point.lat is None or point.lon is None:
            return geocode, _skipped("no geocoded point for property lookup")

        prop = await self._invoke(
            Source.PROPERTY, self._adapters.parcels, {"lat": point.lat, "lon": point.lon}
        )
        return geocode, prop

    async def _run_image(self, query: Query) -> tuple[dict[str, ToolResult], dict[str, Any]]:
        request = {"image_path": query.image_path}
        ocr, recognition = await asyncio.gather(
            self._invoke(Source.OCR, self._adapters.ocr, request),
            self._invoke(Source.IMAGE_INDEX, self._adapters.image_index, request),
        )
        extra: dict[str, Any] = {"ocr_text": ocr.meta.get("text")}

        if not recognition.usable:
            results = {Source.IMAGE_INDEX.value: recognition, Source.OCR.value: ocr}
            return results, extra

        top = recognition.candidates[0]
        fallback = Candidate(id=top.id, source=Source.IMAGE_INDEX.value, score=top.score)
        image_index = ToolResult(status=ToolStatus.OK, candidates=(fallback,), meta=recognition.meta)

        if top.id is None:
            archive = _skipped("recognition match has no id")
        else:
            archive = await self._invoke(
                Source.ARCHIVE, self._adapters.archives, {"query": top.id}
            )

        results = {
            Source.ARCHIVE.value: archive,
            Source.IMAGE_INDEX.value: image_index,
            Source.OCR.value: ocr,
        }
        return results, extra

    async def _run_location(self, query: Query) -> tuple[dict[str, ToolResult], dict[str, Any]]:
        prop = await self._invoke(
            Source.PROPERTY, self._adapters.parcels, {"lat": query.lat, "lon": query.lon}
        )
        return {Source.PROPERTY.value: prop}, {}

    # ── Adapter invocation ─────────────────────────────────────────────────

    def _timeout_for(self, source: Source) -> float:
        return self._timeouts.get(source.value, self._default_timeout)

    async def _invoke(
        self,
        source: Source,
        adapter: ToolAdapter,
        request: Mapping[str, Any],
    ) -> ToolResult:
        """Call one adapter under its timeout. Never raises (except on cancellation)."""
        timeout = self._timeout_for(source)
        start_time = time.time()
        try:
            result = await asyncio.wait_for(adapter.run(request), timeout=timeout)
        except TimeoutError:
            logger.warning("Adapter %s timed out after %.1fs", source.value, timeout)
            return ToolResult.error(error="timeout", timeout_s=timeout)
        except AdapterError as e:
            logger.warning("Adapter %s failed: %s", source.value, e.message)
            return ToolResult.error(error="adapter_error", msg=e.message)
        except Exception as e:
            logger.exception("Adapter %s raised unexpectedly", source.value)
            return ToolResult.error(error=type(e).__name__, msg=str(e))

        elapsed = (time.time() - start_time) * 1000  # ms
        logger.debug(
            "Adapter %s → %s (%d candidates, %.0fms)",
            source.value, result.status.value, len(result.candidates), elapsed,
        )
        return result

    # ── Terminal outcomes ──────────────────────────────────────────────────

    async def _finish(
        self,
        state: DispatchState,
        consolidation: Consolidation,
        results: Mapping[str, ToolResult],
        extra: dict[str, Any],
    ) -> Resolution:
        meta: dict[str, Any] = {"state": state.value, "sources": consolidation.meta, **extra}

        if consolidation.candidate is None:
            invoked = [r for r in results.values() if not r.meta.get("skipped")]
            if invoked and all(r.status == ToolStatus.ERROR for r in invoked):
                logger.info("All adapters failed for %s query", state.value)
                return Resolution(status=ResolutionStatus.ERROR, meta=meta)
            return Resolution(status=ResolutionStatus.NO_MATCH, meta=meta)

        meta["winner"] = consolidation.source
        report = await self._compose(consolidation.candidate, meta)
        return Resolution(
            status=ResolutionStatus.SUCCESS,
            candidate=consolidation.candidate,
            report=report,
            meta=meta,
        )

    async def _compose(self, candidate: Candidate, meta: dict[str, Any]) -> str | None:
        try:
            report = await asyncio.wait_for(
                self._composer.compose(candidate), timeout=self._report_timeout
            )
        except TimeoutError:
            logger.warning("Report composition timed out after %.1fs", self._report_timeout)
            meta["report_error"] = "timeout"
            return None
        except Exception as e:
            logger.exception("Report composition failed")
            meta["report_error"] = str(e)
            return None
        return report.report_markdown

    def _invalid(self, message: str) -> Resolution:
        logger.info("Rejected query: %s", message)
        return Resolution(
            status=ResolutionStatus.ERROR,
            meta={
                "state": DispatchState.INVALID_MODALITY.value,
                "error": "invalid_input",
                "msg": message,
            },
        )
