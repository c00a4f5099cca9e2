"""Adapters for the external lookup sources.

Every adapter honours the same contract (``ToolAdapter``): an async
``run(request)`` that answers with a ``ToolResult``.
"""

from historic_detective.adapters.archives import ArchiveSearch
from historic_detective.adapters.base import Report, ReportComposer, ToolAdapter
from historic_detective.adapters.geocode import NominatimGeocoder
from historic_detective.adapters.ocr import TesseractOcr
from historic_detective.adapters.parcels import ParcelLookup
from historic_detective.adapters.report import MarkdownReportComposer, render_report
from historic_detective.adapters.vector_search import ImageRecognizer, TextVectorSearch

__all__ = [
    "ArchiveSearch",
    "ImageRecognizer",
    "MarkdownReportComposer",
    "NominatimGeocoder",
    "ParcelLookup",
    "Report",
    "ReportComposer",
    "TesseractOcr",
    "TextVectorSearch",
    "ToolAdapter",
    "render_report",
]
