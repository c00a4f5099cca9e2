"""Service composition: wire adapters, indexes and the dispatcher from settings.

All process-wide resources (record stores, embedding snapshots, the embedder)
are created here once and passed explicitly to the components that use them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from historic_detective.adapters.archives import ArchiveSearch
from historic_detective.adapters.geocode import NominatimGeocoder
from historic_detective.adapters.ocr import TesseractOcr
from historic_detective.adapters.parcels import ParcelLookup
from historic_detective.adapters.report import MarkdownReportComposer
from historic_detective.adapters.vector_search import ImageRecognizer, TextVectorSearch
from historic_detective.clients.embeddings import Embedder, build_embedder
from historic_detective.config import Settings, settings
from historic_detective.index.vector_index import IndexHandle
from historic_detective.models.schemas import Query, Resolution, ToolResult
from historic_detective.resolution.consolidator import ConsolidationPolicy
from historic_detective.resolution.dispatcher import AdapterSet, InputDispatcher

logger = logging.getLogger(__name__)


@dataclass
class ResolverService:
    """A fully wired resolver."""

    dispatcher: InputDispatcher
    image_index: IndexHandle
    text_index: IndexHandle
    text_search: TextVectorSearch

    async def resolve(self, query: Query) -> Resolution:
        return await self.dispatcher.resolve(query)

    async def search_text(self, text: str) -> ToolResult:
        """Semantic search over the text embedding index."""
        return await self.text_search.run({"query": text})

    def reload_indexes(self) -> dict[str, int]:
        """Swap in fresh embedding snapshots. Returns vector counts per index."""
        return {
            handle.name: len(handle.reload())
            for handle in (self.image_index, self.text_index)
        }


def build_service(
    config: Settings | None = None,
    *,
    embedder: Embedder | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ResolverService:
    """Compose a ResolverService from configuration.

    Args:
        config: Settings to use (default: module settings).
        embedder: Embedding backend (default: chosen by ``build_embedder``).
        http_client: Shared HTTP client for network adapters.
    """
    config = config or settings
    embedder = embedder or build_embedder(config)

    image_index = IndexHandle.from_path(
        config.image_index_path, dim=config.dim_image_embedding, name="image"
    )
    text_index = IndexHandle.from_path(
        config.text_index_path, dim=config.dim_text_embedding, name="text"
    )

    parcels = ParcelLookup.from_path(config.parcels_path)
    archives = ArchiveSearch.from_path(config.archives_path)
    ocr = TesseractOcr(config.tesseract_cmd)
    logger.info(
        "Resolver ready: %d parcels, %d archive records, ocr=%s, embedder=%s",
        len(parcels), len(archives), ocr.available, embedder.available,
    )

    adapters = AdapterSet(
        geocoder=NominatimGeocoder(
            http_client,
            url=config.nominatim_url,
            user_agent=config.nominatim_user_agent,
            limit=config.geocode_limit,
        ),
        parcels=parcels,
        archives=archives,
        image_index=ImageRecognizer(embedder, image_index, top_k=config.image_top_k),
        ocr=ocr,
    )
    dispatcher = InputDispatcher(
        adapters,
        MarkdownReportComposer(),
        text_policy=ConsolidationPolicy.of(config.text_policy),
        image_policy=ConsolidationPolicy.of(config.image_policy),
        location_policy=ConsolidationPolicy.of(config.location_policy),
        default_timeout=config.adapter_timeout,
        timeouts=config.adapter_timeouts,
        report_timeout=config.report_timeout,
    )
    return ResolverService(
        dispatcher=dispatcher,
        image_index=image_index,
        text_index=text_index,
        text_search=TextVectorSearch(embedder, text_index, top_k=config.text_top_k),
    )
