"""Similarity search adapters backed by precomputed embedding indexes.

- ImageRecognizer: image → CLIP vector → squared-L2 nearest neighbours
- TextVectorSearch: text (or a ready vector) → cosine nearest neighbours
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from historic_detective.clients.embeddings import Embedder
from historic_detective.config import settings
from historic_detective.index.vector_index import IndexHandle, VectorSearchResult
from historic_detective.models.enums import Metric, Source, ToolStatus
from historic_detective.models.schemas import Candidate, ToolResult

logger = logging.getLogger(__name__)


def distance_to_score(distance: float) -> float:
    """Map a squared distance in [0, inf) to a score in (0, 1]."""
    return 1.0 / (1.0 + distance)


def cosine_to_score(similarity: float) -> float:
    """Map cosine similarity in [-1, 1] to a score in [0, 1]."""
    return min(1.0, max(0.0, (similarity + 1.0) / 2.0))


def _search_failure(result: VectorSearchResult, index: IndexHandle) -> ToolResult | None:
    """Translate EMPTY/ERROR search outcomes into adapter results."""
    if result.status == ToolStatus.EMPTY:
        return ToolResult.empty(msg=f"{index.name} index is empty")
    if result.error is not None:
        logger.warning("Search on %s index failed: %s", index.name, result.error)
        return ToolResult.error(msg=str(result.error), error="dimension_mismatch")
    return None


class ImageRecognizer:
    """Match an uploaded image against the local image embedding index."""

    name = Source.IMAGE_INDEX.value

    def __init__(
        self,
        embedder: Embedder,
        index: IndexHandle,
        *,
        top_k: int | None = None,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._top_k = top_k or settings.image_top_k

    async def run(self, request: Mapping[str, Any]) -> ToolResult:
        image_path = request.get("image_path")
        if not image_path:
            return ToolResult.error(msg="no image provided")
        if not self._embedder.available:
            return ToolResult.empty(msg="no image embedding backend available")

        vector = await self._embedder.embed_image(str(image_path))
        if vector is None:
            return ToolResult.empty(msg="embedder returned no vector")

        # First use loads the snapshot from disk, so resolve it off the loop too
        result = await asyncio.to_thread(
            self._index.search, vector, self._top_k, Metric.SQUARED_L2
        )
        failure = _search_failure(result, self._index)
        if failure is not None:
            return failure

        candidates = [
            Candidate(id=hit.id, source=self.name, score=distance_to_score(hit.score))
            for hit in result.hits
        ]
        return ToolResult.ok(
            candidates,
            n=len(candidates),
            distances=[hit.score for hit in result.hits],
            index_version=self._index.version,
        )


class TextVectorSearch:
    """Semantic search over the local text embedding index.

    Accepts ``{"query": text}`` (embedded on the fly) or
    ``{"query_vector": [...]}`` for callers that already hold a vector.
    """

    name = Source.TEXT_INDEX.value

    def __init__(
        self,
        embedder: Embedder,
        index: IndexHandle,
        *,
        top_k: int | None = None,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._top_k = top_k or settings.text_top_k

    async def run(self, request: Mapping[str, Any]) -> ToolResult:
        vector = request.get("query_vector")
        query = request.get("query")

        if vector is None:
            if not query:
                return ToolResult.error(msg="no query")
            if not self._embedder.available:
                return ToolResult.empty(msg="no text embedding backend available")
            vector = await self._embedder.embed_text(str(query))
            if vector is None:
                return ToolResult.empty(msg="embedder returned no vector")

        result = await asyncio.to_thread(self._index.search, vector, self._top_k, Metric.COSINE)
        failure = _search_failure(result, self._index)
        if failure is not None:
            return failure

        candidates = [
            Candidate(id=hit.id, source=self.name, score=cosine_to_score(hit.score))
            for hit in result.hits
        ]
        return ToolResult.ok(
            candidates,
            n=len(candidates),
            similarities=[hit.score for hit in result.hits],
            index_version=self._index.version,
        )
