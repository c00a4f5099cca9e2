"""Exact nearest-neighbour index over precomputed embeddings."""

from historic_detective.index.vector_index import (
    IndexHandle,
    SearchHit,
    VectorIndex,
    VectorSearchResult,
)

__all__ = ["IndexHandle", "SearchHit", "VectorIndex", "VectorSearchResult"]
