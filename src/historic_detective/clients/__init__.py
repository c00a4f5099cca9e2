"""Clients for external model backends."""

from historic_detective.clients.embeddings import (
    Embedder,
    OpenAIEmbedder,
    UnavailableEmbedder,
    build_embedder,
)

__all__ = ["Embedder", "OpenAIEmbedder", "UnavailableEmbedder", "build_embedder"]
