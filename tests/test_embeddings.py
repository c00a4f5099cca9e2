"""Tests for the embedding backends."""

import base64
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from historic_detective.clients.embeddings import (
    OpenAIEmbedder,
    UnavailableEmbedder,
    build_embedder,
)
from historic_detective.config import Settings


class MockEmbeddingData:
    """Mock for openai embedding response data item."""

    def __init__(self, embedding: list[float]) -> None:
        self.embedding = embedding


class MockEmbeddingResponse:
    """Mock for openai embedding response."""

    def __init__(self, embeddings: list[list[float]]) -> None:
        self.data = [MockEmbeddingData(e) for e in embeddings]


def make_embedder(response: MockEmbeddingResponse) -> OpenAIEmbedder:
    embedder = OpenAIEmbedder(
        base_url="http://gateway.test/v1",
        config=Settings(embedding_base_url="http://gateway.test/v1"),
    )
    embedder._client = MagicMock()
    embedder._client.embeddings = MagicMock()
    embedder._client.embeddings.create = AsyncMock(return_value=response)
    return embedder


class TestBuildEmbedder:
    def test_no_gateway_means_unavailable(self) -> None:
        embedder = build_embedder(Settings(embedding_base_url=""))
        assert isinstance(embedder, UnavailableEmbedder)
        assert not embedder.available

    def test_gateway_configured(self) -> None:
        embedder = build_embedder(Settings(embedding_base_url="http://gateway.test/v1"))
        assert isinstance(embedder, OpenAIEmbedder)
        assert embedder.available


class TestUnavailableEmbedder:
    async def test_returns_none(self) -> None:
        embedder = UnavailableEmbedder()
        assert await embedder.embed_image("a.jpg") is None
        assert await embedder.embed_text("arcade") is None


class TestOpenAIEmbedder:
    """Unit tests for OpenAIEmbedder with mocked OpenAI client."""

    async def test_embed_image_sends_base64(self, tmp_path: Path) -> None:
        image = tmp_path / "arcade.jpg"
        image.write_bytes(b"fake image data")
        embedder = make_embedder(MockEmbeddingResponse([[0.2] * 512]))

        result = await embedder.embed_image(str(image))

        assert result is not None
        assert len(result) == 512
        call_args = embedder._client.embeddings.create.call_args
        assert call_args.kwargs["model"] == "clip-vit"
        input_arg = call_args.kwargs["input"]
        assert input_arg == [{"image": base64.b64encode(b"fake image data").decode("utf-8")}]

    async def test_embed_image_missing_file(self, tmp_path: Path) -> None:
        embedder = make_embedder(MockEmbeddingResponse([[0.2] * 512]))
        with pytest.raises(FileNotFoundError):
            await embedder.embed_image(str(tmp_path / "missing.jpg"))

    async def test_embed_text(self) -> None:
        embedder = make_embedder(MockEmbeddingResponse([[0.3] * 512]))

        result = await embedder.embed_text("a brick arcade")

        assert result == [0.3] * 512
        call_args = embedder._client.embeddings.create.call_args
        assert call_args.kwargs["input"] == ["a brick arcade"]

    async def test_empty_response_is_none(self) -> None:
        embedder = make_embedder(MockEmbeddingResponse([]))
        assert await embedder.embed_text("x") is None

    def test_to_clip_image_input_bytes(self) -> None:
        embedder = make_embedder(MockEmbeddingResponse([]))
        image_bytes = b"test data"

        result = embedder._to_clip_image_input([image_bytes])

        assert result == [{"image": base64.b64encode(image_bytes).decode("utf-8")}]

    def test_to_clip_image_input_string(self) -> None:
        embedder = make_embedder(MockEmbeddingResponse([]))
        image_url = "https://example.com/image.png"

        result = embedder._to_clip_image_input([image_url])

        assert result == [{"image": image_url}]
