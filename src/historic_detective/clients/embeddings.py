"""Embedding backends for image and text similarity search.

The backend is chosen once at startup by ``build_embedder``. Business logic
never branches on which backend is wired in: adapters check ``available`` and
report an empty result when there is nothing to embed with.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from pathlib import Path
from typing import Protocol

from openai import AsyncOpenAI

from historic_detective.config import Settings, settings

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    """Capability for turning images and text into fixed-length vectors."""

    @property
    def available(self) -> bool: ...

    async def embed_image(self, image_path: str) -> list[float] | None: ...

    async def embed_text(self, text: str) -> list[float] | None: ...


class UnavailableEmbedder:
    """Placeholder used when no embedding backend is configured."""

    def __init__(self, reason: str = "no embedding backend configured") -> None:
        self.reason = reason

    @property
    def available(self) -> bool:
        return False

    async def embed_image(self, image_path: str) -> list[float] | None:
        return None

    async def embed_text(self, text: str) -> list[float] | None:
        return None


class OpenAIEmbedder:
    """Async client for image and text embeddings via an OpenAI-compatible gateway.

    Models:
        - clip-vit (default): image embeddings, and text embeddings in the same space
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        *,
        config: Settings | None = None,
    ) -> None:
        self._settings = config or settings
        self._client = AsyncOpenAI(
            base_url=base_url or self._settings.embedding_base_url,
            api_key=api_key or self._settings.embedding_api_key,
        )

    @property
    def available(self) -> bool:
        return True

    async def embed_image(self, image_path: str) -> list[float] | None:
        """Embed one image file.

        Args:
            image_path: Path to a local image.

        Returns:
            Embedding vector, or None if the gateway returned nothing.

        Note:
            CLIP requires structured array format: [{"image": "<base64>"}]
        """
        start_time = time.time()
        data = await asyncio.to_thread(Path(image_path).read_bytes)

        response = await self._client.embeddings.create(
            model=self._settings.model_image_embedding,
            input=self._to_clip_image_input([data]),  # type: ignore[arg-type]
        )

        if self._settings.log_api_calls:
            elapsed = (time.time() - start_time) * 1000  # ms
            logger.info(
                "[EMBED] %s (1 image) → %d-dim (%.0fms)",
                self._settings.model_image_embedding,
                self._settings.dim_image_embedding,
                elapsed,
            )

        if not response.data:
            return None
        return list(response.data[0].embedding)

    async def embed_text(self, text: str) -> list[float] | None:
        """Embed one text string in the text index space."""
        start_time = time.time()

        response = await self._client.embeddings.create(
            model=self._settings.model_text_embedding,
            input=[text],
        )

        if self._settings.log_api_calls:
            elapsed = (time.time() - start_time) * 1000  # ms
            logger.info(
                "[EMBED] %s (1 text) → %d-dim (%.0fms)",
                self._settings.model_text_embedding,
                self._settings.dim_text_embedding,
                elapsed,
            )

        if not response.data:
            return None
        return list(response.data[0].embedding)

    def _to_clip_image_input(self, images: list[bytes | str]) -> list[dict[str, str]]:
        """Convert images to CLIP's required structured format."""
        result: list[dict[str, str]] = []

        for img in images:
            if isinstance(img, bytes):
                b64 = base64.b64encode(img).decode("utf-8")
                result.append({"image": b64})
            else:
                # Already a string (URL or base64)
                result.append({"image": img})

        return result


def build_embedder(config: Settings | None = None) -> Embedder:
    """Pick the embedding backend for this process."""
    config = config or settings
    if not config.embedding_base_url:
        logger.info("No embedding gateway configured; image/text vector search disabled")
        return UnavailableEmbedder()
    return OpenAIEmbedder(config=config)
