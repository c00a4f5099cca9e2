"""Text extraction from images with the Tesseract CLI."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Mapping
from typing import Any

from historic_detective.config import settings
from historic_detective.errors import AdapterError
from historic_detective.models.enums import Source, ToolStatus
from historic_detective.models.schemas import ToolResult

logger = logging.getLogger(__name__)


class TesseractOcr:
    """Run ``tesseract <image> stdout`` and return the recognised text.

    OCR never produces candidates; the text is reported in ``meta["text"]``.
    A missing binary yields an EMPTY result so the pipeline does not depend on
    Tesseract being installed.
    """

    name = Source.OCR.value

    def __init__(self, command: str | None = None) -> None:
        self._binary = shutil.which(command or settings.tesseract_cmd)

    @property
    def available(self) -> bool:
        return self._binary is not None

    async def run(self, request: Mapping[str, Any]) -> ToolResult:
        image_path = request.get("image_path")
        if not image_path:
            return ToolResult.error(msg="no image")
        if self._binary is None:
            return ToolResult.empty(msg="tesseract not installed")

        proc = await asyncio.create_subprocess_exec(
            self._binary,
            str(image_path),
            "stdout",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            # Timed out or request cancelled: don't leave the process behind
            if proc.returncode is None:
                proc.kill()
            raise

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise AdapterError(self.name, f"tesseract exited with {proc.returncode}: {detail}")

        text = stdout.decode("utf-8", errors="replace").strip()
        if not text:
            return ToolResult.empty(source="tesseract", text="")
        logger.debug("OCR extracted %d chars from %s", len(text), image_path)
        return ToolResult(status=ToolStatus.OK, meta={"source": "tesseract", "text": text})
