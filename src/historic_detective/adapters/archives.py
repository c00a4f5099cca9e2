"""Historical archive search over a local CSV record store."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from historic_detective.models.enums import Source
from historic_detective.models.schemas import ToolResult
from historic_detective.utils.records import Record, load_records, record_to_candidate


class ArchiveSearch:
    """Search archive records by id, title or address.

    Exact id matches rank first (image recognition hands over index ids),
    followed by case-insensitive substring matches on title or address in
    file order.
    """

    name = Source.ARCHIVE.value

    def __init__(self, archives: list[Record]) -> None:
        self._archives = archives

    @classmethod
    def from_path(cls, path: str | Path) -> ArchiveSearch:
        return cls(load_records(path))

    def __len__(self) -> int:
        return len(self._archives)

    async def run(self, request: Mapping[str, Any]) -> ToolResult:
        query = request.get("query")
        if not query or not str(query).strip():
            return ToolResult.error(msg="no query provided")
        if not self._archives:
            return ToolResult.empty(source="none", msg="no local archives loaded")
        return await asyncio.to_thread(self._search, str(query))

    def _search(self, query: str) -> ToolResult:
        needle = query.strip().lower()

        by_id: list[Record] = []
        by_text: list[Record] = []
        for record in self._archives:
            if record.get("id", "").lower() == needle:
                by_id.append(record)
            elif needle in record.get("title", "").lower() or needle in record.get(
                "address", ""
            ).lower():
                by_text.append(record)

        candidates = [record_to_candidate(r, source=self.name) for r in by_id + by_text]
        return ToolResult.ok(
            candidates,
            source="local_archives",
            n=len(candidates),
            id_matches=len(by_id),
        )
