"""Forward geocoding via Nominatim."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from historic_detective.config import settings
from historic_detective.errors import AdapterError
from historic_detective.models.enums import Source
from historic_detective.models.schemas import Candidate, ToolResult

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Resolve free text to points using the Nominatim search API.

    Candidates carry ``title`` (display name), ``lat``/``lon`` and Nominatim's
    ``importance`` as score, in the order Nominatim ranks them.
    """

    name = Source.GEOCODE.value

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        url: str | None = None,
        user_agent: str | None = None,
        limit: int | None = None,
    ) -> None:
        self._client = client
        self._url = url or settings.nominatim_url
        self._user_agent = user_agent or settings.nominatim_user_agent
        self._limit = limit or settings.geocode_limit

    async def run(self, request: Mapping[str, Any]) -> ToolResult:
        query = request.get("query")
        if not query:
            return ToolResult.error(msg="no query provided")

        params = {"q": query, "format": "json", "limit": self._limit}
        headers = {"User-Agent": self._user_agent}

        try:
            if self._client is not None:
                response = await self._client.get(self._url, params=params, headers=headers)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(self._url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise AdapterError(self.name, f"request failed: {e}") from e

        if response.status_code != 200:
            logger.warning("Nominatim returned HTTP %d for %r", response.status_code, query)
            return ToolResult.error(http_status=response.status_code)

        candidates = [self._to_candidate(row) for row in response.json()]
        return ToolResult.ok(candidates, source="nominatim", query=query)

    def _to_candidate(self, row: dict[str, Any]) -> Candidate:
        importance = row.get("importance")
        score = None
        if importance is not None:
            score = min(1.0, max(0.0, float(importance)))
        return Candidate(
            id=row.get("place_id"),
            title=row.get("display_name"),
            lat=float(row["lat"]),
            lon=float(row["lon"]),
            source=self.name,
            score=score,
        )
