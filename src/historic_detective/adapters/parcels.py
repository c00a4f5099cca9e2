"""Property (parcel) lookup over a local CSV record store."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from historic_detective.models.enums import Source
from historic_detective.models.schemas import ToolResult
from historic_detective.utils.geo import haversine_km
from historic_detective.utils.records import (
    Record,
    load_records,
    record_coordinates,
    record_to_candidate,
)


class ParcelLookup:
    """Find parcels by address substring or by nearest point.

    Requests:
        {"address": "..."}  - case-insensitive substring match, file order
        {"lat": .., "lon": ..}  - single nearest parcel by great-circle distance

    The parcel table is loaded once and never mutated.
    """

    name = Source.PROPERTY.value

    def __init__(self, parcels: list[Record]) -> None:
        self._parcels = parcels

    @classmethod
    def from_path(cls, path: str | Path) -> ParcelLookup:
        return cls(load_records(path))

    def __len__(self) -> int:
        return len(self._parcels)

    async def run(self, request: Mapping[str, Any]) -> ToolResult:
        if not self._parcels:
            return ToolResult.empty(msg="no parcels loaded")

        address = request.get("address")
        lat = request.get("lat")
        lon = request.get("lon")

        if address:
            return await asyncio.to_thread(self._by_address, str(address))
        if lat is not None and lon is not None:
            return await asyncio.to_thread(self._nearest, float(lat), float(lon))
        return ToolResult.error(msg="no address or lat/lon provided")

    def _by_address(self, address: str) -> ToolResult:
        needle = address.lower()
        matches = [
            record_to_candidate(p, source=self.name)
            for p in self._parcels
            if needle in p.get("address", "").lower()
        ]
        return ToolResult.ok(matches, source="local_parcels", n=len(matches))

    def _nearest(self, lat: float, lon: float) -> ToolResult:
        best: Record | None = None
        best_km = float("inf")
        for parcel in self._parcels:
            coords = record_coordinates(parcel)
            if coords is None:
                continue
            km = haversine_km((lat, lon), coords)
            # Strict comparison: first parcel in file order wins ties
            if km < best_km:
                best, best_km = parcel, km

        if best is None:
            return ToolResult.empty(msg="no parcels with coordinates")

        candidate = record_to_candidate(best, source=self.name)
        return ToolResult.ok([candidate], source="local_parcels", n=1, distance_km=best_km)
