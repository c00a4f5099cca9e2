"""Loading local record stores (parcels, archives) from CSV.

Empty cells mean "unknown" and become absent Candidate fields.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any

from historic_detective.models.schemas import Candidate

logger = logging.getLogger(__name__)

Record = dict[str, str]


def load_records(path: str | Path) -> list[Record]:
    """Read a CSV file into a list of rows keyed by lower-cased header.

    A missing file is not an error: the store is simply empty.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Record store %s not found, starting empty", path)
        return []

    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = [
            {
                k.strip().lower(): (v or "").strip()
                for k, v in row.items()
                # DictReader files surplus cells under a None key
                if k is not None
            }
            for row in reader
        ]

    logger.debug("Loaded %d records from %s", len(rows), path)
    return rows


def _to_float(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _to_year(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        logger.debug("Ignoring non-numeric year %r", value)
        return None


def record_coordinates(record: Record) -> tuple[float, float] | None:
    """(lat, lon) for a record, or None when either is missing."""
    lat = _to_float(record.get("lat"))
    lon = _to_float(record.get("lon"))
    if lat is None or lon is None:
        return None
    return lat, lon


def record_to_candidate(record: Record, *, source: str, score: float | None = None) -> Candidate:
    """Build a Candidate from a CSV row, leaving unknown fields absent."""
    fields: dict[str, Any] = {
        "id": record.get("id") or None,
        "title": record.get("title") or record.get("name") or None,
        "address": record.get("address") or None,
        "lat": _to_float(record.get("lat")),
        "lon": _to_float(record.get("lon")),
        "year": _to_year(record.get("year") or record.get("year_built")),
        "url": record.get("url") or None,
    }
    return Candidate(source=source, score=score, **fields)
