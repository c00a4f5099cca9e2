"""Utility modules for Historic Detective."""

from historic_detective.utils.geo import haversine_km
from historic_detective.utils.records import load_records, record_to_candidate

__all__ = ["haversine_km", "load_records", "record_to_candidate"]
