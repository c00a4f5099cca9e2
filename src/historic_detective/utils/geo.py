"""Geographic distance helpers."""

from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(
    origin: tuple[float, float],
    target: tuple[float, float],
) -> float:
    """Great-circle distance in km between two (lat, lon) points in degrees.

    Used to pick the parcel nearest to a map click or a geocoded address.
    """
    phi1, lam1 = map(math.radians, origin)
    phi2, lam2 = map(math.radians, target)

    h = (
        math.sin((phi2 - phi1) / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin((lam2 - lam1) / 2) ** 2
    )
    # Rounding can push h slightly above 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))
