from __future__ import annotations

import pygeohash

from ..restaurants.models import GeoPoint

# 7 characters ~ 152m x 152m cells at the equator
GEOHASH_PRECISION = 7


def _normalise(point: GeoPoint) -> tuple[float, float]:
    """Clamp latitude to the poles and wrap longitude into [-180, 180)."""
    latitude = max(-90.0, min(90.0, float(point.latitude)))
    longitude = ((float(point.longitude) + 180.0) % 360.0) - 180.0
    return latitude, longitude


def encode(point: GeoPoint, precision: int = GEOHASH_PRECISION) -> str:
    """Return the base-32 geohash of *point* truncated to *precision* characters.

    Out-of-range coordinates are normalised first, so every point has a bucket.
    """
    latitude, longitude = _normalise(point)
    return pygeohash.encode(latitude, longitude, precision=precision)
