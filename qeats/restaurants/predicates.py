from __future__ import annotations

import logging
from datetime import datetime, time

from ..geo.distance import haversine_km
from .models import GeoPoint, RestaurantRecord

logger = logging.getLogger(__name__)

_TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def parse_time_of_day(value: str) -> time:
    """Parse "HH:MM" or "HH:MM:SS" down to the minute; raises ValueError on anything else."""
    for fmt in _TIME_FORMATS:
        try:
            return _minute_of(datetime.strptime(value.strip(), fmt).time())
        except ValueError:
            continue
    raise ValueError(f"Not a time of day: {value!r}")


def _minute_of(at: time) -> time:
    return at.replace(second=0, microsecond=0)


def is_open_now(record: RestaurantRecord, at: time) -> bool:
    """Strictly between opening and closing; the boundary minutes count as closed."""
    opens_at = parse_time_of_day(record.opens_at)
    closes_at = parse_time_of_day(record.closes_at)
    at = _minute_of(at)
    return opens_at < at < closes_at


def is_candidate(
    record: RestaurantRecord,
    at: time,
    center: GeoPoint,
    radius_km: float,
) -> bool:
    """True when *record* is open at *at* and strictly closer than *radius_km* to *center*.

    A record whose opening hours cannot be parsed is excluded rather than
    failing the whole query.
    """
    try:
        open_now = is_open_now(record, at)
    except ValueError:
        logger.warning(
            "Skipping restaurant %s with malformed opening hours (%r, %r)",
            record.restaurant_id,
            record.opens_at,
            record.closes_at,
        )
        return False
    if not open_now:
        return False
    return haversine_km(record.location, center) < radius_km
