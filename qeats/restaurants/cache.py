from __future__ import annotations

import enum
import logging
import threading
from datetime import time

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from ..config import DEFAULT_CACHE_TTL_SECONDS
from ..geo.geohash import GEOHASH_PRECISION, encode
from .cache_transport import CacheTransport
from .data_store import RestaurantStore
from .errors import CacheTransportError
from .models import GeoPoint, Restaurant, to_restaurant
from .predicates import is_candidate

logger = logging.getLogger(__name__)

_RESTAURANT_LIST = TypeAdapter(list[Restaurant])


class CacheOutcome(enum.Enum):
    HIT = "hit"
    MISS = "miss"
    CORRUPT = "corrupt"
    UNAVAILABLE = "unavailable"


class GeoBucketCache:
    """Cache-aside proximity lookup keyed by the geohash of the request point.

    The key ignores radius and time unless ``key_by_radius`` is set, so a
    cached bucket keeps answering with whatever radius and opening hours
    populated it until the entry expires.
    """

    def __init__(
        self,
        store: RestaurantStore,
        transport: CacheTransport | None,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        key_by_radius: bool = False,
        precision: int = GEOHASH_PRECISION,
    ) -> None:
        self._store = store
        self._transport = transport
        self._ttl_seconds = ttl_seconds
        self._key_by_radius = key_by_radius
        self._precision = precision
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._errors = 0

    def bucket_key(self, center: GeoPoint, radius_km: float) -> str:
        key = encode(center, self._precision)
        if self._key_by_radius:
            key = f"{key}:{radius_km:.1f}"
        return key

    def fetch_nearby(self, center: GeoPoint, at: time, radius_km: float) -> list[Restaurant]:
        if self._transport is None or not self._transport.is_available():
            return self._query_store(center, at, radius_km)

        key = self.bucket_key(center, radius_km)
        cached, outcome = self._read(key)
        self._record(outcome)

        if outcome is CacheOutcome.HIT:
            logger.debug("Cache hit for bucket %s", key)
            return cached
        if outcome is CacheOutcome.UNAVAILABLE:
            return self._query_store(center, at, radius_km)

        logger.debug("Cache %s for bucket %s", outcome.value, key)
        restaurants = self._query_store(center, at, radius_km)
        self._write(key, restaurants)
        return restaurants

    def _query_store(self, center: GeoPoint, at: time, radius_km: float) -> list[Restaurant]:
        return [
            to_restaurant(record)
            for record in self._store.find_all()
            if is_candidate(record, at, center, radius_km)
        ]

    def _read(self, key: str) -> tuple[list[Restaurant] | None, CacheOutcome]:
        try:
            payload = self._transport.get(key)
        except CacheTransportError:
            logger.warning("Cache read failed for bucket %s, serving from store", key, exc_info=True)
            return None, CacheOutcome.UNAVAILABLE
        if payload is None:
            return None, CacheOutcome.MISS
        try:
            return _RESTAURANT_LIST.validate_json(payload), CacheOutcome.HIT
        except ValidationError:
            logger.warning("Discarding unreadable cache entry for bucket %s", key, exc_info=True)
            return None, CacheOutcome.CORRUPT

    def _write(self, key: str, restaurants: list[Restaurant]) -> None:
        try:
            payload = _RESTAURANT_LIST.dump_json(restaurants, by_alias=True)
            self._transport.set_with_expiry(key, payload, self._ttl_seconds)
        except (PydanticSerializationError, CacheTransportError):
            logger.warning("Cache write failed for bucket %s", key, exc_info=True)

    def _record(self, outcome: CacheOutcome) -> None:
        with self._lock:
            if outcome is CacheOutcome.HIT:
                self._hits += 1
            else:
                self._misses += 1
            if outcome in (CacheOutcome.CORRUPT, CacheOutcome.UNAVAILABLE):
                self._errors += 1

    def stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "errors": self._errors,
                "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
            }

    def clear_stats(self) -> None:
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._errors = 0
