from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Protocol

import redis

from ..config import DEFAULT_DISCOVERY_CONFIG, DiscoveryConfig
from .errors import CacheTransportError

logger = logging.getLogger(__name__)


class CacheTransport(Protocol):
    def get(self, key: str) -> bytes | None: ...

    def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None: ...

    def is_available(self) -> bool: ...


class InMemoryCacheTransport:
    """Process-local key/value cache with lazy expiry.

    Expired entries are dropped when they are next read; there is no
    background sweep.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry and self._clock() < entry["expires_at"]:
                return entry["value"]
            if entry:
                del self._entries[key]
            return None

    def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = {"value": value, "expires_at": self._clock() + ttl_seconds}

    def is_available(self) -> bool:
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheTransport:
    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheTransport":
        return cls(redis.Redis.from_url(url, socket_timeout=1.0, socket_connect_timeout=1.0))

    def get(self, key: str) -> bytes | None:
        try:
            return self._client.get(key)
        except redis.RedisError as exc:
            raise CacheTransportError(f"GET {key} failed") from exc

    def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            self._client.setex(key, ttl_seconds, value)
        except redis.RedisError as exc:
            raise CacheTransportError(f"SETEX {key} failed") from exc

    def is_available(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            logger.warning("Redis cache unreachable, serving from store", exc_info=True)
            return False


def build_transport(config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG) -> CacheTransport | None:
    """Return the transport named by ``config.cache_backend``, or None for "none"."""
    backend = config.cache_backend.strip().lower()
    if backend == "memory":
        return InMemoryCacheTransport()
    if backend == "redis":
        return RedisCacheTransport.from_url(config.redis_url)
    if backend == "none":
        return None
    raise ValueError(f"Unknown cache backend: {config.cache_backend!r}")
