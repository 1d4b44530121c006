from unittest.mock import MagicMock, patch

import pytest
import redis

from qeats.config import DiscoveryConfig
from qeats.restaurants.cache_transport import (
    InMemoryCacheTransport,
    RedisCacheTransport,
    build_transport,
)
from qeats.restaurants.errors import CacheTransportError


def test_in_memory_get_missing_key():
    assert InMemoryCacheTransport().get("tdr1w8c") is None


def test_in_memory_set_then_get():
    transport = InMemoryCacheTransport()
    transport.set_with_expiry("tdr1w8c", b"[]", 60)
    assert transport.get("tdr1w8c") == b"[]"
    assert transport.is_available()


def test_in_memory_expired_entry_is_dropped_on_read():
    now = [0.0]
    transport = InMemoryCacheTransport(clock=lambda: now[0])
    transport.set_with_expiry("tdr1w8c", b"[]", 10)
    assert len(transport) == 1

    now[0] = 10.0
    assert transport.get("tdr1w8c") is None
    assert len(transport) == 0


def test_in_memory_clear():
    transport = InMemoryCacheTransport()
    transport.set_with_expiry("a", b"1", 60)
    transport.set_with_expiry("b", b"2", 60)
    transport.clear()
    assert len(transport) == 0


def test_redis_get_and_setex():
    client = MagicMock()
    client.get.return_value = b"[]"
    transport = RedisCacheTransport(client)

    assert transport.get("tdr1w8c") == b"[]"
    transport.set_with_expiry("tdr1w8c", b"[]", 10800)
    client.setex.assert_called_once_with("tdr1w8c", 10800, b"[]")


def test_redis_errors_become_transport_errors():
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("refused")
    client.setex.side_effect = redis.TimeoutError("slow")
    transport = RedisCacheTransport(client)

    with pytest.raises(CacheTransportError):
        transport.get("tdr1w8c")
    with pytest.raises(CacheTransportError):
        transport.set_with_expiry("tdr1w8c", b"[]", 60)


def test_redis_availability_uses_ping():
    client = MagicMock()
    client.ping.return_value = True
    assert RedisCacheTransport(client).is_available()

    client.ping.side_effect = redis.ConnectionError("refused")
    assert not RedisCacheTransport(client).is_available()


def test_build_transport_memory():
    assert isinstance(build_transport(DiscoveryConfig(cache_backend="memory")), InMemoryCacheTransport)


def test_build_transport_none():
    assert build_transport(DiscoveryConfig(cache_backend="none")) is None


@patch("qeats.restaurants.cache_transport.redis.Redis.from_url")
def test_build_transport_redis(mock_from_url):
    transport = build_transport(DiscoveryConfig(cache_backend="Redis", redis_url="redis://cache:6379/1"))
    assert isinstance(transport, RedisCacheTransport)
    assert mock_from_url.call_args.args == ("redis://cache:6379/1",)


def test_build_transport_unknown():
    with pytest.raises(ValueError):
        build_transport(DiscoveryConfig(cache_backend="memcached"))
