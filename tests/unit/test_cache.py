"""Tests for the in-process LRU cache and the Redis-backed route cache."""

import json
from unittest.mock import MagicMock, patch

import redis

from api.cache import BoundedLRUCache, RouteCache, ports_key, segment_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestBoundedLRUCache:

    def test_get_set(self):
        cache = BoundedLRUCache(max_size=10)
        cache.set("a", 1)
        assert cache.get("a") == 1
        assert cache.get("missing") is None

    def test_lru_eviction(self):
        cache = BoundedLRUCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert cache.get_stats()["evictions"] == 1

    def test_ttl_expiry(self):
        clock = FakeClock()
        cache = BoundedLRUCache(max_size=10, default_ttl_seconds=60, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2, ttl_seconds=600)

        clock.now += 61
        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.get_stats()["expirations"] == 1

    def test_no_expiry(self):
        clock = FakeClock()
        cache = BoundedLRUCache(max_size=10, default_ttl_seconds=None, clock=clock)
        cache.set("a", 1)
        clock.now += 10 ** 6
        assert cache.get("a") == 1

    def test_overwrite_refreshes(self):
        cache = BoundedLRUCache(max_size=2)
        cache.set("a", 1)
        cache.set("a", 2)
        assert cache.get("a") == 2
        assert len(cache) == 1

    def test_stats(self):
        cache = BoundedLRUCache(max_size=10, name="test")
        cache.set("a", 1)
        cache.get("a")
        cache.get("b")
        stats = cache.get_stats()
        assert stats["name"] == "test"
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5

    def test_delete_and_clear(self):
        cache = BoundedLRUCache(max_size=10)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.delete("a") is True
        assert cache.delete("a") is False
        assert cache.clear() == 1
        assert len(cache) == 0


class TestKeys:

    def test_segment_key(self):
        assert segment_key("miami-nassau") == "segment:miami-nassau"

    def test_ports_key(self):
        assert ports_key("", 0, 100) == "ports:offset:0:limit:100"
        assert ports_key("mia", 20, 10) == "ports:search:mia:offset:20:limit:10"


class TestRouteCacheMemory:

    def test_disabled_uses_memory(self):
        cache = RouteCache(enabled=False)
        assert cache.backend == "memory"
        assert cache.set_json("k", {"found": False}, 60) is True
        assert cache.get_json("k") == {"found": False}

    def test_invalidate(self):
        cache = RouteCache(enabled=False)
        cache.set_json(segment_key("a-b"), {"found": True}, 60)
        assert cache.invalidate_segment("a-b") is True
        assert cache.get_json(segment_key("a-b")) is None

    def test_health_disabled(self):
        health = RouteCache(enabled=False).health()
        assert health["status"] == "disabled"
        assert health["backend"] == "memory"

    def test_unreachable_redis_falls_back(self):
        with patch("api.cache.redis.Redis.from_url") as from_url:
            from_url.return_value.ping.side_effect = redis.ConnectionError("refused")
            cache = RouteCache(redis_url="redis://nowhere:6379/0", enabled=True)

            assert cache.set_json("k", [1, 2], 60) is True
            assert cache.get_json("k") == [1, 2]
            assert cache.backend == "memory"
            assert cache.health()["status"] == "degraded"

    def test_malformed_redis_url_falls_back(self):
        cache = RouteCache(redis_url="localhost:6379", enabled=True)
        assert cache.set_json("k", [1], 60) is True
        assert cache.get_json("k") == [1]
        assert cache.invalidate_segment("a-b") is True


class TestRouteCacheRedis:

    def test_round_trip(self):
        client = MagicMock()
        client.get.return_value = json.dumps({"found": True})
        cache = RouteCache(client=client)

        assert cache.backend == "redis"
        assert cache.set_json("k", {"found": True}, 600) is True
        client.setex.assert_called_once_with("k", 600, json.dumps({"found": True}))
        assert cache.get_json("k") == {"found": True}

    def test_miss(self):
        client = MagicMock()
        client.get.return_value = None
        assert RouteCache(client=client).get_json("k") is None

    def test_read_failure_is_a_miss(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        assert RouteCache(client=client).get_json("k") is None

    def test_corrupt_entry_is_a_miss(self):
        client = MagicMock()
        client.get.return_value = "{not json"
        assert RouteCache(client=client).get_json("k") is None

    def test_write_failure_swallowed(self):
        client = MagicMock()
        client.setex.side_effect = redis.TimeoutError("slow")
        assert RouteCache(client=client).set_json("k", {}, 60) is False

    def test_delete_failure_swallowed(self):
        client = MagicMock()
        client.delete.side_effect = OSError("broken pipe")
        assert RouteCache(client=client).invalidate_segment("a-b") is False

    def test_unexpected_client_error_swallowed(self):
        client = MagicMock()
        client.delete.side_effect = RuntimeError("client closed")
        assert RouteCache(client=client).invalidate_segment("a-b") is False

    def test_health(self):
        client = MagicMock()
        assert RouteCache(client=client).health() == {"status": "healthy", "backend": "redis"}

        client.ping.side_effect = redis.ConnectionError("down")
        health = RouteCache(client=client).health()
        assert health["status"] == "unhealthy"
