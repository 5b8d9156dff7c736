"""
Caching for SEALANE API.

Two layers:
- BoundedLRUCache: thread-safe in-process LRU with TTL, used on its own when
  Redis is disabled or unreachable.
- RouteCache: JSON values keyed like `segment:{segmentId}` and
  `ports:offset:0:limit:100`, stored in Redis when enabled.

Cache failures never reach callers: every public RouteCache method logs and
carries on, so a read error is a miss and a write/delete error is a no-op.
"""
import functools
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import redis

from src.errors import CacheError

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Single cache entry with metadata."""
    value: Any
    expires_at: Optional[float]
    access_count: int = 0
    last_accessed: float = field(default_factory=time.monotonic)


class BoundedLRUCache:
    """
    Thread-safe LRU cache with bounded size and TTL support.

    Usage:
        cache = BoundedLRUCache(max_size=1000, default_ttl_seconds=600)
        cache.set("key", value)
        result = cache.get("key")
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl_seconds: Optional[int] = 600,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries before LRU eviction
            default_ttl_seconds: Default TTL for entries (None = no expiration)
            name: Cache name for logging/metrics
            clock: Monotonic time source in seconds
        """
        self.max_size = max_size
        self.default_ttl_seconds = default_ttl_seconds
        self.name = name
        self._clock = clock

        self._cache: "OrderedDict[Any, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()

        # Metrics
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def _expired(self, entry: CacheEntry) -> bool:
        return entry.expires_at is not None and self._clock() > entry.expires_at

    def get(self, key: Any) -> Optional[Any]:
        """Cached value, or None if missing or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._expired(entry):
                del self._cache[key]
                self._expirations += 1
                self._misses += 1
                return None

            entry.access_count += 1
            entry.last_accessed = self._clock()
            self._cache.move_to_end(key)

            self._hits += 1
            return entry.value

    def set(self, key: Any, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """Store a value; ttl_seconds None uses the default TTL."""
        with self._lock:
            ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
            expires_at = self._clock() + ttl if ttl else None
            entry = CacheEntry(value=value, expires_at=expires_at)

            if key in self._cache:
                self._cache[key] = entry
                self._cache.move_to_end(key)
            else:
                while len(self._cache) >= self.max_size:
                    self._evict_oldest()
                self._cache[key] = entry

    def delete(self, key: Any) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> int:
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            logger.info(f"Cache '{self.name}' cleared: {count} entries removed")
            return count

    def _evict_oldest(self) -> None:
        """Evict least recently used entry."""
        if self._cache:
            oldest_key, _ = self._cache.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Cache '{self.name}' evicted: {oldest_key}")

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0

            return {
                'name': self.name,
                'size': len(self._cache),
                'max_size': self.max_size,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': round(hit_rate, 4),
                'evictions': self._evictions,
                'expirations': self._expirations,
                'default_ttl_seconds': self.default_ttl_seconds,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: Any) -> bool:
        """Check if key is live (without updating access time)."""
        with self._lock:
            entry = self._cache.get(key)
            return entry is not None and not self._expired(entry)


def segment_key(segment_id: str) -> str:
    return f"segment:{segment_id}"


def ports_key(search: str, offset: int, limit: int) -> str:
    if search:
        return f"ports:search:{search}:offset:{offset}:limit:{limit}"
    return f"ports:offset:{offset}:limit:{limit}"


def _swallow(default=None):
    """Turn CacheError into a logged warning and a default return value."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except CacheError as e:
                logger.warning(f"Cache {func.__name__} failed (continuing without cache): {e}")
                return default
        return wrapper
    return decorator


class RouteCache:
    """
    JSON cache for segments and port listings.

    Uses Redis when `enabled`, otherwise (or when Redis cannot be reached)
    the in-process BoundedLRUCache.

    Usage:
        cache = RouteCache(redis_url="redis://localhost:6379/0", enabled=True)
        cache.set_json(segment_key("miami-nassau"), payload, ttl_seconds=600)
        cache.invalidate_segment("miami-nassau")
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        enabled: bool = False,
        client: Optional[Any] = None,
        memory: Optional[BoundedLRUCache] = None,
    ):
        self.redis_url = redis_url
        self.enabled = enabled or client is not None
        self.memory = memory or BoundedLRUCache(max_size=1000, name="routes")
        self._client = client

    def _get_redis(self):
        """Lazy-init Redis client. Returns None if disabled or unavailable."""
        if not self.enabled:
            return None
        if self._client is not None:
            return self._client
        try:
            client = redis.Redis.from_url(self.redis_url, decode_responses=True)
            client.ping()
        except Exception as e:
            logger.warning(f"Redis unavailable, falling back to in-memory cache: {e}")
            return None
        logger.info("Redis connected for route cache")
        self._client = client
        return client

    def _call(self, method: str, *args):
        """Run one Redis command; None when Redis is not in use."""
        client = self._get_redis()
        if client is None:
            return None
        try:
            return getattr(client, method)(*args)
        except Exception as e:
            raise CacheError(f"redis {method} {args[0] if args else ''}: {e}") from e

    @property
    def backend(self) -> str:
        return "redis" if self._get_redis() is not None else "memory"

    @_swallow()
    def get_json(self, key: str) -> Optional[Any]:
        if self._get_redis() is None:
            return self.memory.get(key)
        raw = self._call("get", key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CacheError(f"corrupt entry {key}: {e}") from e

    @_swallow(default=False)
    def set_json(self, key: str, value: Any, ttl_seconds: int) -> bool:
        if self._get_redis() is None:
            self.memory.set(key, value, ttl_seconds)
            return True
        self._call("setex", key, ttl_seconds, json.dumps(value, default=str))
        return True

    @_swallow(default=False)
    def delete(self, key: str) -> bool:
        self.memory.delete(key)
        self._call("delete", key)
        return True

    def invalidate_segment(self, segment_id: str) -> bool:
        """Drop the cached read for a segment after a save."""
        deleted = self.delete(segment_key(segment_id))
        if deleted:
            logger.debug(f"Invalidated cache for segment {segment_id}")
        return deleted

    def health(self) -> Dict[str, Any]:
        if not self.enabled:
            return {"status": "disabled", "backend": "memory", **self.memory.get_stats()}
        try:
            self._call("ping")
        except CacheError as e:
            return {"status": "unhealthy", "backend": "redis", "error": str(e)}
        if self._client is None:
            return {"status": "degraded", "backend": "memory"}
        return {"status": "healthy", "backend": "redis"}

    def clear_memory(self) -> int:
        return self.memory.clear()


_route_cache: Optional[RouteCache] = None


def get_route_cache() -> RouteCache:
    """Shared RouteCache configured from settings."""
    global _route_cache
    if _route_cache is None:
        from api.config import settings
        _route_cache = RouteCache(redis_url=settings.redis_url, enabled=settings.redis_enabled)
    return _route_cache
