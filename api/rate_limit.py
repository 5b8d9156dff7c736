"""
Rate limiting for SEALANE API using SlowAPI.

Counters live in Redis when it is enabled and reachable, otherwise in
process memory.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
import redis
import logging

from api.config import settings

logger = logging.getLogger(__name__)


def _redis_storage_uri() -> str:
    """Redis URI for limiter storage, or in-memory storage when unavailable."""
    if not settings.redis_enabled:
        return "memory://"
    try:
        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5
        )
        client.ping()
    except (redis.RedisError, OSError) as e:
        logger.warning(f"Redis unavailable for rate limiting, using in-memory counters: {e}")
        return "memory://"
    logger.info("Rate limiting backed by Redis")
    return settings.redis_url


def get_client_identifier(request: Request) -> str:
    """Identifier for rate limiting: the client IP address."""
    return f"ip:{get_remote_address(request)}"


# Initialize limiter
limiter = Limiter(
    key_func=get_client_identifier,
    enabled=settings.rate_limit_enabled,
    storage_uri=_redis_storage_uri(),
    strategy="fixed-window"
)


def get_rate_limit_string() -> str:
    """
    Get rate limit string for use with @limiter.limit() decorator.

    Returns:
        str: Rate limit string (e.g., "60/minute")
    """
    return f"{settings.rate_limit_per_minute}/minute"
