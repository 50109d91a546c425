"""Shared rate limiter with Redis storage and in-memory fallback.

Uses Redis for distributed limiting across workers when configured and
reachable. Falls back to in-memory storage otherwise (limits are then
per worker). Disabled entirely under TESTING.
"""

import os

import redis as redis_lib
from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings


def _resolve_storage() -> str | None:
    """Try Redis for distributed rate limiting; fall back to in-memory."""
    if settings.cache_backend != "redis" or not settings.redis_url:
        return None
    try:
        r = redis_lib.from_url(settings.redis_url, socket_connect_timeout=2)
        r.ping()
    except (redis_lib.RedisError, ConnectionError, OSError) as e:
        logger.warning("Redis unavailable ({}), rate limiter using in-memory storage", e)
        return None
    logger.info("Rate limiter using Redis storage")
    return settings.redis_url


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled and not os.environ.get("TESTING"),
    storage_uri=_resolve_storage(),
)
