"""
utils/cache.py - Redis cache for the public platform catalog

The catalog is seeded data that almost never changes, so the listing is
kept in Redis for PLATFORM_CACHE_TTL seconds. When REDIS_URL is empty or
the server is unreachable every call is a miss and the route reads the
database.

Usage:
    from utils.cache import cache

    data = cache.get(PLATFORM_LIST_KEY)
    cache.set(PLATFORM_LIST_KEY, data, ttl=settings.PLATFORM_CACHE_TTL)
    cache.delete(PLATFORM_LIST_KEY)
"""

import json
import logging
import time
from typing import Optional, Any

import redis
from config import settings

logger = logging.getLogger(__name__)

PLATFORM_LIST_KEY = "platforms:list"

_redis_client: Optional[redis.Redis] = None
_redis_last_fail: float = 0.0       # epoch of last connection failure
_REDIS_RETRY_INTERVAL = 60.0        # seconds before retrying after a failure


def _get_redis() -> Optional[redis.Redis]:
    """Return a Redis client, or None if Redis is disabled / unreachable."""
    global _redis_client, _redis_last_fail

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is not None:
        return _redis_client

    now = time.time()
    if now - _redis_last_fail < _REDIS_RETRY_INTERVAL:
        return None

    try:
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=2,
        )
        client.ping()
        logger.info("✅ Redis connected successfully")
        _redis_client = client
        return _redis_client
    except redis.RedisError as e:
        _redis_last_fail = now
        logger.warning(f"⚠️ Redis unavailable – running without cache: {e}")
        return None


class Cache:
    """JSON values in Redis; every failure degrades to a miss."""

    def get(self, key: str) -> Optional[Any]:
        r = _get_redis()
        if r is None:
            return None
        try:
            raw = r.get(key)
            return json.loads(raw) if raw is not None else None
        except (redis.RedisError, ValueError) as e:
            logger.debug(f"Cache GET error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 30) -> bool:
        r = _get_redis()
        if r is None:
            return False
        try:
            r.setex(key, ttl, json.dumps(value, default=str))
            return True
        except redis.RedisError as e:
            logger.debug(f"Cache SET error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        r = _get_redis()
        if r is None:
            return False
        try:
            r.delete(key)
            return True
        except redis.RedisError as e:
            logger.debug(f"Cache DELETE error for {key}: {e}")
            return False

    def ping(self) -> bool:
        r = _get_redis()
        if r is None:
            return False
        try:
            return bool(r.ping())
        except redis.RedisError:
            return False

    @property
    def enabled(self) -> bool:
        return settings.REDIS_ENABLED and _get_redis() is not None


cache = Cache()
