"""
Redis caching for public page reads.
Fail-open: when Redis is unreachable every read is a miss and writes are skipped.
"""

import json
import logging
from typing import Any, Optional

import redis

from .config import (
    CACHE_ENABLED,
    PAGE_CACHE_TTL,
    REDIS_HOST,
    REDIS_PASSWORD,
    REDIS_PORT,
    REDIS_SSL,
    REDIS_URL,
)

logger = logging.getLogger(__name__)


def create_redis_client() -> redis.Redis:
    """
    Create a Redis client from REDIS_URL or the individual REDIS_* settings
    """
    if REDIS_URL:
        client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            health_check_interval=30,
        )
    else:
        client = redis.Redis(
            host=REDIS_HOST,
            port=REDIS_PORT,
            password=REDIS_PASSWORD,
            ssl=REDIS_SSL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            health_check_interval=30,
        )
    client.ping()
    return client


class Cache:
    """Redis cache wrapper with automatic serialization"""

    def __init__(self, enabled: bool = True, default_ttl: int = 3600):
        self.enabled = enabled
        self.default_ttl = default_ttl
        self.redis_client = None
        self._connect_failed = False

    def _get_client(self):
        """Lazy load Redis client; a failed connect disables the cache for this process"""
        if not self.enabled or self._connect_failed:
            return None
        if self.redis_client is None:
            try:
                self.redis_client = create_redis_client()
                logger.info("Redis cache connected")
            except Exception as e:
                self._connect_failed = True
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache with TTL"""
        client = self._get_client()
        if not client:
            return False

        try:
            serialized = json.dumps(value, default=str)
            client.setex(key, ttl or self.default_ttl, serialized)
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl or self.default_ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.delete(key)
            logger.debug(f"✅ Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False


# Global cache instance
cache = Cache(enabled=CACHE_ENABLED, default_ttl=PAGE_CACHE_TTL)


def page_cache_key(page_id: int) -> str:
    return f"page:{page_id}"


def get_page_cached(page_id: int) -> Optional[dict]:
    """Get a rendered public page from cache"""
    return cache.get(page_cache_key(page_id))


def set_page_cached(page_id: int, page: dict) -> bool:
    return cache.set(page_cache_key(page_id), page)


def invalidate_page_cache(page_id: int) -> bool:
    """Invalidate a page when it, its catalog, its delivery settings or its reviews change"""
    return cache.delete(page_cache_key(page_id))
