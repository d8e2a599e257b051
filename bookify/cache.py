"""
Redis caching utilities for directory reads.
The cache fails open: without Redis every call is a miss and writes are dropped.
"""
import json
import logging
from typing import Any, Optional

import redis

from .config import CACHE_TTL_SECONDS, REDIS_URL

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """Get or create the Redis client; None when Redis is not configured"""
    global redis_client

    if not REDIS_URL:
        return None

    if redis_client is None:
        # Mask password in URL for logging
        masked_url = f"{REDIS_URL.split(':')[0]}:****@{REDIS_URL.split('@')[-1]}" if "@" in REDIS_URL else "****"
        logger.info(f"📡 Connecting to Redis: {masked_url}")
        redis_client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
    return redis_client


class Cache:
    """Redis cache wrapper with automatic JSON serialization"""

    def __init__(self, client_factory=get_redis_client):
        self._client_factory = client_factory

    def _get_client(self) -> Optional[redis.Redis]:
        try:
            return self._client_factory()
        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis cache unavailable: {e}")
            return None

    def get(self, key: str) -> Optional[Any]:
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
        except redis.RedisError as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = CACHE_TTL_SECONDS) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except redis.RedisError as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'providers:*')"""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern))
            if keys:
                deleted = client.delete(*keys)
                logger.debug(f"✅ Cache DELETE pattern: {pattern} ({deleted} keys)")
                return deleted
            return 0
        except redis.RedisError as e:
            logger.error(f"❌ Cache delete pattern error for {pattern}: {e}")
            return 0


# Global cache instance
cache = Cache()

PROVIDER_DIRECTORY_PREFIX = "providers:directory"


def invalidate_provider_directory() -> int:
    """Drop every cached directory page after a provider or catalog change"""
    return cache.delete_pattern(f"{PROVIDER_DIRECTORY_PREFIX}:*")
