"""Redis caching layer.

Cache failures never fail a request: every operation logs a warning and
behaves like a miss. With CACHE_ENABLED=false no connection is attempted.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from gojipedia.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class CacheService:
    """Async Redis cache service storing JSON values."""

    def __init__(self, enabled: bool | None = None):
        self._redis: redis.Redis | None = None
        self.enabled = settings.cache_enabled if enabled is None else enabled

    async def _get_redis(self) -> redis.Redis:
        """Get or create Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.close()

    async def get(self, key: str) -> Any | None:
        """Get value from cache."""
        if not self.enabled:
            return None
        try:
            client = await self._get_redis()
            value = await client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """Set value in cache with optional TTL (defaults to CACHE_TTL_SECONDS)."""
        if not self.enabled:
            return False
        try:
            client = await self._get_redis()
            await client.setex(key, ttl or settings.cache_ttl_seconds, json.dumps(value))
            return True
        except Exception as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    async def flush_pattern(self, pattern: str) -> int:
        """Delete all keys matching a pattern. Returns count of deleted keys."""
        if not self.enabled:
            return 0
        try:
            client = await self._get_redis()
            deleted = 0
            async for key in client.scan_iter(match=pattern, count=500):
                await client.delete(key)
                deleted += 1
            return deleted
        except Exception as e:
            logger.warning(f"Cache flush_pattern error for {pattern}: {e}")
            return 0

    # Key patterns. Everything lives under "catalog:" so a store reload can
    # drop it all with one flush_pattern call.
    CATALOG_PATTERN = "catalog:*"

    @staticmethod
    def site_stats_key() -> str:
        return "catalog:stats:site"

    @staticmethod
    def fight_record_key(monster_id: str) -> str:
        return f"catalog:fight-record:{monster_id}"


# Singleton cache instance
_cache: CacheService | None = None


def get_cache() -> CacheService:
    """Get the singleton cache service."""
    global _cache
    if _cache is None:
        _cache = CacheService()
    return _cache
