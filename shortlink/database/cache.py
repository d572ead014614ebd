"""Redis cache layer for URL mappings."""

import json
import logging
from datetime import datetime
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .models import URLMapping


class RedisCache:
    """Read-through Redis cache for URL mappings.

    The cache is advisory. Errors are logged and reported as misses, and a
    cached mapping never outlives its own ``expires_at``.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Upper bound on the TTL of cached items
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

        if redis_url:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self.enabled:
            return

        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except (RedisError, OSError) as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.enabled = False

    async def get_mapping(self, short_code: str) -> Optional[URLMapping]:
        """Get a cached mapping.

        Args:
            short_code: The short code

        Returns:
            Cached mapping or None
        """
        if not self.enabled or not self.client:
            return None

        try:
            raw = await self.client.get(self.get_cache_key(short_code))
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache get error: {e}")
            return None

        if raw is None:
            return None
        try:
            return URLMapping.from_dict(json.loads(raw))
        except (ValueError, KeyError) as e:
            self.logger.warning(f"Discarding malformed cache entry for {short_code}: {e}")
            await self.delete(short_code)
            return None

    async def set_mapping(self, mapping: URLMapping, now: datetime) -> bool:
        """Cache a mapping until its expiry or the configured TTL.

        Args:
            mapping: The mapping to cache
            now: Current time, used to cap the TTL at the remaining lifetime

        Returns:
            True if cached
        """
        if not self.enabled or not self.client:
            return False

        remaining = int((mapping.expires_at - now).total_seconds())
        ttl = min(self.ttl_seconds, remaining)
        if ttl <= 0:
            return False

        try:
            await self.client.setex(
                self.get_cache_key(mapping.short_code),
                ttl,
                json.dumps(mapping.to_dict()),
            )
            return True
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache set error: {e}")
            return False

    async def delete(self, short_code: str) -> bool:
        """Delete a cached mapping.

        Args:
            short_code: The short code

        Returns:
            True if deleted
        """
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.delete(self.get_cache_key(short_code))
            return result > 0
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache delete error: {e}")
            return False

    async def ping(self) -> bool:
        """Check the Redis connection."""
        if not self.enabled or not self.client:
            return True
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")

    def get_cache_key(self, short_code: str) -> str:
        """Generate cache key for short code."""
        return f"shortlink:mapping:{short_code}"
