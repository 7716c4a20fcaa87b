"""Redis read-through cache for resolved records."""

import json
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .models import UrlRecord


class RecordCache:
    """Caches ``short_code -> UrlRecord`` snapshots for the redirect path.

    Short codes never move between URLs, so a cached entry only goes stale
    in its counters (and after a legacy-URL repair, which invalidates it).
    Every failure degrades to a cache miss.
    """

    KEY_PREFIX = "tinyurl:record:"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        client: Optional["redis.Redis"] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: TTL for cached records
            client: Pre-built client, mostly for tests
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.client = client
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = client is not None or redis_url is not None

    async def connect(self) -> None:
        """Connect to Redis; on failure the cache disables itself."""
        if not self.enabled or self.client is not None:
            return

        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info(f"Redis cache enabled with TTL={self.ttl_seconds}s")
        except (RedisError, OSError) as e:
            self.logger.error(f"Failed to connect to Redis, caching disabled: {e}")
            self.enabled = False
            self.client = None

    def get_cache_key(self, short_code: str) -> str:
        return f"{self.KEY_PREFIX}{short_code}"

    async def get(self, short_code: str) -> Optional[UrlRecord]:
        """Get a cached record, or None on miss or error."""
        if not self.enabled or not self.client:
            return None

        try:
            raw = await self.client.get(self.get_cache_key(short_code))
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache get error: {e}")
            return None

        if not raw:
            return None
        try:
            return UrlRecord.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning(f"Discarding undecodable cache entry for {short_code}: {e}")
            return None

    async def set(self, record: UrlRecord) -> bool:
        """Cache a record snapshot.

        Returns:
            True if stored
        """
        if not self.enabled or not self.client:
            return False

        try:
            await self.client.setex(
                self.get_cache_key(record.short_code),
                self.ttl_seconds,
                json.dumps(record.to_dict()),
            )
            return True
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache set error: {e}")
            return False

    async def delete(self, short_code: str) -> bool:
        """Drop a cached record.

        Returns:
            True if a key was removed
        """
        if not self.enabled or not self.client:
            return False

        try:
            return await self.client.delete(self.get_cache_key(short_code)) > 0
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache delete error: {e}")
            return False

    async def ping(self) -> bool:
        if not self.enabled or not self.client:
            return False
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache ping failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")
