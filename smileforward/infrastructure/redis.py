"""Shared Redis connection for cross-instance request counters."""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from smileforward.settings import settings

logger = logging.getLogger(__name__)


class RedisConnection:
    """Lazily connected Redis handle; stays unavailable if the server is down at startup."""

    def __init__(self, url: str, configured: bool) -> None:
        self.url = url
        self.configured = configured
        self._client: aioredis.Redis | None = None

    @property
    def available(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        if not self.configured or self._client is not None:
            return
        client = aioredis.from_url(self.url, decode_responses=True)
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.warning(f"Redis unavailable at {self.url}, counting requests per instance: {e}")
            await client.aclose()
            return
        self._client = client
        logger.info("Redis connected")

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        """Count one request in the key's current window.

        Returns:
            Tuple of (requests in window, seconds until the window resets)
        """
        if self._client is None:
            raise RedisError("Redis is not connected")
        count = await self._client.incr(key)
        if count == 1:
            await self._client.expire(key, window_seconds)
        ttl = await self._client.ttl(key)
        return count, ttl if ttl > 0 else window_seconds


redis_client = RedisConnection(settings.redis_url, settings.redis_enabled)
