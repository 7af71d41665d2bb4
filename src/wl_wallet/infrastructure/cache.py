"""Redis-backed exchange-rate cache.

Thin wrapper over redis.asyncio: a missing key is a miss (None), any Redis
failure is logged here and re-raised for the service to decide on.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RedisRateCache:
    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    async def get_value(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except RedisError as exc:
            logger.error("Cache GET failed: key=%s error=%s", key, exc)
            raise
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else str(value)

    async def set_value(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            logger.error("Cache SET failed: key=%s error=%s", key, exc)
            raise
