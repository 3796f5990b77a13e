"""Redis implementation of the KeyValueCache port."""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..application.domain import KeyValueCache
from ..application.exceptions import CacheError

_PING_KEY = "test_key"
_PING_VALUE = "test_value"


class RedisKeyValueCache(KeyValueCache):
    """A key-value cache on a shared, multiplexed Redis connection pool."""

    def __init__(self, url: str):
        self.client = redis.Redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except RedisError as e:
            raise CacheError(f"Failed to read {key}: {e}") from e

    async def set_expiring(self, key: str, value: str, ttl_seconds: int):
        try:
            await self.client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise CacheError(f"Failed to write {key}: {e}") from e

    async def ping(self):
        try:
            await self.client.set(_PING_KEY, _PING_VALUE)
            await self.client.get(_PING_KEY)
        except RedisError as e:
            raise CacheError(str(e)) from e

    async def close(self):
        await self.client.aclose()
