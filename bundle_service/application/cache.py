"""Namespaced, serialized access to the key-value cache."""

import json
import logging
from typing import Optional

from .domain import ExtractionResult, KeyValueCache

RESULT_KEY_PREFIX = "file_cache:"
HEALTH_STATUS_KEY = "health_check_status"


def result_key(base_name: str) -> str:
    return RESULT_KEY_PREFIX + base_name


class RetrievalCache:
    """
    TTL memoization over a KeyValueCache.

    Extraction results are stored under `file_cache:<name>` as a JSON array
    of paths, preserving order. The health status lives under a single
    sentinel key. The cache is never authoritative: losing an entry only
    costs a re-extraction.
    """

    def __init__(self, backend: KeyValueCache):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.backend = backend

    async def get(self, key: str) -> Optional[str]:
        return await self.backend.get(key)

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int):
        await self.backend.set_expiring(key, value, ttl_seconds)

    async def get_result(self, base_name: str) -> Optional[ExtractionResult]:
        """Returns the cached result for a bundle; undecodable payloads miss."""
        payload = await self.get(result_key(base_name))
        if payload is None:
            return None
        try:
            paths = json.loads(payload)
        except ValueError:
            self.logger.warning(f"Discarding undecodable cache entry for {base_name}")
            return None
        if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
            self.logger.warning(f"Discarding malformed cache entry for {base_name}")
            return None
        return ExtractionResult.of(*paths)

    async def store_result(
        self, base_name: str, result: ExtractionResult, ttl_seconds: int
    ):
        payload = json.dumps(list(result.paths))
        await self.set_with_expiry(result_key(base_name), payload, ttl_seconds)

    async def get_health(self) -> Optional[str]:
        return await self.get(HEALTH_STATUS_KEY)

    async def store_health(self, message: str, ttl_seconds: int):
        await self.set_with_expiry(HEALTH_STATUS_KEY, message, ttl_seconds)
