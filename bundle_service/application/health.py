"""Liveness checks of the service's downstream dependencies."""

import logging
from typing import Awaitable, Callable, List, Tuple

from .cache import RetrievalCache
from .domain import HealthScope, HealthStatus, KeyValueCache, ObjectStore, RelationalProbe
from .exceptions import BundleServiceError, CacheError

_SUCCESS_MESSAGES = {
    HealthScope.ALL: "All services are healthy",
    HealthScope.OBJECT_STORE: "S3 is healthy",
    HealthScope.RELATIONAL_STORE: "PostgreSQL is healthy",
    HealthScope.KEY_VALUE_STORE: "Redis is healthy",
}


class HealthProbe:
    """Probes dependencies and memoizes success for a short TTL."""

    def __init__(
        self,
        object_store: ObjectStore,
        relational_probe: RelationalProbe,
        key_value_cache: KeyValueCache,
        cache: RetrievalCache,
        cache_ttl_seconds: int = 60,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.object_store = object_store
        self.relational_probe = relational_probe
        self.key_value_cache = key_value_cache
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds

    def _probes_for(
        self, scope: HealthScope
    ) -> List[Tuple[str, Callable[[], Awaitable]]]:
        probes = {
            HealthScope.OBJECT_STORE: ("S3", self.object_store.ping),
            HealthScope.RELATIONAL_STORE: ("PostgreSQL", self.relational_probe.probe),
            HealthScope.KEY_VALUE_STORE: ("Redis", self.key_value_cache.ping),
        }
        if scope is HealthScope.ALL:
            return list(probes.values())
        return [probes[scope]]

    async def _cached_status(self):
        try:
            return await self.cache.get_health()
        except CacheError as e:
            self.logger.warning(f"Health status cache unavailable: {e}")
            return None

    async def check(self, scope: HealthScope = HealthScope.ALL) -> HealthStatus:
        """
        Returns the health of the dependencies covered by `scope`.

        A memoized success is returned verbatim. Otherwise probes run in
        order and the first failure is returned without being cached. A
        success is cached on a best-effort basis: if the write fails the
        probe result is still returned.
        """

        cached = await self._cached_status()
        if cached is not None:
            return HealthStatus(status_code=200, message=cached)

        for label, probe in self._probes_for(scope):
            try:
                await probe()
            except BundleServiceError as e:
                self.logger.error(f"{label} Health Check Failed: {e}")
                return HealthStatus(
                    status_code=500, message=f"{label} Health Check Failed: {e}"
                )

        message = _SUCCESS_MESSAGES[scope]
        try:
            await self.cache.store_health(message, self.cache_ttl_seconds)
        except CacheError as e:
            self.logger.warning(f"Health check succeeded but was not memoized: {e}")

        return HealthStatus(status_code=200, message=message)
