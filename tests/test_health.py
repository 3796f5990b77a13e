"""Tests for dependency health checks."""

import pytest

from bundle_service.application.cache import HEALTH_STATUS_KEY
from bundle_service.application.domain import HealthScope


@pytest.mark.unit
class TestHealthProbe:

    @pytest.mark.asyncio
    async def test_all_healthy_is_cached_for_60_seconds(self, health_probe, kv_cache):
        status = await health_probe.check(HealthScope.ALL)

        assert (status.status_code, status.message) == (200, "All services are healthy")
        assert kv_cache.ttls == {HEALTH_STATUS_KEY: 60}

    @pytest.mark.asyncio
    async def test_cached_message_returned_verbatim(self, health_probe, kv_cache, object_store, relational_probe):
        await kv_cache.set_expiring(HEALTH_STATUS_KEY, "Redis is healthy", 60)

        status = await health_probe.check(HealthScope.ALL)

        assert (status.status_code, status.message) == (200, "Redis is healthy")
        assert object_store.count("ping") == 0
        assert relational_probe.probes == 0

    @pytest.mark.asyncio
    async def test_expired_status_probes_again(self, health_probe, kv_cache, relational_probe):
        await health_probe.check(HealthScope.ALL)
        kv_cache.advance(61)
        await health_probe.check(HealthScope.ALL)

        assert relational_probe.probes == 2

    @pytest.mark.asyncio
    async def test_first_failure_short_circuits(self, health_probe, object_store, relational_probe, kv_cache):
        object_store.fail_ping = True

        status = await health_probe.check(HealthScope.ALL)

        assert status.status_code == 500
        assert status.message == "S3 Health Check Failed: bucket unreachable"
        assert relational_probe.probes == 0
        assert HEALTH_STATUS_KEY not in kv_cache.entries

    @pytest.mark.asyncio
    async def test_failure_is_never_cached(self, health_probe, relational_probe):
        relational_probe.fail = True
        first = await health_probe.check(HealthScope.RELATIONAL_STORE)
        relational_probe.fail = False
        second = await health_probe.check(HealthScope.RELATIONAL_STORE)

        assert first.message == "PostgreSQL Health Check Failed: could not connect to server"
        assert (second.status_code, second.message) == (200, "PostgreSQL is healthy")

    @pytest.mark.asyncio
    async def test_single_scope_probes_only_that_dependency(self, health_probe, object_store, relational_probe):
        status = await health_probe.check(HealthScope.KEY_VALUE_STORE)

        assert status.message == "Redis is healthy"
        assert object_store.count("ping") == 0
        assert relational_probe.probes == 0

    @pytest.mark.asyncio
    async def test_redis_failure_message(self, health_probe, kv_cache):
        kv_cache.fail_ping = True
        status = await health_probe.check(HealthScope.ALL)
        assert status.message == "Redis Health Check Failed: connection refused"

    @pytest.mark.asyncio
    async def test_cache_write_failure_still_reports_success(self, health_probe, kv_cache):
        kv_cache.fail_writes = True

        status = await health_probe.check(HealthScope.OBJECT_STORE)

        assert (status.status_code, status.message) == (200, "S3 is healthy")

    @pytest.mark.asyncio
    async def test_cache_read_failure_is_a_miss(self, health_probe, kv_cache, object_store):
        kv_cache.fail_reads = True

        status = await health_probe.check(HealthScope.OBJECT_STORE)

        assert status.healthy
        assert object_store.count("ping") == 1
