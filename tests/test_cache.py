"""
Tests for the Redis catalog cache.

Redis is replaced by a small in-memory stand-in so these run without a
server; ``AsyncMock`` wraps it where a test needs to inspect the calls.
"""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from tripdesk.domain.entities import StatusCatalog, TripStatusInfo, TripSubStatusInfo
from tripdesk.domain.errors import Conflict
from tripdesk.infrastructure.cache import GENERATION_KEY, CatalogCache, catalog_key
from tripdesk.services.taxonomy import StatusTaxonomyRegistry


class InMemoryRedis:
    """Just the commands ``CatalogCache`` issues."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.expiry = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex

    async def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])


def _unreachable_redis():
    client = AsyncMock()
    for command in (client.get, client.set, client.incr):
        command.side_effect = RedisConnectionError("Connection refused")
    return client


def _spy(client):
    return AsyncMock(wraps=client)


class TestCatalogCache:
    @pytest.mark.asyncio
    async def test_miss(self):
        cache = CatalogCache(InMemoryRedis())

        assert await cache.get() is None

    @pytest.mark.asyncio
    async def test_hit_decodes_catalog(self):
        stored = json.dumps(
            {
                "statuses": [
                    {"id": 1, "name": "Planned", "passenger_count_required": False, "sort_order": 1}
                ],
                "sub_statuses": [
                    {"id": 4, "name": "Scheduled", "linked_status": "Planned", "sort_order": 10}
                ],
            }
        )
        cache = CatalogCache(InMemoryRedis({catalog_key(0): stored}))

        catalog = await cache.get()

        assert catalog.statuses == [TripStatusInfo(1, "Planned", False, 1)]
        assert catalog.sub_statuses_for("Planned") == [
            TripSubStatusInfo(4, "Scheduled", "Planned", 10)
        ]

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self):
        client = InMemoryRedis()
        cache = CatalogCache(client, ttl_seconds=60)

        await cache.set(StatusCatalog(), 3)

        assert catalog_key(3) in client.data
        assert client.expiry[catalog_key(3)] == 60

    @pytest.mark.asyncio
    async def test_invalidate_moves_to_next_generation(self):
        client = InMemoryRedis()
        cache = CatalogCache(client)
        await cache.set(StatusCatalog(), 0)

        await cache.invalidate()

        assert await cache.generation() == 1
        assert await cache.get() is None

    @pytest.mark.asyncio
    async def test_unreachable_redis_reads_as_miss(self):
        cache = CatalogCache(_unreachable_redis())

        assert await cache.generation() is None
        assert await cache.get() is None

    @pytest.mark.asyncio
    async def test_unreachable_redis_write_and_invalidate_are_logged(self, caplog):
        cache = CatalogCache(_unreachable_redis())

        await cache.set(StatusCatalog(), 0)
        await cache.invalidate()

        messages = [r.getMessage() for r in caplog.records]
        assert any("write failed" in m for m in messages)
        assert any("invalidation failed" in m for m in messages)


class TestRegistryCaching:
    @pytest.mark.asyncio
    async def test_read_through(self, database):
        client = _spy(InMemoryRedis())
        registry = StatusTaxonomyRegistry(database, CatalogCache(client))

        catalog = await registry.get_catalog()

        assert "Planned" in catalog.status_names()
        client.set.assert_awaited_once()
        assert client.set.call_args.args[0] == catalog_key(0)

    @pytest.mark.asyncio
    async def test_cached_catalog_served(self, database):
        stored = json.dumps({"statuses": [], "sub_statuses": []})
        registry = StatusTaxonomyRegistry(
            database, CatalogCache(InMemoryRedis({catalog_key(0): stored}))
        )

        assert (await registry.get_catalog()).statuses == []

    @pytest.mark.asyncio
    async def test_mutation_invalidates(self, database):
        client = _spy(InMemoryRedis())
        registry = StatusTaxonomyRegistry(database, CatalogCache(client))
        await registry.get_catalog()

        await registry.create_status("Cancelled")

        client.incr.assert_awaited_once_with(GENERATION_KEY)
        assert "Cancelled" in (await registry.get_catalog()).status_names()

    @pytest.mark.asyncio
    async def test_failed_mutation_keeps_cache(self, database):
        client = _spy(InMemoryRedis())
        registry = StatusTaxonomyRegistry(database, CatalogCache(client))

        with pytest.raises(Conflict):
            await registry.create_status("Planned")

        client.incr.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rename_during_fill_is_not_served_stale(self, database, monkeypatch):
        cache = CatalogCache(InMemoryRedis())
        registry = StatusTaxonomyRegistry(database, cache)
        active_id = next(
            s.id for s in (await registry.get_catalog()).statuses if s.name == "Active"
        )
        await cache.invalidate()
        real_set = cache.set

        async def rename_then_set(catalog, generation):
            # The rename commits after the reader's database read but before
            # its cache write.
            monkeypatch.setattr(cache, "set", real_set)
            await registry.rename_status(active_id, "Rolling")
            await real_set(catalog, generation)

        monkeypatch.setattr(cache, "set", rename_then_set)

        stale = await registry.get_catalog()
        assert "Active" in stale.status_names()

        names = (await registry.get_catalog()).status_names()
        assert "Rolling" in names
        assert "Active" not in names

    @pytest.mark.asyncio
    async def test_unreachable_redis_falls_back_to_database(self, database):
        registry = StatusTaxonomyRegistry(database, CatalogCache(_unreachable_redis()))

        assert "Planned" in (await registry.get_catalog()).status_names()

        await registry.create_status("Cancelled")

        assert "Cancelled" in (await registry.get_catalog()).status_names()
