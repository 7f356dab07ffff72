"""Tests for catalog loading and cache fallback."""

import asyncio

import pytest

from beatwave.domain.library.models import Track
from beatwave.domain.sync import (
    CATALOG_CACHE_KEY,
    CatalogLoader,
    CatalogSource,
    LocalCache,
    NetworkUnavailableError,
    StoreCatalogSource,
)


class FakeSource(CatalogSource):
    def __init__(self, tracks=None, error=None, delay=0.0):
        self.tracks = tracks or []
        self.error = error
        self.delay = delay
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.tracks)


@pytest.fixture
def cache(storage, clock):
    return LocalCache(storage, ttl_seconds=300, clock=clock)


class TestLoad:
    """Tests for CatalogLoader.load."""

    @pytest.mark.anyio
    async def test_network_load_fills_cache(self, cache):
        source = FakeSource([Track("t1", plays=3)])
        catalog = await CatalogLoader(source, cache).load()
        assert catalog.origin == "network"
        assert [t.id for t in catalog.tracks] == ["t1"]
        assert cache.get(CATALOG_CACHE_KEY).payload[0]["id"] == "t1"

    @pytest.mark.anyio
    async def test_fresh_cache_skips_network(self, cache):
        cache.put(CATALOG_CACHE_KEY, [{"id": "cached"}])
        source = FakeSource([Track("t1")])
        catalog = await CatalogLoader(source, cache).load()
        assert catalog.origin == "cache"
        assert catalog.find("cached") is not None
        assert source.calls == 0

    @pytest.mark.anyio
    async def test_force_refresh_bypasses_cache(self, cache):
        cache.put(CATALOG_CACHE_KEY, [{"id": "cached"}])
        source = FakeSource([Track("t1")])
        catalog = await CatalogLoader(source, cache).load(force_refresh=True)
        assert catalog.origin == "network"
        assert source.calls == 1

    @pytest.mark.anyio
    async def test_expired_cache_refetches(self, cache, clock):
        cache.put(CATALOG_CACHE_KEY, [{"id": "cached"}])
        clock.advance(301)
        catalog = await CatalogLoader(FakeSource([Track("t1")]), cache).load()
        assert catalog.origin == "network"

    @pytest.mark.anyio
    async def test_network_failure_uses_stale_cache(self, cache, clock):
        cache.put(CATALOG_CACHE_KEY, [{"id": "cached", "plays": 2}])
        clock.advance(10_000)
        source = FakeSource(error=NetworkUnavailableError("offline"))
        catalog = await CatalogLoader(source, cache).load()
        assert catalog.origin == "stale_cache"
        assert catalog.find("cached").plays == 2

    @pytest.mark.anyio
    async def test_timeout_falls_back(self, cache):
        cache.put(CATALOG_CACHE_KEY, [{"id": "cached"}])
        source = FakeSource([Track("t1")], delay=1.0)
        catalog = await CatalogLoader(source, cache, fetch_timeout=0.01).load(
            force_refresh=True
        )
        assert catalog.origin == "cache"
        assert catalog.find("cached") is not None

    @pytest.mark.anyio
    async def test_demo_tracks_without_cache(self, cache):
        source = FakeSource(error=NetworkUnavailableError("offline"))
        catalog = await CatalogLoader(source, cache).load()
        assert catalog.origin == "demo"
        assert len(catalog) == 2
        assert cache.get(CATALOG_CACHE_KEY, ignore_expiry=True) is None

    @pytest.mark.anyio
    async def test_store_source(self, store, seed_track, cache):
        seed_track("a")
        seed_track("b")
        catalog = await CatalogLoader(StoreCatalogSource(store), cache).load()
        assert sorted(t.id for t in catalog.tracks) == ["a", "b"]


class TestWriteThrough:
    """Tests for persisting the in-memory catalog."""

    @pytest.mark.anyio
    async def test_write_through_round_trip(self, cache):
        loader = CatalogLoader(FakeSource([Track("t1")]), cache)
        catalog = await loader.load()
        catalog.find("t1").likes = 9
        assert loader.write_through(catalog)
        assert loader.cached().find("t1").likes == 9
