"""
Catalog loading with cache fallback.

Order of preference:

1. Fresh cache entry (unless a refresh is forced)
2. Network fetch, bounded by the fetch timeout; repopulates the cache
3. Stale cache entry
4. Built-in demo tracks
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from loguru import logger

from beatwave.domain.library.models import Track, demo_tracks, find_track, tracks_from_dicts
from beatwave.domain.store import BlobStore, StoreError
from beatwave.domain.tracks import list_tracks

from .api import BeatWaveApi
from .cache import LocalCache
from .exceptions import ApiError, NetworkUnavailableError

CATALOG_CACHE_KEY = "tracks"
DEFAULT_FETCH_TIMEOUT = 10.0

# Where a loaded catalog came from
ORIGIN_CACHE = "cache"
ORIGIN_NETWORK = "network"
ORIGIN_STALE_CACHE = "stale_cache"
ORIGIN_DEMO = "demo"


@dataclass
class Catalog:
    """The in-memory track collection."""

    tracks: list[Track] = field(default_factory=list)
    origin: str = ORIGIN_DEMO

    def find(self, track_id: str) -> Optional[Track]:
        return find_track(self.tracks, track_id)

    def to_payload(self) -> list[dict[str, Any]]:
        return [track.to_dict() for track in self.tracks]

    def __len__(self) -> int:
        return len(self.tracks)


class CatalogSource(ABC):
    """Where the authoritative track list comes from."""

    @abstractmethod
    async def fetch(self) -> list[Track]:
        """Fetch every track.

        Raises:
            NetworkUnavailableError: If the source cannot be reached
        """


class ApiCatalogSource(CatalogSource):
    def __init__(self, api: BeatWaveApi):
        self.api = api

    async def fetch(self) -> list[Track]:
        try:
            items = await asyncio.to_thread(self.api.get_tracks)
        except ApiError as e:
            raise NetworkUnavailableError(str(e), e.status_code) from e
        return tracks_from_dicts(items)


class StoreCatalogSource(CatalogSource):
    """Read the catalog straight from the blob store."""

    def __init__(self, store: BlobStore):
        self.store = store

    async def fetch(self) -> list[Track]:
        try:
            return await asyncio.to_thread(list_tracks, self.store)
        except StoreError as e:
            raise NetworkUnavailableError(str(e)) from e


class CatalogLoader:
    """Produces the in-memory catalog, never failing."""

    def __init__(
        self,
        source: CatalogSource,
        cache: LocalCache,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    ):
        self.source = source
        self.cache = cache
        self.fetch_timeout = fetch_timeout

    def cached(self, ignore_expiry: bool = False) -> Optional[Catalog]:
        hit = self.cache.get(CATALOG_CACHE_KEY, ignore_expiry=ignore_expiry)
        if hit is None:
            return None
        origin = ORIGIN_CACHE if hit.is_fresh else ORIGIN_STALE_CACHE
        return Catalog(tracks_from_dicts(hit.payload), origin)

    async def load(self, force_refresh: bool = False) -> Catalog:
        if not force_refresh:
            catalog = self.cached()
            if catalog is not None:
                logger.debug(f"Catalog served from cache ({len(catalog)} tracks)")
                return catalog

        try:
            tracks = await asyncio.wait_for(self.source.fetch(), self.fetch_timeout)
        except (asyncio.TimeoutError, NetworkUnavailableError) as e:
            logger.warning(f"Catalog fetch failed, falling back: {str(e) or 'timed out'}")
            return self.fallback()

        catalog = Catalog(tracks, ORIGIN_NETWORK)
        self.cache.put(CATALOG_CACHE_KEY, catalog.to_payload())
        logger.info(f"Loaded {len(catalog)} tracks from network")
        return catalog

    def fallback(self) -> Catalog:
        catalog = self.cached(ignore_expiry=True)
        if catalog is not None:
            logger.info(f"Using stale cached catalog ({len(catalog)} tracks)")
            return catalog
        logger.info("No cached catalog, using demo tracks")
        return Catalog(demo_tracks(), ORIGIN_DEMO)

    def write_through(self, catalog: Catalog) -> bool:
        """Persist the current in-memory collection to the cache."""
        return self.cache.put(CATALOG_CACHE_KEY, catalog.to_payload())
