"""Application context for explicit state passing.

AppContext owns every piece of client state: the device session, the local
cache, the in-memory catalog, the counter service and the playback session.
All of them share one Catalog instance, so reloading the catalog updates
every holder at once.
"""

import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rich.console import Console

from beatwave.core.config import Config
from beatwave.core.storage import DeviceStorage
from beatwave.domain.library.views import CatalogViews, build_views
from beatwave.domain.playback.audio import AudioBackend, SilentAudioBackend
from beatwave.domain.playback.session import PlaybackSession
from beatwave.domain.stats.counters import (
    ApiCounterBackend,
    CounterBackend,
    CounterService,
    StoreCounterBackend,
)
from beatwave.domain.store import BlobStore
from beatwave.domain.sync.api import BeatWaveApi
from beatwave.domain.sync.cache import LocalCache
from beatwave.domain.sync.loader import (
    ApiCatalogSource,
    Catalog,
    CatalogLoader,
    CatalogSource,
    StoreCatalogSource,
)
from beatwave.domain.sync.session import SessionState


@dataclass
class AppContext:
    """Client state passed explicitly to commands.

    Attributes:
        config: Application configuration
        storage: Device-local key/value storage
        session: Signed-in account, likes, history and play suppression
        catalog: Shared in-memory track collection
        loader: Catalog loader with cache fallback
        counters: Play and like reconciliation
        playback: Single-stream playback session
        console: Rich Console for formatted output
    """

    config: Config
    storage: DeviceStorage
    session: SessionState
    catalog: Catalog
    loader: CatalogLoader
    counters: CounterService
    playback: PlaybackSession
    rng: random.Random = field(default_factory=random.Random)
    console: Optional[Console] = None

    @classmethod
    def create(
        cls,
        config: Config,
        storage: Optional[DeviceStorage] = None,
        store: Optional[BlobStore] = None,
        audio: Optional[AudioBackend] = None,
        rng: Optional[random.Random] = None,
        console: Optional[Console] = None,
        db_path: Optional[Path] = None,
    ) -> "AppContext":
        """Wire the client layers together.

        With ``store`` the client reads and writes the blob store directly;
        otherwise it talks to the HTTP API at ``config.client.api_base``.
        """
        rng = rng or random.Random()
        storage = storage or DeviceStorage(db_path)
        session = SessionState(
            storage,
            history_limit=config.stats.history_limit,
            device_id=config.client.device_id,
        )
        cache = LocalCache(storage, ttl_seconds=config.client.cache_ttl_seconds)

        source: CatalogSource
        backend: CounterBackend
        if store is not None:
            source = StoreCatalogSource(store)
            backend = StoreCounterBackend(
                store,
                retention_days=config.stats.play_log_retention_days,
                max_attempts=config.store.max_write_attempts,
            )
        else:
            api = BeatWaveApi(
                config.client.api_base, timeout=config.client.fetch_timeout_seconds
            )
            source = ApiCatalogSource(api)
            backend = ApiCounterBackend(api)

        catalog = Catalog()
        loader = CatalogLoader(
            source, cache, fetch_timeout=config.client.fetch_timeout_seconds
        )
        counters = CounterService(catalog, session, backend, loader)
        playback = PlaybackSession(
            catalog,
            audio or SilentAudioBackend(),
            counters=counters,
            session=session,
            rng=rng,
        )
        return cls(
            config=config,
            storage=storage,
            session=session,
            catalog=catalog,
            loader=loader,
            counters=counters,
            playback=playback,
            rng=rng,
            console=console,
        )

    async def load_catalog(self, force_refresh: bool = False) -> Catalog:
        """Reload the shared catalog in place."""
        loaded = await self.loader.load(force_refresh=force_refresh)
        self.catalog.tracks = loaded.tracks
        self.catalog.origin = loaded.origin
        return self.catalog

    def views(self) -> CatalogViews:
        limits = self.config.catalog
        return build_views(
            self.catalog.tracks,
            rng=self.rng,
            recent_limit=limits.recent_limit,
            recommended_limit=limits.recommended_limit,
            uploaded_limit=limits.uploaded_limit,
            trending_limit=limits.trending_limit,
        )

    async def close(self) -> None:
        await self.playback.drain()
        await self.playback.backend.close()
