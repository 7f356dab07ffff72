"""Client sync layer - API client, local cache, session state and catalog loading."""

from .api import BeatWaveApi
from .cache import CacheHit, LocalCache
from .exceptions import (
    ApiError,
    NetworkUnavailableError,
    RemoteWriteError,
    UnauthenticatedError,
)
from .loader import (
    CATALOG_CACHE_KEY,
    ApiCatalogSource,
    Catalog,
    CatalogLoader,
    CatalogSource,
    StoreCatalogSource,
)
from .session import ListeningStats, ProfileStatsSnapshot, SessionState

__all__ = [
    "BeatWaveApi",
    "CacheHit",
    "LocalCache",
    "ApiError",
    "NetworkUnavailableError",
    "RemoteWriteError",
    "UnauthenticatedError",
    "CATALOG_CACHE_KEY",
    "ApiCatalogSource",
    "Catalog",
    "CatalogLoader",
    "CatalogSource",
    "StoreCatalogSource",
    "ListeningStats",
    "ProfileStatsSnapshot",
    "SessionState",
]
