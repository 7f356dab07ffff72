"""
TTL'd cache in device storage.

Entries are stored as ``{"data": payload, "timestamp": captured_at}``. An
entry is fresh while ``now - captured_at <= ttl``; stale entries are still
returned when the caller asks with ``ignore_expiry=True``.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from loguru import logger

from beatwave.core.storage import DeviceStorage

DEFAULT_TTL_SECONDS = 300
CACHE_PREFIX = "cache:"


@dataclass(frozen=True)
class CacheHit:
    payload: Any
    captured_at: float
    is_fresh: bool


class LocalCache:
    """Key/value cache with a freshness window."""

    def __init__(
        self,
        storage: DeviceStorage,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def _key(self, key: str) -> str:
        return f"{CACHE_PREFIX}{key}"

    def get(self, key: str, ignore_expiry: bool = False) -> Optional[CacheHit]:
        """Return the cached entry, or None on a miss.

        Corrupt entries count as misses.
        """
        entry = self.storage.get_json(self._key(key))
        if not isinstance(entry, dict) or "data" not in entry:
            return None
        captured_at = entry.get("timestamp")
        if isinstance(captured_at, bool) or not isinstance(captured_at, (int, float)):
            logger.warning(f"Cache entry {key} has no usable timestamp")
            return None

        is_fresh = self.clock() - captured_at <= self.ttl_seconds
        if not is_fresh and not ignore_expiry:
            return None
        return CacheHit(payload=entry["data"], captured_at=captured_at, is_fresh=is_fresh)

    def put(self, key: str, payload: Any) -> bool:
        """Store ``payload`` stamped with the current time."""
        return self.storage.put_json(
            self._key(key), {"data": payload, "timestamp": self.clock()}
        )

    def invalidate(self, key: str) -> None:
        self.storage.remove(self._key(key))
