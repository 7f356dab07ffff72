"""
Client-side counter reconciliation.

Play and like events update the in-memory catalog immediately, then persist
through a backend. A failed remote write is reported to the caller but the
local change stays; the next catalog refresh brings the server's numbers back.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from loguru import logger

from beatwave.domain.library.exceptions import TrackNotFoundError
from beatwave.domain.store import BlobStore, StoreError
from beatwave.domain.store.versioned import DEFAULT_MAX_ATTEMPTS
from beatwave.domain.sync.api import BeatWaveApi
from beatwave.domain.sync.exceptions import (
    ApiError,
    RemoteWriteError,
    UnauthenticatedError,
)
from beatwave.domain.sync.loader import Catalog, CatalogLoader
from beatwave.domain.sync.session import SessionState

from . import likes as server_likes
from . import plays as server_plays


class PlayOutcome(Enum):
    COUNTED = "counted"
    ALREADY_COUNTED = "already_counted"


@dataclass
class PlayReport:
    outcome: PlayOutcome
    plays: int
    persisted: bool = False
    error: Optional[Exception] = None


@dataclass
class LikeReport:
    liked: bool
    likes: int
    persisted: bool = False
    error: Optional[Exception] = None


class CounterBackend(ABC):
    """Where counter mutations are persisted."""

    @abstractmethod
    async def record_play(self, track_id: str, origin: str) -> int:
        """Persist a play. Returns the stored play count."""

    @abstractmethod
    async def set_like(self, track_id: str, username: str, liked: bool) -> int:
        """Persist a like or unlike. Returns the stored like count."""


class StoreCounterBackend(CounterBackend):
    """Writes counters directly to the blob store."""

    def __init__(
        self,
        store: BlobStore,
        retention_days: int = server_plays.DEFAULT_RETENTION_DAYS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self.store = store
        self.retention_days = retention_days
        self.max_attempts = max_attempts

    async def record_play(self, track_id: str, origin: str) -> int:
        try:
            result = await asyncio.to_thread(
                server_plays.record_play,
                self.store,
                track_id,
                origin,
                None,
                self.retention_days,
                self.max_attempts,
            )
        except StoreError as e:
            raise RemoteWriteError(f"Could not record play of {track_id}: {e}") from e
        return result.plays

    async def set_like(self, track_id: str, username: str, liked: bool) -> int:
        try:
            return await asyncio.to_thread(
                server_likes.apply_like, self.store, track_id, liked, self.max_attempts
            )
        except StoreError as e:
            raise RemoteWriteError(f"Could not update likes of {track_id}: {e}") from e


def _stored_count(data: Any, field: str) -> int:
    """Counter from a server reply.

    Raises:
        RemoteWriteError: If the reply does not carry a usable count
    """
    try:
        return int(data[field])
    except (KeyError, TypeError, ValueError) as e:
        raise RemoteWriteError(f"Malformed {field} count in reply: {data!r}") from e


class ApiCounterBackend(CounterBackend):
    """Sends counter mutations to the BeatWave API."""

    def __init__(self, api: BeatWaveApi):
        self.api = api

    async def record_play(self, track_id: str, origin: str) -> int:
        data = await asyncio.to_thread(self.api.record_play, track_id, origin)
        return _stored_count(data, "plays")

    async def set_like(self, track_id: str, username: str, liked: bool) -> int:
        data = await asyncio.to_thread(self.api.set_like, track_id, username, liked)
        return _stored_count(data, "likes")


class CounterService:
    """Applies play and like events to the catalog and the backend."""

    def __init__(
        self,
        catalog: Catalog,
        session: SessionState,
        backend: CounterBackend,
        loader: Optional[CatalogLoader] = None,
    ):
        self.catalog = catalog
        self.session = session
        self.backend = backend
        self.loader = loader

    def _track(self, track_id: str):
        track = self.catalog.find(track_id)
        if track is None:
            raise TrackNotFoundError(track_id)
        return track

    def _write_through(self) -> None:
        if self.loader is not None:
            self.loader.write_through(self.catalog)

    async def record_play(
        self, track_id: str, origin_key: Optional[str] = None
    ) -> PlayReport:
        """Count a play at most once per origin per day.

        Raises:
            TrackNotFoundError: If the track is not in the catalog
        """
        track = self._track(track_id)
        origin = origin_key or self.session.origin_key()

        if not self.session.mark_played(track_id, origin):
            logger.debug(f"Play of {track_id} by {origin} already counted today")
            return PlayReport(PlayOutcome.ALREADY_COUNTED, track.plays, persisted=True)

        track.plays += 1
        self._write_through()

        try:
            stored = await self.backend.record_play(track_id, origin)
        except (ApiError, StoreError) as e:
            logger.warning(f"Play of {track_id} not persisted: {e}")
            return PlayReport(PlayOutcome.COUNTED, track.plays, persisted=False, error=e)

        track.plays = max(0, stored)
        self._write_through()
        return PlayReport(PlayOutcome.COUNTED, track.plays, persisted=True)

    async def toggle_like(
        self, track_id: str, account_id: Optional[str] = None
    ) -> LikeReport:
        """Flip the like for the signed-in account.

        Raises:
            UnauthenticatedError: If nobody is signed in, or ``account_id``
                names a different account
            TrackNotFoundError: If the track is not in the catalog
        """
        username = self.session.require_user("liking tracks")
        if account_id is not None and account_id != username:
            raise UnauthenticatedError(f"liking tracks as {account_id}")
        track = self._track(track_id)

        liked = self.session.toggle_like(track_id)
        track.likes = server_likes.adjust_likes(track.likes, liked)
        self._write_through()

        try:
            stored = await self.backend.set_like(track_id, username, liked)
        except (ApiError, StoreError) as e:
            logger.warning(f"Like of {track_id} not persisted: {e}")
            return LikeReport(liked, track.likes, persisted=False, error=e)

        track.likes = max(0, stored)
        self._write_through()
        return LikeReport(liked, track.likes, persisted=True)
