"""
Playback session state machine.

    IDLE -> LOADING -> PLAYING <-> PAUSED
                          |
                        ENDED -> LOADING (random next track)

The session owns the only audio stream. Starting a new track stops whatever
is playing first. Play counts are recorded in the background once the
backend confirms the stream started.
"""

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

from beatwave.domain.library.exceptions import TrackNotFoundError
from beatwave.domain.library.models import Track
from beatwave.domain.stats.counters import CounterService
from beatwave.domain.sync.loader import Catalog
from beatwave.domain.sync.session import SessionState

from .audio import AudioBackend, AudioError

WATCH_INTERVAL = 0.5


class PlaybackState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


@dataclass(frozen=True)
class Progress:
    position: float
    duration: Optional[float]

    @property
    def fraction(self) -> float:
        if not self.duration:
            return 0.0
        return max(0.0, min(1.0, self.position / self.duration))


class PlaybackSession:
    """Single-stream player bound to the in-memory catalog."""

    def __init__(
        self,
        catalog: Catalog,
        backend: AudioBackend,
        counters: Optional[CounterService] = None,
        session: Optional[SessionState] = None,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.backend = backend
        self.counters = counters
        self.session = session
        self.rng = rng or random.Random()
        self.state = PlaybackState.IDLE
        self.current_track: Optional[Track] = None
        self._load_generation = 0
        self._pending: set[asyncio.Task] = set()

    def _resolve(self, track_id: str) -> Track:
        track = self.catalog.find(track_id)
        if track is None or not track.is_playable:
            logger.error(f"Cannot play {track_id}: unknown track or no audio")
            raise TrackNotFoundError(track_id)
        return track

    async def play(self, track_id: str) -> Track:
        """Stop the current stream and start ``track_id``.

        Raises:
            TrackNotFoundError: Unknown id or track without audio; state unchanged
            AudioError: The backend could not start the stream
        """
        track = self._resolve(track_id)

        if self.state is not PlaybackState.IDLE:
            await self.backend.pause()
            await self.backend.seek(0)

        self._load_generation += 1
        generation = self._load_generation
        self.state = PlaybackState.LOADING
        self.current_track = track
        logger.info(f"Loading {track.id}: {track.title} by {track.artist}")

        try:
            await self.backend.load(track.audio_url)
        except AudioError:
            if generation == self._load_generation:
                self.state = PlaybackState.IDLE
                self.current_track = None
            logger.exception(f"Failed to start {track.id}")
            raise

        # A later play() superseded this one while the stream was loading
        if generation != self._load_generation:
            return track

        self._started(track)
        return track

    def _started(self, track: Track) -> None:
        self.state = PlaybackState.PLAYING
        if self.session is not None:
            self.session.add_to_history(track)
        if self.counters is not None:
            task = asyncio.create_task(self.counters.record_play(track.id))
            self._pending.add(task)
            task.add_done_callback(self._play_recorded)

    def _play_recorded(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error("Background play count failed")

    async def drain(self) -> None:
        """Wait for background play counts to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def toggle_play(self) -> Optional[Track]:
        """Pause or resume; from idle, start the first track in the catalog."""
        if self.state is PlaybackState.PLAYING:
            await self.backend.pause()
            self.state = PlaybackState.PAUSED
        elif self.state is PlaybackState.PAUSED:
            await self.backend.resume()
            self.state = PlaybackState.PLAYING
        elif self.state is PlaybackState.IDLE and self.catalog.tracks:
            return await self.play(self.catalog.tracks[0].id)
        elif self.state is PlaybackState.ENDED and self.current_track is not None:
            return await self.play(self.current_track.id)
        return self.current_track

    async def stop(self) -> None:
        await self.backend.stop()
        self._load_generation += 1
        self.state = PlaybackState.IDLE
        self.current_track = None

    async def handle_ended(self) -> Optional[Track]:
        """Natural completion: pick a random playable track and start it."""
        self.state = PlaybackState.ENDED
        playable = [t for t in self.catalog.tracks if t.is_playable]
        if not playable:
            logger.info("Playback ended, nothing left to play")
            return None
        next_track = self.rng.choice(playable)
        logger.debug(f"Auto-advancing to {next_track.id}")
        return await self.play(next_track.id)

    async def play_previous(self) -> Optional[Track]:
        """Replay the track before the current one in the history."""
        if self.session is None:
            return None
        previous_id = self.session.previous_track_id()
        if previous_id is None:
            return None
        return await self.play(previous_id)

    async def progress(self) -> Progress:
        if self.state in (PlaybackState.IDLE, PlaybackState.LOADING):
            return Progress(0.0, None)
        return Progress(await self.backend.position(), await self.backend.duration())

    async def seek_fraction(self, fraction: float) -> bool:
        """Seek to a fraction of the track. Ignored without a known duration."""
        if self.state not in (PlaybackState.PLAYING, PlaybackState.PAUSED):
            return False
        duration = await self.backend.duration()
        if not duration or duration <= 0:
            return False
        fraction = max(0.0, min(1.0, fraction))
        await self.backend.seek(fraction * duration)
        return True

    async def seek_to_pointer(self, x: float, left: float, width: float) -> bool:
        """Seek from a pointer position over a progress bar."""
        if width <= 0:
            return False
        return await self.seek_fraction((x - left) / width)

    async def watch(self, interval: float = WATCH_INTERVAL) -> None:
        """Poll the backend and auto-advance when a stream completes."""
        while True:
            await asyncio.sleep(interval)
            if self.state is PlaybackState.PLAYING and await self.backend.finished():
                try:
                    await self.handle_ended()
                except (TrackNotFoundError, AudioError):
                    logger.exception("Auto-advance failed")
