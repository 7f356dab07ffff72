"""
Device-held session state.

Everything here lives in device storage and survives restarts: the signed-in
account, the like set, the play history, the per-day play ledger used to
suppress duplicate play counts, and the profile statistics snapshot.
"""

import time
import uuid
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from loguru import logger

from beatwave.core.storage import DeviceStorage
from beatwave.domain.library.models import Track

from .exceptions import UnauthenticatedError

USER_KEY = "user"
DEVICE_ID_KEY = "device_id"
LIKES_KEY = "liked_tracks"
HISTORY_KEY = "history"
PLAYS_PREFIX = "plays:"
PROFILE_STATS_KEY = "profile_stats"

DEFAULT_HISTORY_LIMIT = 100
DEFAULT_PROFILE_STATS_MAX_AGE = 3600
TOP_ARTISTS = 5


@dataclass
class ProfileStatsSnapshot:
    """Totals shown on the profile page.

    Kept still while tracks play; recomputed on request or once older than
    the configured max age.
    """

    username: str
    tracks: int = 0
    plays: int = 0
    likes: int = 0
    computed_at: float = 0.0

    def age(self, now: float) -> float:
        return now - self.computed_at

    def is_stale(self, now: float, max_age_seconds: float) -> bool:
        return self.age(now) > max_age_seconds

    @classmethod
    def compute(
        cls,
        tracks: list[Track],
        username: str,
        display_name: Optional[str] = None,
        now: Optional[float] = None,
    ) -> "ProfileStatsSnapshot":
        """Sum counters over the tracks uploaded by ``username``."""
        names = {username, display_name} - {None, ""}
        own = [t for t in tracks if t.artist in names]
        return cls(
            username=username,
            tracks=len(own),
            plays=sum(t.plays for t in own),
            likes=sum(t.likes for t in own),
            computed_at=now if now is not None else time.time(),
        )

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ProfileStatsSnapshot"]:
        if not isinstance(data, dict) or not data.get("username"):
            return None
        try:
            return cls(
                username=str(data["username"]),
                tracks=int(data.get("tracks", 0)),
                plays=int(data.get("plays", 0)),
                likes=int(data.get("likes", 0)),
                computed_at=float(data.get("computed_at", 0.0)),
            )
        except (TypeError, ValueError):
            return None


@dataclass
class ListeningStats:
    total_plays: int = 0
    top_artists: list[tuple[str, int]] = field(default_factory=list)
    liked_count: int = 0


class SessionState:
    """Account, likes, history and play suppression for this device."""

    def __init__(
        self,
        storage: DeviceStorage,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], float] = time.time,
        device_id: Optional[str] = None,
    ):
        self.storage = storage
        self.history_limit = history_limit
        self.clock = clock
        self._device_id = device_id

    # Account

    @property
    def current_user(self) -> Optional[str]:
        user = self.storage.get_json(USER_KEY)
        if isinstance(user, dict) and user.get("username"):
            return str(user["username"])
        return None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def login(self, username: str, **profile: Any) -> None:
        username = username.strip()
        if not username:
            raise ValueError("username must not be empty")
        self.storage.put_json(USER_KEY, {"username": username, **profile})
        logger.info(f"Signed in as {username}")

    def logout(self) -> None:
        user = self.current_user
        self.storage.remove(USER_KEY)
        self.storage.remove(PROFILE_STATS_KEY)
        if user:
            logger.info(f"Signed out {user}")

    def require_user(self, action: str = "this action") -> str:
        user = self.current_user
        if user is None:
            raise UnauthenticatedError(action)
        return user

    # Origin

    @property
    def device_id(self) -> str:
        """Best-effort device identifier, generated once and persisted."""
        if self._device_id:
            return self._device_id
        stored = self.storage.get_json(DEVICE_ID_KEY)
        if not isinstance(stored, str) or not stored:
            stored = f"device_{uuid.uuid4().hex}"
            self.storage.put_json(DEVICE_ID_KEY, stored)
        self._device_id = stored
        return stored

    def origin_key(self) -> str:
        """Account id when signed in, else the device id."""
        return self.current_user or self.device_id

    # Likes

    def liked_ids(self) -> set[str]:
        liked = self.storage.get_json(LIKES_KEY, [])
        if not isinstance(liked, list):
            return set()
        return {str(track_id) for track_id in liked}

    def is_liked(self, track_id: str) -> bool:
        return track_id in self.liked_ids()

    def toggle_like(self, track_id: str) -> bool:
        """Flip membership in the like set. Returns the new liked state."""
        liked = self.liked_ids()
        now_liked = track_id not in liked
        if now_liked:
            liked.add(track_id)
        else:
            liked.discard(track_id)
        self.storage.put_json(LIKES_KEY, sorted(liked))
        return now_liked

    # History

    def history(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        """Play history, newest first."""
        entries = self.storage.get_json(HISTORY_KEY, [])
        if not isinstance(entries, list):
            return []
        entries = [e for e in entries if isinstance(e, dict) and e.get("id")]
        return entries[:limit] if limit is not None else entries

    def add_to_history(self, track: Track) -> None:
        now = self.clock()
        entry = {
            "id": track.id,
            "title": track.title,
            "artist": track.artist,
            "genre": track.genre,
            "playedAt": int(now * 1000),
        }
        entries = [entry] + self.history()
        self.storage.put_json(HISTORY_KEY, entries[: self.history_limit])

    def previous_track_id(self) -> Optional[str]:
        """The track played before the current one."""
        entries = self.history(2)
        return entries[1]["id"] if len(entries) >= 2 else None

    def clear_history(self) -> None:
        self.storage.put_json(HISTORY_KEY, [])

    def listening_stats(self) -> ListeningStats:
        entries = self.history()
        artists = Counter(e.get("artist") or "Unknown" for e in entries)
        return ListeningStats(
            total_plays=len(entries),
            top_artists=artists.most_common(TOP_ARTISTS),
            liked_count=len(self.liked_ids()),
        )

    # Play suppression

    def today(self) -> str:
        return datetime.fromtimestamp(self.clock()).date().isoformat()

    def _ledger_key(self, day: str) -> str:
        return f"{PLAYS_PREFIX}{day}"

    @staticmethod
    def suppression_key(track_id: str, origin: str) -> str:
        return f"{track_id}:{origin}"

    def _played_today(self) -> set[str]:
        keys = self.storage.get_json(self._ledger_key(self.today()), [])
        return set(keys) if isinstance(keys, list) else set()

    def has_played_today(self, track_id: str, origin: str) -> bool:
        return self.suppression_key(track_id, origin) in self._played_today()

    def mark_played(self, track_id: str, origin: str) -> bool:
        """Add the play to today's set. Returns False if it was already there."""
        day = self.today()
        played = self._played_today()
        key = self.suppression_key(track_id, origin)
        if key in played:
            return False
        played.add(key)
        self.storage.put_json(self._ledger_key(day), sorted(played))
        # Earlier days can no longer suppress anything
        for old_key in self.storage.keys(PLAYS_PREFIX):
            if old_key != self._ledger_key(day):
                self.storage.remove(old_key)
        return True

    # Profile stats

    def profile_stats(
        self,
        tracks: list[Track],
        max_age_seconds: float = DEFAULT_PROFILE_STATS_MAX_AGE,
        refresh: bool = False,
        display_name: Optional[str] = None,
    ) -> ProfileStatsSnapshot:
        """The stored snapshot, recomputed when missing, stale or ``refresh``."""
        username = self.require_user("profile statistics")
        now = self.clock()
        snapshot = ProfileStatsSnapshot.from_dict(self.storage.get_json(PROFILE_STATS_KEY))
        if (
            refresh
            or snapshot is None
            or snapshot.username != username
            or snapshot.is_stale(now, max_age_seconds)
        ):
            snapshot = self.recompute_profile_stats(tracks, display_name)
        return snapshot

    def recompute_profile_stats(
        self, tracks: list[Track], display_name: Optional[str] = None
    ) -> ProfileStatsSnapshot:
        username = self.require_user("profile statistics")
        snapshot = ProfileStatsSnapshot.compute(
            tracks, username, display_name, now=self.clock()
        )
        self.storage.put_json(PROFILE_STATS_KEY, asdict(snapshot))
        logger.debug(f"Recomputed profile stats for {username}")
        return snapshot
