"""
Server-side play counting.

Each track has a ``stats/<trackId>.json`` document with a rolling play log
and the list of distinct players::

    {"trackId": "...", "plays": [{"key", "username", "timestamp"}], "uniquePlayers": [...]}

A play is counted at most once per ``<username>-<YYYY-MM-DD>`` key (UTC day).
Log entries older than the retention window are pruned on every write.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from loguru import logger

from beatwave.domain.library.models import parse_timestamp
from beatwave.domain.store import BlobNotFoundError, BlobStore, StoreError, update_json
from beatwave.domain.store.versioned import DEFAULT_MAX_ATTEMPTS
from beatwave.domain.tracks import get_track, track_path, update_track

STATS_FOLDER = "stats"
ANONYMOUS = "anonymous"
DEFAULT_RETENTION_DAYS = 30


@dataclass
class PlayResult:
    """Outcome of a server-side play registration."""

    counted: bool
    plays: int
    unique_players: int


def stats_path(track_id: str) -> str:
    return f"{STATS_FOLDER}/{track_id}.json"


def empty_stats(track_id: str) -> dict[str, Any]:
    return {"trackId": track_id, "plays": [], "uniquePlayers": []}


def play_key(username: Optional[str], day: str) -> str:
    return f"{username or ANONYMOUS}-{day}"


def prune_plays(
    plays: list[dict[str, Any]], now: datetime, retention_days: int
) -> list[dict[str, Any]]:
    """Keep entries strictly newer than ``now - retention_days``."""
    cutoff = (now - timedelta(days=retention_days)).timestamp()
    return [p for p in plays if parse_timestamp(p.get("timestamp")) > cutoff]


def _normalize_stats(data: Any, track_id: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        return empty_stats(track_id)
    plays = data.get("plays")
    players = data.get("uniquePlayers")
    data["trackId"] = data.get("trackId") or track_id
    data["plays"] = [p for p in plays if isinstance(p, dict)] if isinstance(plays, list) else []
    data["uniquePlayers"] = list(players) if isinstance(players, list) else []
    return data


def get_play_stats(store: BlobStore, track_id: str) -> dict[str, Any]:
    """The play log document for a track, or an empty one."""
    blob = store.read(stats_path(track_id))
    if blob is None:
        return empty_stats(track_id)
    try:
        data = blob.json()
    except StoreError:
        logger.warning(f"Malformed play stats for {track_id}, treating as empty")
        return empty_stats(track_id)
    return _normalize_stats(data, track_id)


def record_play(
    store: BlobStore,
    track_id: str,
    username: Optional[str] = None,
    now: Optional[datetime] = None,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> PlayResult:
    """Register a play, counting it only once per user per day.

    The track counter is bumped before the play key is logged. A failure in
    between leaves the key unlogged, so a retry counts the play again rather
    than dropping it.

    Raises:
        BlobNotFoundError: If the track does not exist
        RetriesExhaustedError: If either document kept conflicting
    """
    track = get_track(store, track_id)
    if track is None:
        raise BlobNotFoundError(track_path(track_id), f"Track not found: {track_id}")

    now = now or datetime.now(timezone.utc)
    key = play_key(username, now.date().isoformat())

    stats = get_play_stats(store, track_id)
    if any(p.get("key") == key for p in stats["plays"]):
        logger.debug(f"Play of {track_id} by {key} already counted")
        return PlayResult(
            counted=False, plays=track.plays, unique_players=len(stats["uniquePlayers"])
        )

    def bump(current):
        current.plays += 1
        return current

    updated = update_track(store, track_id, bump, max_attempts=max_attempts)

    def add_play(data: Any) -> Optional[dict[str, Any]]:
        stats = _normalize_stats(data, track_id)
        # A concurrent request logged the same key after our check
        if any(p.get("key") == key for p in stats["plays"]):
            return None
        stats["plays"].append(
            {
                "key": key,
                "username": username or ANONYMOUS,
                "timestamp": now.isoformat().replace("+00:00", "Z"),
            }
        )
        if username and username not in stats["uniquePlayers"]:
            stats["uniquePlayers"].append(username)
        stats["plays"] = prune_plays(stats["plays"], now, retention_days)
        return stats

    result = update_json(
        store,
        stats_path(track_id),
        add_play,
        default=lambda: empty_stats(track_id),
        max_attempts=max_attempts,
        message=f"Update play stats for {track_id}",
    )
    unique_players = len(_normalize_stats(result.data, track_id)["uniquePlayers"])
    logger.info(f"Counted play of {track_id} ({updated.plays} total)")
    return PlayResult(counted=True, plays=updated.plays, unique_players=unique_players)
