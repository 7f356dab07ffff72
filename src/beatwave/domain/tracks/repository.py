"""
Track documents in the blob store.

One file per track under ``tracks/``. Listing the catalog costs one request
for the folder plus one per track.
"""

import random
from typing import Any, Callable, Optional

from loguru import logger

from beatwave.domain.library.models import Track, generate_track_id, utc_now_iso
from beatwave.domain.store import (
    ABSENT,
    BlobNotFoundError,
    BlobStore,
    StoreError,
    update_json,
)
from beatwave.domain.store.versioned import DEFAULT_MAX_ATTEMPTS

TRACKS_FOLDER = "tracks"


def track_path(track_id: str) -> str:
    return f"{TRACKS_FOLDER}/{track_id}.json"


def get_track(store: BlobStore, track_id: str) -> Optional[Track]:
    data, _ = store.read_json(track_path(track_id))
    if not isinstance(data, dict):
        return None
    data.setdefault("id", track_id)
    return Track.from_dict(data)


def list_tracks(store: BlobStore) -> list[Track]:
    """Load every track document. Unreadable documents are skipped."""
    tracks = []
    for path in store.list(TRACKS_FOLDER):
        try:
            data, _ = store.read_json(path)
        except StoreError as e:
            logger.warning(f"Skipping unreadable track document {path}: {e}")
            continue
        if isinstance(data, dict) and data.get("id"):
            tracks.append(Track.from_dict(data))
        else:
            logger.warning(f"Skipping track document without id: {path}")
    logger.debug(f"Loaded {len(tracks)} tracks from store")
    return tracks


def save_tracks(store: BlobStore, tracks: list[Track]) -> int:
    """Blind whole-collection save: every track overwrites its document.

    Returns:
        Number of tracks written
    """
    for track in tracks:
        store.write_json(
            track_path(track.id), track.to_dict(), message=f"Save track {track.id}"
        )
    logger.info(f"Saved {len(tracks)} tracks")
    return len(tracks)


def create_track(
    store: BlobStore,
    data: dict[str, Any],
    now_ms: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Track:
    """Store a new track with a generated id and zeroed counters."""
    track_id = data.get("id") or data.get("trackId") or generate_track_id(now_ms, rng)
    fields = {k: v for k, v in data.items() if k != "trackId"}
    fields.update(
        {
            "id": track_id,
            "createdAt": data.get("createdAt") or utc_now_iso(),
            "plays": 0,
            "likes": 0,
            "comments": 0,
        }
    )
    track = Track.from_dict(fields)
    store.write_json(
        track_path(track_id), track.to_dict(), ABSENT, message=f"Add track {track_id}"
    )
    logger.info(f"Created track {track_id}: {track.title}")
    return track


def update_track(
    store: BlobStore,
    track_id: str,
    change: Callable[[Track], Optional[Track]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    message: Optional[str] = None,
) -> Track:
    """Optimistically update one track document.

    Raises:
        BlobNotFoundError: If the track does not exist
        RetriesExhaustedError: If concurrent writers kept winning
    """
    path = track_path(track_id)

    def mutate(data: Any) -> Optional[dict[str, Any]]:
        if not isinstance(data, dict):
            raise BlobNotFoundError(path)
        data.setdefault("id", track_id)
        changed = change(Track.from_dict(data))
        return changed.to_dict() if changed is not None else None

    result = update_json(
        store,
        path,
        mutate,
        default=lambda: None,
        max_attempts=max_attempts,
        message=message or f"Update track stats: {track_id}",
    )
    return Track.from_dict(result.data)
