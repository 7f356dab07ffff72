"""Server-side like counter."""

from loguru import logger

from beatwave.domain.store import BlobStore
from beatwave.domain.store.versioned import DEFAULT_MAX_ATTEMPTS
from beatwave.domain.tracks import update_track


def adjust_likes(likes: int, liked: bool) -> int:
    """Increment or decrement a like counter, never going below zero."""
    return likes + 1 if liked else max(0, likes - 1)


def apply_like(
    store: BlobStore,
    track_id: str,
    liked: bool,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> int:
    """Apply a like or unlike to the stored counter.

    Returns:
        The stored like count after the update
    """

    def change(track):
        track.likes = adjust_likes(track.likes, liked)
        return track

    updated = update_track(
        store,
        track_id,
        change,
        max_attempts=max_attempts,
        message=f"{'Like' if liked else 'Unlike'} track {track_id}",
    )
    logger.info(f"Track {track_id} likes -> {updated.likes}")
    return updated.likes
