"""Per-track comment threads stored as ``comments/<trackId>.json``."""

import random
import time
from typing import Any, Optional

from loguru import logger

from beatwave.domain.library.models import utc_now_iso
from beatwave.domain.store import BlobNotFoundError, BlobStore, StoreError, update_json
from beatwave.domain.store.versioned import DEFAULT_MAX_ATTEMPTS
from beatwave.domain.tracks import update_track

COMMENTS_FOLDER = "comments"
MAX_COMMENT_LENGTH = 1000


def comments_path(track_id: str) -> str:
    return f"{COMMENTS_FOLDER}/{track_id}.json"


def _comment_list(data: Any) -> list[dict[str, Any]]:
    comments = data.get("comments") if isinstance(data, dict) else None
    return [c for c in comments if isinstance(c, dict)] if isinstance(comments, list) else []


def list_comments(store: BlobStore, track_id: str) -> list[dict[str, Any]]:
    data, _ = store.read_json(comments_path(track_id))
    return _comment_list(data)


def new_comment(
    username: str,
    text: str,
    timestamp: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> dict[str, Any]:
    rng = rng or random.Random()
    return {
        "id": f"{int(time.time() * 1000)}-{rng.random()}",
        "username": username,
        "text": text,
        "timestamp": timestamp or utc_now_iso(),
        "likes": 0,
    }


def add_comment(
    store: BlobStore,
    track_id: str,
    username: str,
    text: str,
    timestamp: Optional[str] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> list[dict[str, Any]]:
    """Append a comment and return the whole thread.

    Raises:
        ValueError: If username or text is empty
    """
    text = (text or "").strip()
    if not username or not text:
        raise ValueError("username and text are required")
    comment = new_comment(username, text[:MAX_COMMENT_LENGTH], timestamp)

    def append(data: Any) -> dict[str, Any]:
        comments = _comment_list(data)
        comments.append(comment)
        return {"comments": comments}

    result = update_json(
        store,
        comments_path(track_id),
        append,
        default=lambda: {"comments": []},
        max_attempts=max_attempts,
        message=f"Update comments for track {track_id}",
    )
    comments = result.data["comments"]

    def set_count(track):
        track.comments = len(comments)
        return track

    try:
        update_track(store, track_id, set_count, max_attempts=max_attempts)
    except BlobNotFoundError:
        logger.debug(f"Comment on {track_id} without a track document")
    except StoreError as e:
        logger.warning(f"Comment count of {track_id} not updated: {e}")

    return comments
