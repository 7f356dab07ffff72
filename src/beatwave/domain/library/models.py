"""
Music library domain models.

Tracks are stored remotely as camelCase JSON documents (``tracks/<id>.json``).
Keys this model does not know about are carried in ``extra`` so a
read-modify-write never drops fields written by other clients.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

TRACK_ID_SUFFIX_LENGTH = 9
_BASE36 = string.digits + string.ascii_lowercase

# (stored key, attribute name)
_FIELD_KEYS = [
    ("id", "id"),
    ("title", "title"),
    ("artist", "artist"),
    ("genre", "genre"),
    ("audioUrl", "audio_url"),
    ("coverUrl", "cover_url"),
    ("description", "description"),
    ("createdAt", "created_at"),
    ("plays", "plays"),
    ("likes", "likes"),
    ("comments", "comments"),
    ("verified", "verified"),
]
_KNOWN_KEYS = {stored for stored, _ in _FIELD_KEYS} | {
    attr for _, attr in _FIELD_KEYS
}


def _count(value: Any) -> int:
    """Coerce a stored counter to a non-negative int."""
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _text(value: Any, default: Optional[str] = None) -> Optional[str]:
    """Stored text field as a string; empty or missing gives ``default``."""
    if value is None or value == "":
        return default
    return str(value)


@dataclass
class Track:
    """A shared track and its public counters."""

    id: str
    title: str = "Untitled"
    artist: str = "Unknown"
    genre: str = ""
    audio_url: Optional[str] = None
    cover_url: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None  # ISO-8601
    plays: int = 0
    likes: int = 0
    comments: int = 0
    verified: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        """Build a Track from a stored document (camelCase or snake_case keys)."""

        def pick(stored: str, attr: str, default: Any = None) -> Any:
            if stored in data:
                return data[stored]
            return data.get(attr, default)

        return cls(
            id=str(data["id"]),
            title=_text(pick("title", "title"), "Untitled"),
            artist=_text(pick("artist", "artist"), "Unknown"),
            genre=_text(pick("genre", "genre"), ""),
            audio_url=_text(pick("audioUrl", "audio_url")),
            cover_url=_text(pick("coverUrl", "cover_url")),
            description=_text(pick("description", "description")),
            created_at=pick("createdAt", "created_at"),
            plays=_count(pick("plays", "plays")),
            likes=_count(pick("likes", "likes")),
            comments=_count(pick("comments", "comments")),
            verified=bool(pick("verified", "verified", False)),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored camelCase document."""
        data = dict(self.extra)
        for stored, attr in _FIELD_KEYS:
            value = getattr(self, attr)
            if value is None and stored in ("coverUrl", "description", "createdAt"):
                continue
            data[stored] = value
        return data

    @property
    def created_timestamp(self) -> float:
        """Creation time as epoch seconds; 0 when missing or unparseable."""
        return parse_timestamp(self.created_at)

    @property
    def is_playable(self) -> bool:
        return bool(self.audio_url)


def parse_timestamp(value: Optional[str]) -> float:
    if not value:
        return 0.0
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def generate_track_id(
    now_ms: Optional[int] = None, rng: Optional[random.Random] = None
) -> str:
    """Generate a collision-resistant track id without coordination.

    Format: ``track_<epoch-ms>_<9 base36 chars>``.
    """
    rng = rng or random.Random()
    ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(rng.choice(_BASE36) for _ in range(TRACK_ID_SUFFIX_LENGTH))
    return f"track_{ms}_{suffix}"


def tracks_from_dicts(items: Any) -> list[Track]:
    """Parse a list of stored documents, skipping entries without an id."""
    if not isinstance(items, list):
        return []
    tracks = []
    for item in items:
        if isinstance(item, dict) and item.get("id"):
            tracks.append(Track.from_dict(item))
    return tracks


def find_track(tracks: list[Track], track_id: str) -> Optional[Track]:
    for track in tracks:
        if track.id == track_id:
            return track
    return None


DEMO_TRACKS: list[dict[str, Any]] = [
    {
        "id": "demo_1",
        "title": "Sample Track 1",
        "artist": "Demo Artist",
        "genre": "Electronic",
        "audioUrl": "https://www.soundhelix.com/examples/mp3/SoundHelix-Song-1.mp3",
        "plays": 100,
        "likes": 20,
        "comments": 5,
        "verified": True,
    },
    {
        "id": "demo_2",
        "title": "Sample Track 2",
        "artist": "Demo Artist 2",
        "genre": "Hip Hop",
        "audioUrl": "https://www.soundhelix.com/examples/mp3/SoundHelix-Song-2.mp3",
        "plays": 80,
        "likes": 15,
        "comments": 3,
    },
]


def demo_tracks() -> list[Track]:
    """Fixed dataset shown when neither the API nor any cache is available."""
    return tracks_from_dicts(DEMO_TRACKS)
