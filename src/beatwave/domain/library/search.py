"""Track search over an in-memory collection."""

from typing import Optional

from .models import Track

DEFAULT_SEARCH_LIMIT = 20


def _matches(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def search_catalog(
    tracks: list[Track], query: str, limit: int = DEFAULT_SEARCH_LIMIT
) -> list[Track]:
    """Case-insensitive substring search over title, artist, genre and description.

    Results keep collection order and are capped at ``limit``.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return []
    results = [
        t
        for t in tracks
        if _matches(t.title, needle)
        or _matches(t.artist, needle)
        or _matches(t.genre, needle)
        or _matches(t.description, needle)
    ]
    return results[:limit]


def filter_tracks(
    tracks: list[Track], query: str, genre: Optional[str] = None
) -> list[Track]:
    """Title/artist search with an optional exact genre filter.

    Ranked by where the query appears in the title; tracks matched only by
    artist come last.
    """
    needle = (query or "").strip().lower()
    results = [
        t
        for t in tracks
        if (_matches(t.title, needle) or _matches(t.artist, needle))
        and (not genre or t.genre == genre)
    ]

    def title_position(track: Track) -> float:
        position = (track.title or "").lower().find(needle)
        return position if position >= 0 else float("inf")

    return sorted(results, key=title_position)
