"""
Catalog projections for the home page.

Every view is computed independently from the in-memory track list; nothing
here performs I/O. Randomized views take an explicit ``random.Random`` so a
seeded source gives repeatable output.
"""

import random
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .models import Track

EMPTY_PLACEHOLDER = "No tracks"

DEFAULT_RECENT_LIMIT = 10
DEFAULT_RECOMMENDED_LIMIT = 8
DEFAULT_UPLOADED_LIMIT = 8
DEFAULT_TRENDING_LIMIT = 20

# Score weights
PLAYS_WEIGHT = 0.4
LIKES_WEIGHT = 0.3
RECENCY_WEIGHT = 0.2
COMMENTS_WEIGHT = 0.1
RECENCY_WINDOW_DAYS = 10


@dataclass(frozen=True)
class CatalogView:
    """A named, ordered slice of the catalog."""

    name: str
    tracks: list[Track] = field(default_factory=list)
    placeholder: str = EMPTY_PLACEHOLDER

    @property
    def is_empty(self) -> bool:
        return not self.tracks

    def track_ids(self) -> list[str]:
        return [track.id for track in self.tracks]


@dataclass(frozen=True)
class CatalogViews:
    """All home page projections."""

    featured: CatalogView
    recent: CatalogView
    recommended: CatalogView
    uploaded: CatalogView
    trending: CatalogView

    def sections(self) -> list[CatalogView]:
        """Sections in render priority order."""
        return [self.featured, self.recent, self.recommended, self.uploaded, self.trending]


def ranked_projection(
    tracks: list[Track],
    key: Callable[[Track], float],
    limit: int,
    descending: bool = True,
) -> list[Track]:
    """Sort a copy of ``tracks`` by ``key`` and keep the first ``limit``.

    Python's sort is stable (also with ``reverse=True``), so equal keys keep
    their original collection order.
    """
    if limit <= 0:
        return []
    return sorted(tracks, key=key, reverse=descending)[:limit]


def by_plays(track: Track) -> float:
    return track.plays


def by_created(track: Track) -> float:
    return track.created_timestamp


def featured_track(tracks: list[Track]) -> Optional[Track]:
    """The most played track; the earliest one wins ties."""
    if not tracks:
        return None
    return max(tracks, key=by_plays)


def recent_tracks(tracks: list[Track], limit: int = DEFAULT_RECENT_LIMIT) -> list[Track]:
    return ranked_projection(tracks, by_created, limit)


def uploaded_tracks(
    tracks: list[Track], limit: int = DEFAULT_UPLOADED_LIMIT
) -> list[Track]:
    return ranked_projection(tracks, by_created, limit)


def trending_tracks(
    tracks: list[Track], limit: int = DEFAULT_TRENDING_LIMIT
) -> list[Track]:
    return ranked_projection(tracks, by_plays, limit)


def recommended_tracks(
    tracks: list[Track],
    limit: int = DEFAULT_RECOMMENDED_LIMIT,
    rng: Optional[random.Random] = None,
) -> list[Track]:
    """Uniformly shuffled sample without repeats."""
    rng = rng or random.Random()
    shuffled = list(tracks)
    rng.shuffle(shuffled)
    return shuffled[: max(0, limit)]


def build_views(
    tracks: list[Track],
    rng: Optional[random.Random] = None,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
    recommended_limit: int = DEFAULT_RECOMMENDED_LIMIT,
    uploaded_limit: int = DEFAULT_UPLOADED_LIMIT,
    trending_limit: int = DEFAULT_TRENDING_LIMIT,
) -> CatalogViews:
    """Compute every home page view from the current collection."""
    featured = featured_track(tracks)
    return CatalogViews(
        featured=CatalogView("featured", [featured] if featured else []),
        recent=CatalogView("recent", recent_tracks(tracks, recent_limit)),
        recommended=CatalogView(
            "recommended", recommended_tracks(tracks, recommended_limit, rng)
        ),
        uploaded=CatalogView("uploaded", uploaded_tracks(tracks, uploaded_limit)),
        trending=CatalogView("trending", trending_tracks(tracks, trending_limit)),
    )


def calculate_score(track: Track, now: Optional[float] = None) -> float:
    """Weighted popularity score.

    plays 40%, likes 30%, recency 20% (linear decay over 10 days),
    comments 10%.
    """
    now = now if now is not None else time.time()
    days_since_created = (now - track.created_timestamp) / 86400
    recency = max(0.0, RECENCY_WINDOW_DAYS - days_since_created)
    return (
        track.plays * PLAYS_WEIGHT
        + track.likes * LIKES_WEIGHT
        + recency * RECENCY_WEIGHT
        + track.comments * COMMENTS_WEIGHT
    )


def similar_tracks(
    genre: str, tracks: list[Track], limit: int = 5, now: Optional[float] = None
) -> list[Track]:
    """Best-scoring tracks of the same genre."""
    same_genre = [t for t in tracks if t.genre == genre]
    return ranked_projection(same_genre, lambda t: calculate_score(t, now), limit)


def trending_by_genre(genre: str, tracks: list[Track], limit: int = 10) -> list[Track]:
    same_genre = [t for t in tracks if t.genre == genre]
    return ranked_projection(same_genre, by_plays, limit)


def liked_tracks(tracks: list[Track], liked_ids: set[str]) -> list[Track]:
    return [t for t in tracks if t.id in liked_ids]


RECOMMENDATION_TYPES = ("trending", "new", "foryou")
RECOMMENDATION_LIMIT = 20
FOR_YOU_SLICE = 10
FOR_YOU_MIN_LIKES = 5


def recommendations(tracks: list[Track], kind: str = "trending") -> list[Track]:
    """Server-side recommendation lists.

    ``foryou`` mixes the top played, newest and well-liked tracks, keeping the
    first occurrence of each id.
    """
    if kind == "trending":
        return trending_tracks(tracks, RECOMMENDATION_LIMIT)
    if kind == "new":
        return recent_tracks(tracks, RECOMMENDATION_LIMIT)
    if kind == "foryou":
        well_liked = [t for t in tracks if t.likes > FOR_YOU_MIN_LIKES]
        mixed = (
            trending_tracks(tracks, FOR_YOU_SLICE)
            + recent_tracks(tracks, FOR_YOU_SLICE)
            + ranked_projection(well_liked, lambda t: t.likes, FOR_YOU_SLICE)
        )
        seen: set[str] = set()
        unique = []
        for track in mixed:
            if track.id not in seen:
                seen.add(track.id)
                unique.append(track)
        return unique[:RECOMMENDATION_LIMIT]
    raise ValueError(f"Unknown recommendation type: {kind}")
