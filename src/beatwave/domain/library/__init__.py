"""Library domain - tracks and the projections built from them."""

from .exceptions import LibraryError, TrackNotFoundError
from .models import (
    Track,
    demo_tracks,
    find_track,
    generate_track_id,
    tracks_from_dicts,
    utc_now_iso,
)
from .search import filter_tracks, search_catalog
from .views import (
    CatalogView,
    CatalogViews,
    build_views,
    calculate_score,
    featured_track,
    liked_tracks,
    ranked_projection,
    recent_tracks,
    recommendations,
    recommended_tracks,
    similar_tracks,
    trending_by_genre,
    trending_tracks,
    uploaded_tracks,
)

__all__ = [
    "LibraryError",
    "TrackNotFoundError",
    "Track",
    "demo_tracks",
    "find_track",
    "generate_track_id",
    "tracks_from_dicts",
    "utc_now_iso",
    "filter_tracks",
    "search_catalog",
    "CatalogView",
    "CatalogViews",
    "build_views",
    "calculate_score",
    "featured_track",
    "liked_tracks",
    "ranked_projection",
    "recent_tracks",
    "recommendations",
    "recommended_tracks",
    "similar_tracks",
    "trending_by_genre",
    "trending_tracks",
    "uploaded_tracks",
]
