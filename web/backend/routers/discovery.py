from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from beatwave.core.config import Config
from beatwave.domain.library.search import search_catalog
from beatwave.domain.library.views import RECOMMENDATION_TYPES, recommendations
from beatwave.domain.profiles import build_artists, list_users
from beatwave.domain.profiles.repository import DEFAULT_ARTIST_LIMIT
from beatwave.domain.store import BlobStore

from ..deps import get_config, get_store, http_error
from ..schemas import ArtistsResponse, SearchResponse
from .tracks import load_catalog

router = APIRouter()


@router.get("/search", response_model=SearchResponse)
def search(
    q: Optional[str] = Query(None),
    store: BlobStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    """Case-insensitive substring search over title, artist, genre and description."""
    if not q or not q.strip():
        raise HTTPException(400, "Missing search query")
    try:
        results = search_catalog(load_catalog(store), q, config.catalog.search_limit)
        return SearchResponse(tracks=[t.to_dict() for t in results])
    except Exception as e:
        raise http_error(e, "Search")


@router.get("/recommendations", response_model=SearchResponse)
def get_recommendations(
    type: str = Query("trending"), store: BlobStore = Depends(get_store)
):
    if type not in RECOMMENDATION_TYPES:
        raise HTTPException(400, f"Unknown recommendation type: {type}")
    try:
        tracks = recommendations(load_catalog(store), type)
        return SearchResponse(tracks=[t.to_dict() for t in tracks])
    except Exception as e:
        raise http_error(e, "Recommendations")


@router.get("/artists", response_model=ArtistsResponse)
def get_artists(
    limit: int = Query(DEFAULT_ARTIST_LIMIT, ge=1, le=100),
    store: BlobStore = Depends(get_store),
):
    """Artist directory sorted by follower count."""
    try:
        artists = build_artists(list_users(store), load_catalog(store), limit)
        return ArtistsResponse(artists=artists)
    except Exception as e:
        raise http_error(e, "Listing artists")
