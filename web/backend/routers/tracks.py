from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from beatwave.core.config import Config
from beatwave.domain.library.models import Track, tracks_from_dicts
from beatwave.domain.stats import apply_like, get_play_stats, record_play
from beatwave.domain.store import BlobStore
from beatwave.domain.tracks import create_track, list_tracks, save_tracks

from ..deps import get_config, get_store, http_error
from ..schemas import (
    LikeRequest,
    LikeResponse,
    PlayRequest,
    PlayResponse,
    SaveTracksRequest,
    SaveTracksResponse,
    TracksResponse,
)

router = APIRouter()

REQUIRED_TRACK_FIELDS = ("title", "artist", "audioUrl")


def load_catalog(store: BlobStore) -> list[Track]:
    """All tracks in the store; shared by the discovery endpoints."""
    return list_tracks(store)


@router.get("/tracks", response_model=TracksResponse)
def get_tracks(store: BlobStore = Depends(get_store)):
    try:
        tracks = load_catalog(store)
        return TracksResponse(tracks=[t.to_dict() for t in tracks])
    except Exception as e:
        raise http_error(e, "Fetching tracks")


@router.post("/tracks", response_model=SaveTracksResponse, response_model_exclude_none=True)
def post_tracks(request: SaveTracksRequest, store: BlobStore = Depends(get_store)):
    """Blind whole-collection save, or creation of a single track."""
    try:
        if request.action == "save":
            if request.tracks is None:
                raise HTTPException(400, "Missing tracks")
            count = save_tracks(store, tracks_from_dicts(request.tracks))
            return SaveTracksResponse(count=count)

        track_data: dict[str, Any] = request.track or {}
        missing = [f for f in REQUIRED_TRACK_FIELDS if not track_data.get(f)]
        if missing:
            raise HTTPException(400, f"Missing required fields: {', '.join(missing)}")
        track = create_track(store, track_data)
        return SaveTracksResponse(trackId=track.id)
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "Saving tracks")


@router.post("/tracks/{track_id}/play", response_model=PlayResponse)
def post_play(
    track_id: str,
    request: PlayRequest,
    store: BlobStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    try:
        result = record_play(
            store,
            track_id,
            request.username,
            retention_days=config.stats.play_log_retention_days,
            max_attempts=config.store.max_write_attempts,
        )
        return PlayResponse(plays=result.plays, uniquePlayers=result.unique_players)
    except Exception as e:
        raise http_error(e, f"Recording play of {track_id}")


@router.post("/tracks/{track_id}/like", response_model=LikeResponse)
def post_like(
    track_id: str,
    request: LikeRequest,
    store: BlobStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    try:
        likes = apply_like(
            store, track_id, request.liked, max_attempts=config.store.max_write_attempts
        )
        logger.debug(f"{request.username or 'anonymous'} liked={request.liked} {track_id}")
        return LikeResponse(likes=likes)
    except Exception as e:
        raise http_error(e, f"Updating likes of {track_id}")


@router.get("/tracks/{track_id}/stats")
def get_stats(track_id: str, store: BlobStore = Depends(get_store)):
    try:
        return get_play_stats(store, track_id)
    except Exception as e:
        raise http_error(e, f"Fetching stats of {track_id}")
