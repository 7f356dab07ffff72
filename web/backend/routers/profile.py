from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from beatwave.core.config import Config
from beatwave.domain.profiles import load_profile, save_profile, toggle_follow
from beatwave.domain.store import BlobStore

from ..deps import get_config, get_store, http_error
from ..schemas import FollowRequest, FollowResponse, ProfileResponse, SaveProfileRequest

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    username: Optional[str] = Query(None), store: BlobStore = Depends(get_store)
):
    """Stored profile with its sha; a default profile when none was saved."""
    if not username:
        raise HTTPException(400, "Missing username")
    try:
        profile, sha = load_profile(store, username)
        return ProfileResponse(profile=profile, sha=sha)
    except Exception as e:
        raise http_error(e, f"Loading profile of {username}")


@router.post("/profile", response_model=ProfileResponse)
def post_profile(request: SaveProfileRequest, store: BlobStore = Depends(get_store)):
    """Save a profile; a stale sha is rejected with 409."""
    try:
        profile, sha = save_profile(store, request.username, request.profile, request.sha)
        return ProfileResponse(profile=profile, sha=sha)
    except Exception as e:
        raise http_error(e, f"Saving profile of {request.username}")


@router.post("/follow", response_model=FollowResponse)
def post_follow(
    request: FollowRequest,
    store: BlobStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    if not request.username or not request.followUsername:
        raise HTTPException(400, "Missing required fields")
    try:
        following = toggle_follow(
            store,
            request.username,
            request.followUsername,
            max_attempts=config.store.max_write_attempts,
        )
        return FollowResponse(following=following)
    except Exception as e:
        raise http_error(e, f"Following {request.followUsername}")
