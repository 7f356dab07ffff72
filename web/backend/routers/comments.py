from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from beatwave.core.config import Config
from beatwave.domain.comments import add_comment, list_comments
from beatwave.domain.store import BlobStore

from ..deps import get_config, get_store, http_error
from ..schemas import CommentRequest, CommentsResponse

router = APIRouter()


@router.get("/comments")
def get_comments(
    trackId: Optional[str] = Query(None), store: BlobStore = Depends(get_store)
):
    if not trackId:
        raise HTTPException(400, "Missing trackId")
    try:
        return {"comments": list_comments(store, trackId)}
    except Exception as e:
        raise http_error(e, f"Loading comments of {trackId}")


@router.post("/comments", status_code=201, response_model=CommentsResponse)
def post_comment(
    request: CommentRequest,
    store: BlobStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    if not request.trackId or not request.username or not request.text:
        raise HTTPException(400, "Missing required fields")
    try:
        comments = add_comment(
            store,
            request.trackId,
            request.username,
            request.text,
            timestamp=request.timestamp,
            max_attempts=config.store.max_write_attempts,
        )
        return CommentsResponse(comments=comments)
    except Exception as e:
        raise http_error(e, f"Adding comment to {request.trackId}")
