from typing import Any, Literal, Optional

from pydantic import BaseModel


class TracksResponse(BaseModel):
    success: bool = True
    tracks: list[dict[str, Any]]


class SaveTracksRequest(BaseModel):
    action: Literal["save", "create"]
    tracks: Optional[list[dict[str, Any]]] = None  # action == "save"
    track: Optional[dict[str, Any]] = None  # action == "create"


class SaveTracksResponse(BaseModel):
    success: bool = True
    count: Optional[int] = None
    trackId: Optional[str] = None


class PlayRequest(BaseModel):
    username: Optional[str] = None


class PlayResponse(BaseModel):
    success: bool = True
    plays: int
    uniquePlayers: int


class LikeRequest(BaseModel):
    username: Optional[str] = None
    liked: bool


class LikeResponse(BaseModel):
    success: bool = True
    likes: int


class ProfileResponse(BaseModel):
    success: bool = True
    profile: dict[str, Any]
    sha: Optional[str] = None


class SaveProfileRequest(BaseModel):
    action: Literal["save"] = "save"
    username: str
    profile: dict[str, Any]
    sha: Optional[str] = None


class FollowRequest(BaseModel):
    username: Optional[str] = None
    followUsername: Optional[str] = None


class FollowResponse(BaseModel):
    success: bool = True
    following: bool


class CommentRequest(BaseModel):
    trackId: Optional[str] = None
    username: Optional[str] = None
    text: Optional[str] = None
    timestamp: Optional[str] = None


class CommentsResponse(BaseModel):
    success: bool = True
    comments: list[dict[str, Any]]


class SearchResponse(BaseModel):
    tracks: list[dict[str, Any]]


class ArtistsResponse(BaseModel):
    artists: list[dict[str, Any]]
