"""Track documents - listing, creation and optimistic counter updates."""

from .repository import (
    TRACKS_FOLDER,
    create_track,
    get_track,
    list_tracks,
    save_tracks,
    track_path,
    update_track,
)

__all__ = [
    "TRACKS_FOLDER",
    "create_track",
    "get_track",
    "list_tracks",
    "save_tracks",
    "track_path",
    "update_track",
]
