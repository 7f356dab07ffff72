"""Library exceptions for error handling."""

from typing import Optional


class LibraryError(Exception):
    """Base exception for library operations."""

    pass


class TrackNotFoundError(LibraryError):
    """Raised when a track id is unknown or the track has no audio."""

    def __init__(self, track_id: str, message: Optional[str] = None):
        self.track_id = track_id
        super().__init__(message or f"Track not found: {track_id}")
