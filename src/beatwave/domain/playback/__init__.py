"""Playback domain - audio backends and the playback session."""

from .audio import (
    AudioBackend,
    AudioError,
    MpvAudioBackend,
    SilentAudioBackend,
    check_mpv_available,
)
from .session import PlaybackSession, PlaybackState, Progress

__all__ = [
    "AudioBackend",
    "AudioError",
    "MpvAudioBackend",
    "SilentAudioBackend",
    "check_mpv_available",
    "PlaybackSession",
    "PlaybackState",
    "Progress",
]
