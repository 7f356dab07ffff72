"""Play and like counters - server-side documents and client reconciliation."""

from .counters import (
    ApiCounterBackend,
    CounterBackend,
    CounterService,
    LikeReport,
    PlayOutcome,
    PlayReport,
    StoreCounterBackend,
)
from .likes import adjust_likes, apply_like
from .plays import PlayResult, get_play_stats, record_play, stats_path

__all__ = [
    "ApiCounterBackend",
    "CounterBackend",
    "CounterService",
    "LikeReport",
    "PlayOutcome",
    "PlayReport",
    "StoreCounterBackend",
    "adjust_likes",
    "apply_like",
    "PlayResult",
    "get_play_stats",
    "record_play",
    "stats_path",
]
