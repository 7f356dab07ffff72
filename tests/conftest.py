"""Shared fixtures for domain tests."""

import json

import pytest

from beatwave.core.storage import DeviceStorage
from beatwave.domain.store import MemoryBlobStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Keep config and data files out of the real home directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO", "GITHUB_BRANCH",
                "BEATWAVE_STORE", "BEATWAVE_API_BASE"):
        monkeypatch.delenv(var, raising=False)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> DeviceStorage:
    return DeviceStorage(":memory:")


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


def track_doc(track_id: str, **fields) -> dict:
    doc = {
        "id": track_id,
        "title": f"Title {track_id}",
        "artist": "artist",
        "genre": "Electronic",
        "audioUrl": f"https://cdn.example.com/{track_id}.mp3",
        "createdAt": "2024-01-01T00:00:00Z",
        "plays": 0,
        "likes": 0,
        "comments": 0,
    }
    doc.update(fields)
    return doc


@pytest.fixture
def seed_track(store):
    """Write a track document into the memory store."""

    def _seed(track_id: str, **fields) -> dict:
        doc = track_doc(track_id, **fields)
        store.write(f"tracks/{track_id}.json", json.dumps(doc))
        return doc

    return _seed


@pytest.fixture
def make_track():
    """Build an in-memory Track with sensible defaults."""
    from beatwave.domain.library.models import Track

    def _make(track_id: str, **fields) -> Track:
        return Track.from_dict(track_doc(track_id, **fields))

    return _make
