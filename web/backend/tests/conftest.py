"""Pytest configuration for backend tests.

Every test gets a fresh in-memory document store and default configuration
in place of the process-wide GitHub store.
"""

import json

import pytest
from fastapi.testclient import TestClient

from beatwave.core.config import Config
from beatwave.domain.store import MemoryBlobStore
from web.backend.deps import get_config, get_store
from web.backend.main import app


@pytest.fixture
def store():
    return MemoryBlobStore()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def client(store, config):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_config] = lambda: config
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def add_track(store):
    """Write a track document and return it."""

    def _add(track_id: str, **fields) -> dict:
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
        store.write(f"tracks/{track_id}.json", json.dumps(doc))
        return doc

    return _add


@pytest.fixture
def add_user(store):
    def _add(username: str, **fields) -> dict:
        doc = {"username": username, "followers": [], "following": [], **fields}
        store.write_json(f"users/{username}.json", doc)
        return doc

    return _add
