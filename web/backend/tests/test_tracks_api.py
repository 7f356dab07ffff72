"""Tests for the track endpoints."""

from beatwave.domain.store import VersionConflictError


class TestGetTracks:
    """Tests for GET /api/tracks."""

    def test_empty_store(self, client):
        response = client.get("/api/tracks")
        assert response.status_code == 200
        assert response.json() == {"success": True, "tracks": []}

    def test_lists_tracks(self, client, add_track):
        add_track("a", plays=3)
        add_track("b")
        tracks = client.get("/api/tracks").json()["tracks"]
        assert sorted(t["id"] for t in tracks) == ["a", "b"]
        assert next(t for t in tracks if t["id"] == "a")["plays"] == 3


class TestPostTracks:
    """Tests for POST /api/tracks."""

    def test_create_track(self, client, store):
        response = client.post(
            "/api/tracks",
            json={
                "action": "create",
                "track": {"title": "New", "artist": "me", "audioUrl": "https://x/y.mp3"},
            },
        )
        assert response.status_code == 200
        track_id = response.json()["trackId"]
        assert track_id.startswith("track_")
        data, _ = store.read_json(f"tracks/{track_id}.json")
        assert data["plays"] == 0
        assert data["title"] == "New"

    def test_create_requires_fields(self, client):
        response = client.post(
            "/api/tracks", json={"action": "create", "track": {"title": "No audio"}}
        )
        assert response.status_code == 400
        assert "artist" in response.json()["detail"]

    def test_save_collection(self, client, store):
        response = client.post(
            "/api/tracks",
            json={"action": "save", "tracks": [{"id": "a", "title": "A"}, {"id": "b"}]},
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "count": 2}
        assert "tracks/b.json" in store

    def test_save_requires_tracks(self, client):
        assert client.post("/api/tracks", json={"action": "save"}).status_code == 400

    def test_unknown_action(self, client):
        assert client.post("/api/tracks", json={"action": "delete"}).status_code == 422


class TestPlayAndLike:
    """Tests for counter endpoints."""

    def test_play_counted_once_per_user(self, client, add_track):
        add_track("a", plays=5)
        first = client.post("/api/tracks/a/play", json={"username": "alice"}).json()
        second = client.post("/api/tracks/a/play", json={"username": "alice"}).json()
        assert first["plays"] == 6
        assert first["uniquePlayers"] == 1
        assert second["plays"] == 6

    def test_play_unknown_track(self, client):
        response = client.post("/api/tracks/none/play", json={})
        assert response.status_code == 404

    def test_stats(self, client, add_track):
        add_track("a")
        client.post("/api/tracks/a/play", json={"username": "alice"})
        stats = client.get("/api/tracks/a/stats").json()
        assert stats["trackId"] == "a"
        assert stats["uniquePlayers"] == ["alice"]
        assert len(stats["plays"]) == 1

    def test_like_and_unlike(self, client, add_track):
        add_track("a", likes=0)
        assert client.post("/api/tracks/a/like", json={"liked": True}).json()["likes"] == 1
        assert client.post("/api/tracks/a/like", json={"liked": False}).json()["likes"] == 0
        assert client.post("/api/tracks/a/like", json={"liked": False}).json()["likes"] == 0

    def test_like_requires_flag(self, client, add_track):
        add_track("a")
        assert client.post("/api/tracks/a/like", json={}).status_code == 422

    def test_persistent_conflict_is_409(self, client, add_track, store):
        add_track("a")

        def always_conflict(path, content, expected_version=None, message=None):
            raise VersionConflictError(path, expected_version)

        store.write = always_conflict
        assert client.post("/api/tracks/a/like", json={"liked": True}).status_code == 409
