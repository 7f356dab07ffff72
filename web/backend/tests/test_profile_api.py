"""Tests for the profile and follow endpoints."""


class TestProfile:
    """Tests for /api/profile."""

    def test_missing_username(self, client):
        assert client.get("/api/profile").status_code == 400

    def test_default_profile(self, client):
        body = client.get("/api/profile", params={"username": "alice"}).json()
        assert body["sha"] is None
        assert body["profile"]["name"] == "alice"

    def test_save_and_reload(self, client):
        saved = client.post(
            "/api/profile",
            json={"username": "alice", "profile": {"name": "Alice", "avatarLetter": "a"}},
        )
        assert saved.status_code == 200
        sha = saved.json()["sha"]

        body = client.get("/api/profile", params={"username": "alice"}).json()
        assert body["sha"] == sha
        assert body["profile"]["avatarLetter"] == "A"

    def test_stale_sha_is_409(self, client):
        first = client.post(
            "/api/profile",
            json={"username": "alice", "profile": {"name": "A", "avatarLetter": "A"}},
        ).json()["sha"]
        client.post(
            "/api/profile",
            json={"username": "alice", "profile": {"name": "B", "avatarLetter": "B"}, "sha": first},
        )
        stale = client.post(
            "/api/profile",
            json={"username": "alice", "profile": {"name": "C", "avatarLetter": "C"}, "sha": first},
        )
        assert stale.status_code == 409

    def test_save_without_sha_overwrites(self, client):
        for name in ("First", "Second"):
            response = client.post(
                "/api/profile",
                json={"username": "alice", "profile": {"name": name, "avatarLetter": "A"}},
            )
            assert response.status_code == 200
        body = client.get("/api/profile", params={"username": "alice"}).json()
        assert body["profile"]["name"] == "Second"

    def test_invalid_profile_is_400(self, client):
        response = client.post(
            "/api/profile", json={"username": "alice", "profile": {"name": ""}}
        )
        assert response.status_code == 400


class TestFollow:
    """Tests for /api/follow."""

    def test_toggle(self, client, add_user):
        add_user("alice")
        add_user("bob")
        body = {"username": "alice", "followUsername": "bob"}
        assert client.post("/api/follow", json=body).json()["following"] is True
        assert client.post("/api/follow", json=body).json()["following"] is False

    def test_missing_fields(self, client):
        assert client.post("/api/follow", json={"username": "alice"}).status_code == 400

    def test_unknown_user(self, client, add_user):
        add_user("alice")
        response = client.post(
            "/api/follow", json={"username": "alice", "followUsername": "ghost"}
        )
        assert response.status_code == 404

    def test_follow_self(self, client, add_user):
        add_user("alice")
        response = client.post(
            "/api/follow", json={"username": "alice", "followUsername": "alice"}
        )
        assert response.status_code == 400
