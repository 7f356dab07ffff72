"""Tests for SQLite-backed device storage."""

from beatwave.core.storage import DeviceStorage


class TestDeviceStorage:
    """Tests for DeviceStorage JSON helpers."""

    def test_put_and_get_json(self, storage):
        assert storage.put_json("user", {"username": "alice"})
        assert storage.get_json("user") == {"username": "alice"}

    def test_missing_key_returns_default(self, storage):
        assert storage.get_json("missing") is None
        assert storage.get_json("missing", []) == []

    def test_corrupt_value_returns_default(self, storage):
        storage.put_raw("history", "{not json")
        assert storage.get_json("history", []) == []

    def test_unserializable_value_is_rejected(self, storage):
        assert storage.put_json("bad", {"x": object()}) is False
        assert storage.get_json("bad") is None

    def test_remove(self, storage):
        storage.put_json("k", 1)
        storage.remove("k")
        assert storage.get_json("k") is None

    def test_keys_by_prefix(self, storage):
        storage.put_json("plays:2024-01-01", [])
        storage.put_json("plays:2024-01-02", [])
        storage.put_json("player", 1)
        storage.put_json("plays_", 1)
        assert storage.keys("plays:") == ["plays:2024-01-01", "plays:2024-01-02"]

    def test_file_backed_storage_persists(self, tmp_path):
        path = tmp_path / "device.db"
        DeviceStorage(path).put_json("liked_tracks", ["t1"])
        assert DeviceStorage(path).get_json("liked_tracks") == ["t1"]
