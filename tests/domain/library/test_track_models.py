"""Tests for the Track model and id generation."""

import random
import re

from beatwave.domain.library.models import (
    Track,
    demo_tracks,
    find_track,
    generate_track_id,
    parse_timestamp,
    tracks_from_dicts,
)


class TestTrackFromDict:
    """Tests for parsing stored track documents."""

    def test_camel_case_document(self):
        track = Track.from_dict(
            {
                "id": "t1",
                "title": "Song",
                "artist": "alice",
                "audioUrl": "https://x/a.mp3",
                "coverUrl": "https://x/a.jpg",
                "createdAt": "2024-05-01T10:00:00Z",
                "plays": 5,
            }
        )
        assert track.audio_url == "https://x/a.mp3"
        assert track.cover_url == "https://x/a.jpg"
        assert track.plays == 5
        assert track.likes == 0

    def test_snake_case_document(self):
        track = Track.from_dict({"id": "t1", "audio_url": "u", "created_at": "2024-01-01"})
        assert track.audio_url == "u"
        assert track.created_at == "2024-01-01"

    def test_counters_are_non_negative_ints(self):
        track = Track.from_dict({"id": "t1", "plays": -3, "likes": "7", "comments": None})
        assert (track.plays, track.likes, track.comments) == (0, 7, 0)

    def test_unknown_keys_survive_round_trip(self):
        data = {"id": "t1", "title": "Song", "fileSize": 1234, "uploader": {"name": "a"}}
        out = Track.from_dict(data).to_dict()
        assert out["fileSize"] == 1234
        assert out["uploader"] == {"name": "a"}

    def test_to_dict_uses_stored_keys(self):
        out = Track(id="t1", audio_url="u").to_dict()
        assert out["audioUrl"] == "u"
        assert "audio_url" not in out
        assert "coverUrl" not in out

    def test_missing_title_and_artist_defaults(self):
        track = Track.from_dict({"id": "t1", "title": "", "artist": None})
        assert track.title == "Untitled"
        assert track.artist == "Unknown"

    def test_non_string_text_fields_are_coerced(self):
        track = Track.from_dict(
            {"id": "t1", "title": 1999, "artist": 42, "genre": 7, "description": 3.5}
        )
        assert track.title == "1999"
        assert track.artist == "42"
        assert track.genre == "7"
        assert track.description == "3.5"
        assert track.to_dict()["title"] == "1999"


class TestHelpers:
    """Tests for module helpers."""

    def test_generate_track_id_format(self):
        track_id = generate_track_id(now_ms=1700000000000, rng=random.Random(1))
        assert re.fullmatch(r"track_1700000000000_[0-9a-z]{9}", track_id)

    def test_generated_ids_differ(self):
        rng = random.Random(7)
        assert generate_track_id(1, rng) != generate_track_id(1, rng)

    def test_parse_timestamp(self):
        assert parse_timestamp("1970-01-01T00:01:00Z") == 60.0
        assert parse_timestamp(None) == 0.0
        assert parse_timestamp("yesterday") == 0.0

    def test_tracks_from_dicts_skips_invalid(self):
        tracks = tracks_from_dicts([{"id": "a"}, {"title": "no id"}, "junk", {"id": "b"}])
        assert [t.id for t in tracks] == ["a", "b"]
        assert tracks_from_dicts({"not": "a list"}) == []

    def test_find_track(self, make_track):
        tracks = [make_track("a"), make_track("b")]
        assert find_track(tracks, "b").id == "b"
        assert find_track(tracks, "c") is None

    def test_demo_tracks(self):
        tracks = demo_tracks()
        assert [t.id for t in tracks] == ["demo_1", "demo_2"]
        assert all(t.is_playable for t in tracks)
