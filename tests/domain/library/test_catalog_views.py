"""Tests for the home page projections."""

import random

import pytest

from beatwave.domain.library.views import (
    EMPTY_PLACEHOLDER,
    build_views,
    calculate_score,
    featured_track,
    ranked_projection,
    recent_tracks,
    recommendations,
    recommended_tracks,
    similar_tracks,
    trending_by_genre,
    trending_tracks,
    uploaded_tracks,
)


@pytest.fixture
def catalog(make_track):
    return [
        make_track(f"t{i}", plays=(i * 7) % 13, createdAt=f"2024-01-{i + 1:02d}T00:00:00Z")
        for i in range(25)
    ]


class TestFeaturedAndTrending:
    """Tests for play-count based views."""

    def test_two_track_example(self, make_track):
        tracks = [make_track("t1", plays=10), make_track("t2", plays=50)]
        assert featured_track(tracks).id == "t2"
        assert [t.id for t in trending_tracks(tracks)] == ["t2", "t1"]

    def test_featured_tie_keeps_first(self, make_track):
        tracks = [make_track("a", plays=5), make_track("b", plays=5)]
        assert featured_track(tracks).id == "a"

    def test_featured_empty(self):
        assert featured_track([]) is None

    def test_trending_capped_and_sorted(self, catalog):
        trending = trending_tracks(catalog)
        assert len(trending) == 20
        plays = [t.plays for t in trending]
        assert plays == sorted(plays, reverse=True)

    def test_ranked_projection_stable_on_ties(self, make_track):
        tracks = [make_track("a", plays=1), make_track("b", plays=2), make_track("c", plays=1)]
        result = ranked_projection(tracks, lambda t: t.plays, 3)
        assert [t.id for t in result] == ["b", "a", "c"]

    def test_ranked_projection_does_not_mutate(self, make_track):
        tracks = [make_track("a", plays=1), make_track("b", plays=2)]
        ranked_projection(tracks, lambda t: t.plays, 2)
        assert [t.id for t in tracks] == ["a", "b"]


class TestRecentAndUploaded:
    """Tests for creation-date based views."""

    def test_recent_newest_first(self, catalog):
        recent = recent_tracks(catalog)
        assert len(recent) == 10
        assert recent[0].id == "t24"
        assert [t.id for t in recent] == [f"t{i}" for i in range(24, 14, -1)]

    def test_uploaded_same_order_limit_eight(self, catalog):
        assert [t.id for t in uploaded_tracks(catalog)] == [
            t.id for t in recent_tracks(catalog)[:8]
        ]

    def test_missing_created_at_sorts_last(self, make_track):
        tracks = [make_track("old", createdAt=None), make_track("new")]
        assert recent_tracks(tracks)[0].id == "new"


class TestRecommended:
    """Tests for the random view."""

    def test_subset_without_duplicates(self, catalog):
        picked = recommended_tracks(catalog, rng=random.Random(3))
        ids = [t.id for t in picked]
        assert len(ids) == 8
        assert len(set(ids)) == 8
        assert set(ids) <= {t.id for t in catalog}

    def test_seeded_rng_is_repeatable(self, catalog):
        first = recommended_tracks(catalog, rng=random.Random(42))
        second = recommended_tracks(catalog, rng=random.Random(42))
        assert [t.id for t in first] == [t.id for t in second]

    def test_small_catalog(self, make_track):
        tracks = [make_track("a"), make_track("b")]
        assert len(recommended_tracks(tracks, rng=random.Random(0))) == 2


class TestBuildViews:
    """Tests for building every view at once."""

    def test_empty_catalog_shows_placeholders(self):
        views = build_views([], rng=random.Random(0))
        for view in views.sections():
            assert view.is_empty
            assert view.placeholder == EMPTY_PLACEHOLDER

    def test_sections_order(self, catalog):
        views = build_views(catalog, rng=random.Random(0))
        assert [v.name for v in views.sections()] == [
            "featured", "recent", "recommended", "uploaded", "trending"
        ]
        assert views.featured.track_ids() == [featured_track(catalog).id]

    def test_custom_limits(self, catalog):
        views = build_views(catalog, rng=random.Random(0), recent_limit=2, trending_limit=5)
        assert len(views.recent.tracks) == 2
        assert len(views.trending.tracks) == 5


class TestScoring:
    """Tests for score based helpers."""

    def test_calculate_score_weights(self, make_track):
        track = make_track("a", plays=10, likes=10, comments=10, createdAt="1970-01-01T00:00:00Z")
        # Created 5 days before "now": recency 5
        score = calculate_score(track, now=5 * 86400)
        assert score == pytest.approx(10 * 0.4 + 10 * 0.3 + 5 * 0.2 + 10 * 0.1)

    def test_recency_never_negative(self, make_track):
        track = make_track("a", createdAt="1970-01-01T00:00:00Z")
        assert calculate_score(track, now=100 * 86400) == 0

    def test_similar_tracks_same_genre(self, make_track):
        tracks = [
            make_track("a", genre="Jazz", plays=1),
            make_track("b", genre="Rock", plays=100),
            make_track("c", genre="Jazz", plays=50),
        ]
        assert [t.id for t in similar_tracks("Jazz", tracks)] == ["c", "a"]

    def test_trending_by_genre(self, make_track):
        tracks = [make_track("a", genre="Jazz", plays=1), make_track("b", genre="Jazz", plays=9)]
        assert [t.id for t in trending_by_genre("Jazz", tracks)] == ["b", "a"]


class TestRecommendations:
    """Tests for server-side recommendation lists."""

    def test_foryou_has_no_duplicates(self, catalog):
        ids = [t.id for t in recommendations(catalog, "foryou")]
        assert len(ids) == len(set(ids))
        assert len(ids) <= 20

    def test_new_matches_recent(self, catalog):
        assert recommendations(catalog, "new")[0].id == "t24"

    def test_unknown_type(self, catalog):
        with pytest.raises(ValueError):
            recommendations(catalog, "random")
