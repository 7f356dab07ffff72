"""Tests for the playback state machine."""

import random
from typing import Optional

import pytest

from beatwave.domain.library.exceptions import TrackNotFoundError
from beatwave.domain.playback import (
    AudioBackend,
    AudioError,
    PlaybackSession,
    PlaybackState,
    SilentAudioBackend,
)
from beatwave.domain.stats import CounterService, StoreCounterBackend
from beatwave.domain.sync import Catalog, SessionState


class FakeAudioBackend(AudioBackend):
    """Records calls and tracks how many streams are audible."""

    def __init__(self, duration: Optional[float] = 200.0, fail_on: Optional[str] = None):
        self.calls: list[tuple] = []
        self.url: Optional[str] = None
        self.paused = False
        self.position_value = 0.0
        self.duration_value = duration
        self.fail_on = fail_on
        self.max_audible = 0

    def _audible(self) -> int:
        return 1 if self.url and not self.paused else 0

    async def load(self, url):
        self.calls.append(("load", url))
        if url == self.fail_on:
            raise AudioError("cannot decode")
        # Loading replaces the previous stream
        self.url = url
        self.paused = False
        self.max_audible = max(self.max_audible, self._audible())

    async def pause(self):
        self.calls.append(("pause",))
        self.paused = True

    async def resume(self):
        self.calls.append(("resume",))
        self.paused = False

    async def seek(self, seconds):
        self.calls.append(("seek", seconds))
        self.position_value = seconds

    async def stop(self):
        self.calls.append(("stop",))
        self.url = None

    async def position(self):
        return self.position_value

    async def duration(self):
        return self.duration_value

    async def finished(self):
        return False


@pytest.fixture
def catalog(make_track):
    return Catalog(
        [
            make_track("a", title="A"),
            make_track("b", title="B"),
            make_track("c", title="C"),
            make_track("silent", audioUrl=None),
        ],
        "network",
    )


@pytest.fixture
def backend():
    return FakeAudioBackend()


@pytest.fixture
def session(storage, clock):
    return SessionState(storage, clock=clock, device_id="device_test")


@pytest.fixture
def player(catalog, backend, session):
    return PlaybackSession(catalog, backend, session=session, rng=random.Random(7))


class TestPlay:
    """Tests for starting tracks."""

    @pytest.mark.anyio
    async def test_play_starts_stream(self, player, backend, session):
        track = await player.play("a")
        assert track.id == "a"
        assert player.state is PlaybackState.PLAYING
        assert player.current_track.id == "a"
        assert backend.url == "https://cdn.example.com/a.mp3"
        assert session.history()[0]["id"] == "a"

    @pytest.mark.anyio
    async def test_switching_pauses_and_rewinds_first(self, player, backend):
        await player.play("a")
        backend.calls.clear()
        await player.play("b")
        assert backend.calls[:2] == [("pause",), ("seek", 0)]
        assert backend.calls[2] == ("load", "https://cdn.example.com/b.mp3")
        assert backend.max_audible == 1

    @pytest.mark.anyio
    async def test_unknown_track_leaves_state(self, player, backend):
        await player.play("a")
        with pytest.raises(TrackNotFoundError):
            await player.play("missing")
        assert player.state is PlaybackState.PLAYING
        assert player.current_track.id == "a"

    @pytest.mark.anyio
    async def test_track_without_audio(self, player, backend):
        with pytest.raises(TrackNotFoundError):
            await player.play("silent")
        assert player.state is PlaybackState.IDLE
        assert backend.calls == []

    @pytest.mark.anyio
    async def test_backend_failure_returns_to_idle(self, catalog, session):
        backend = FakeAudioBackend(fail_on="https://cdn.example.com/a.mp3")
        player = PlaybackSession(catalog, backend, session=session)
        with pytest.raises(AudioError):
            await player.play("a")
        assert player.state is PlaybackState.IDLE
        assert player.current_track is None
        assert session.history() == []

    @pytest.mark.anyio
    async def test_records_play_in_background(
        self, catalog, backend, session, store, seed_track
    ):
        seed_track("a", plays=0)
        counters = CounterService(catalog, session, StoreCounterBackend(store))
        player = PlaybackSession(catalog, backend, counters=counters, session=session)
        await player.play("a")
        await player.drain()
        assert catalog.find("a").plays == 1
        assert session.has_played_today("a", "device_test")


class TestTogglePlay:
    """Tests for pause and resume."""

    @pytest.mark.anyio
    async def test_idle_plays_first_track(self, player):
        track = await player.toggle_play()
        assert track.id == "a"
        assert player.state is PlaybackState.PLAYING

    @pytest.mark.anyio
    async def test_pause_resume(self, player, backend):
        await player.play("b")
        await player.toggle_play()
        assert player.state is PlaybackState.PAUSED
        assert backend.paused
        await player.toggle_play()
        assert player.state is PlaybackState.PLAYING
        assert not backend.paused

    @pytest.mark.anyio
    async def test_empty_catalog_stays_idle(self, backend):
        player = PlaybackSession(Catalog([], "demo"), backend)
        assert await player.toggle_play() is None
        assert player.state is PlaybackState.IDLE

    @pytest.mark.anyio
    async def test_stop(self, player, backend):
        await player.play("a")
        await player.stop()
        assert player.state is PlaybackState.IDLE
        assert player.current_track is None
        assert backend.url is None


class TestAutoAdvance:
    """Tests for natural track completion."""

    @pytest.mark.anyio
    async def test_random_next_track_is_playable(self, player):
        await player.play("a")
        for _ in range(10):
            track = await player.handle_ended()
            assert track.id in {"a", "b", "c"}
            assert player.state is PlaybackState.PLAYING

    @pytest.mark.anyio
    async def test_seeded_choice_is_repeatable(self, catalog):
        picks = []
        for _ in range(2):
            player = PlaybackSession(catalog, FakeAudioBackend(), rng=random.Random(3))
            picks.append([(await player.handle_ended()).id for _ in range(5)])
        assert picks[0] == picks[1]

    @pytest.mark.anyio
    async def test_nothing_playable(self, backend, make_track):
        player = PlaybackSession(Catalog([make_track("x", audioUrl=None)]), backend)
        assert await player.handle_ended() is None
        assert player.state is PlaybackState.ENDED

    @pytest.mark.anyio
    async def test_play_previous(self, player):
        assert await player.play_previous() is None
        await player.play("a")
        await player.play("b")
        track = await player.play_previous()
        assert track.id == "a"


class TestSeek:
    """Tests for seeking."""

    @pytest.mark.anyio
    async def test_seek_fraction(self, player, backend):
        await player.play("a")
        assert await player.seek_fraction(0.25)
        assert backend.position_value == 50.0

    @pytest.mark.anyio
    async def test_seek_is_clamped(self, player, backend):
        await player.play("a")
        await player.seek_fraction(1.5)
        assert backend.position_value == 200.0
        await player.seek_fraction(-1)
        assert backend.position_value == 0.0

    @pytest.mark.anyio
    async def test_seek_ignored_without_duration(self, catalog):
        backend = FakeAudioBackend(duration=None)
        player = PlaybackSession(catalog, backend)
        await player.play("a")
        assert not await player.seek_fraction(0.5)

    @pytest.mark.anyio
    async def test_seek_ignored_when_idle(self, player):
        assert not await player.seek_fraction(0.5)

    @pytest.mark.anyio
    async def test_seek_to_pointer(self, player, backend):
        await player.play("a")
        assert await player.seek_to_pointer(x=150, left=100, width=200)
        assert backend.position_value == 50.0
        assert not await player.seek_to_pointer(x=10, left=0, width=0)

    @pytest.mark.anyio
    async def test_progress(self, player, backend):
        assert (await player.progress()).fraction == 0.0
        await player.play("a")
        backend.position_value = 100.0
        assert (await player.progress()).fraction == 0.5


class TestSilentBackend:
    """Tests for the wall-clock stream emulation."""

    @pytest.mark.anyio
    async def test_position_follows_clock(self, clock):
        backend = SilentAudioBackend(nominal_duration=10, clock=clock)
        await backend.load("x")
        clock.advance(4)
        await backend.pause()
        clock.advance(100)
        assert await backend.position() == 4
        await backend.resume()
        clock.advance(6)
        assert await backend.finished()
