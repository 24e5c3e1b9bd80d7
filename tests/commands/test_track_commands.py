"""
Tests for the next/skip/love/info command handlers.
"""

import os

import pytest

from muse.commands import track
from muse.context import AppContext
from muse.core.config import Config
from muse.domain.playback.gateway import PlaybackStatus, PlayState
from muse.domain.tracking import get_pid_file_path


@pytest.fixture
def ctx(store, gateway) -> AppContext:
    return AppContext(config=Config(), store=store, gateway=gateway)


@pytest.fixture
def two_songs(make_song, gateway):
    a = make_song("A")
    b = make_song("B")
    gateway.playing(a.path, elapsed=90.0, duration=100.0)
    gateway.status_after_advance = PlaybackStatus(PlayState.PLAYING, b.path, 0.0, 100.0)
    return a, b


def daemon_running() -> None:
    pid_file = get_pid_file_path()
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(os.getpid()))


class TestAdvance:
    def test_next_classifies_by_ratio(self, ctx, store, gateway, two_songs) -> None:
        a, b = two_songs

        assert track.handle_advance_command(ctx) == 0

        assert gateway.calls == ["advance"]
        assert store.get_song(a.id).listens == 1
        assert store.get_song(b.id).touches == 1
        assert store.connection_count(a.id, b.id) == 1

    def test_skip_always_records_skip(self, ctx, store, two_songs) -> None:
        a, b = two_songs

        assert track.handle_advance_command(ctx, force_skip=True) == 0

        updated = store.get_song(a.id)
        assert (updated.listens, updated.skips) == (0, 1)
        assert store.connection_count(a.id, b.id) == 1

    def test_daemon_running_only_advances(self, ctx, store, gateway, two_songs) -> None:
        a, b = two_songs
        daemon_running()

        assert track.handle_advance_command(ctx, force_skip=True) == 0

        assert gateway.calls == ["advance"]
        assert store.get_song(a.id).skips == 0
        assert store.connection_count(a.id, b.id) == 0

    def test_nothing_playing(self, ctx, gateway) -> None:
        assert track.handle_advance_command(ctx) == 0
        assert gateway.calls == ["advance"]


class TestLove:
    def test_love_and_unlove_current_song(self, ctx, store, make_song, gateway) -> None:
        song = make_song("A")
        gateway.playing(song.path)

        assert track.handle_love_command(ctx, loved=True) == 0
        assert store.get_song(song.id).loved is True

        assert track.handle_love_command(ctx, loved=False) == 0
        assert store.get_song(song.id).loved is False

    def test_love_without_song(self, ctx) -> None:
        assert track.handle_love_command(ctx) == 1


class TestInfo:
    def test_info_current_song(self, ctx, make_song, gateway) -> None:
        song = make_song("A", touches=3, listens=2, skips=1)
        gateway.playing(song.path, elapsed=10.0)

        assert track.handle_info_command(ctx) == 0

    def test_info_without_song(self, ctx) -> None:
        assert track.handle_info_command(ctx) == 1
