"""Shared fixtures: an isolated data directory, a temporary catalog and a fake player."""

import random
from pathlib import Path
from typing import Callable, Optional, Sequence

import pytest

from muse.core.database import get_db_connection
from muse.core.errors import GatewayUnavailableError
from muse.domain.catalog.models import QueueEntry, Song
from muse.domain.catalog.store import CatalogStore
from muse.domain.playback.gateway import PlaybackStatus, PlayState, STOPPED_STATUS


class FakeGateway:
    """In-memory PlaybackGateway recording the calls it receives."""

    def __init__(self) -> None:
        self.status: PlaybackStatus = STOPPED_STATUS
        self.unavailable = False
        self.calls: list[str] = []
        self.playlist: list[QueueEntry] = []
        self.status_after_advance: Optional[PlaybackStatus] = None

    def get_status(self) -> PlaybackStatus:
        if self.unavailable:
            raise GatewayUnavailableError("player is down")
        return self.status

    def enqueue(self, entries: Sequence[QueueEntry]) -> None:
        self.calls.append("enqueue")
        self.playlist.extend(entries)

    def clear_queue(self) -> None:
        self.calls.append("clear_queue")
        self.playlist.clear()

    def play(self) -> None:
        self.calls.append("play")

    def advance(self) -> None:
        self.calls.append("advance")
        if self.status_after_advance is not None:
            self.status = self.status_after_advance

    def playing(self, path: str, elapsed: float = 0.0, duration: Optional[float] = 100.0) -> None:
        self.status = PlaybackStatus(PlayState.PLAYING, path, elapsed, duration)

    def stop(self) -> None:
        self.status = STOPPED_STATUS


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config, data and runtime directories at a temp dir."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path / "run"))
    monkeypatch.setenv("MUSE_DB_PATH", str(tmp_path / "data" / "test.db"))
    monkeypatch.delenv("MUSE_MPV_SOCKET", raising=False)
    return tmp_path


@pytest.fixture
def store(tmp_path: Path) -> CatalogStore:
    """A fresh catalog in a temporary SQLite file."""
    return CatalogStore(tmp_path / "catalog.db", rng=random.Random(42))


@pytest.fixture
def make_song(store: CatalogStore) -> Callable[..., Song]:
    """Factory adding a song with the given counters to the catalog."""

    def _make_song(
        title: str,
        artist: str = "Artist",
        album: str = "Album",
        touches: int = 0,
        listens: int = 0,
        skips: int = 0,
        loved: bool = False,
    ) -> Song:
        path = f"/music/{artist}/{album}/{title}.mp3"
        song_id, _ = store.add_song(path, artist, album, title)
        with get_db_connection(store.db_path) as conn:
            conn.execute(
                "UPDATE songs SET touches = ?, listens = ?, skips = ?, loved = ? WHERE id = ?",
                (touches, listens, skips, int(loved), song_id),
            )
            conn.commit()
        return store.get_song(song_id)

    return _make_song


@pytest.fixture
def connect(store: CatalogStore) -> Callable[[Song, Song, int], None]:
    """Record a transition between two songs count times."""

    def _connect(from_song: Song, to_song: Song, count: int = 1) -> None:
        for _ in range(count):
            store.record_transition(from_song.id, to_song.id)

    return _connect


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
