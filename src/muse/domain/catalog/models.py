"""
Catalog domain models.

Contains data structures for songs and the entries handed to the player.
"""

import sqlite3
from typing import NamedTuple


class Song(NamedTuple):
    """A song in the catalog with its interaction counters.

    Counters only ever grow: touches (times suggested or started),
    listens (played past the listen threshold) and skips (abandoned early).
    """

    id: int
    path: str  # Absolute path, unique within the catalog
    artist: str
    album: str
    title: str
    touches: int = 0
    listens: int = 0
    skips: int = 0
    loved: bool = False

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Song":
        """Build a Song from a row of the songs table."""
        return cls(
            id=row["id"],
            path=row["path"],
            artist=row["artist"],
            album=row["album"],
            title=row["title"],
            touches=row["touches"] or 0,
            listens=row["listens"] or 0,
            skips=row["skips"] or 0,
            loved=bool(row["loved"]),
        )

    def display_name(self) -> str:
        return f"{self.artist} - {self.title}"


class QueueEntry(NamedTuple):
    """A song ready to be handed to the player. Never persisted."""

    path: str
    artist: str
    title: str

    @classmethod
    def from_song(cls, song: Song) -> "QueueEntry":
        return cls(path=song.path, artist=song.artist, title=song.title)
