"""
SQLite-backed catalog of songs and the connections between them.

Every mutating call runs in its own transaction under a process-wide write
lock. Lock contention from another process (the tracker daemon and a
short-lived command writing at the same time) is retried a bounded number
of times before StoreContentionError is raised.
"""

import random
import sqlite3
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Optional, TypeVar

from loguru import logger

from muse.core.database import get_db_connection, init_database
from muse.core.errors import SongNotFoundError, StoreContentionError

from .models import Song

T = TypeVar("T")

MAX_WRITE_ATTEMPTS = 5
RETRY_DELAY = 0.1  # seconds, multiplied by the attempt number

_write_lock = threading.Lock()

SONG_COLUMNS = "id, path, artist, album, title, touches, listens, skips, loved"


def _like_pattern(text: str) -> str:
    """Build a substring LIKE pattern with % and _ matched literally."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _is_lock_error(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return "locked" in message or "busy" in message


class CatalogStore:
    """Persistence and lookup for songs and their transition graph."""

    def __init__(
        self, db_path: Optional[Path] = None, rng: Optional[random.Random] = None
    ):
        """
        Args:
            db_path: SQLite file to use (default: get_database_path())
            rng: Random source for random_sample(), injectable for tests
        """
        self.db_path = db_path
        self.rng = rng or random.Random()
        init_database(db_path)

    def _write(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        """Run operation in a single committed transaction, retrying on lock errors."""
        last_error: Optional[sqlite3.OperationalError] = None
        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            try:
                with _write_lock, get_db_connection(self.db_path) as conn:
                    result = operation(conn)
                    conn.commit()
                    return result
            except sqlite3.OperationalError as e:
                if not _is_lock_error(e):
                    raise
                last_error = e
                logger.debug(
                    f"Catalog write contended (attempt {attempt}/{MAX_WRITE_ATTEMPTS}): {e}"
                )
                time.sleep(RETRY_DELAY * attempt)

        raise StoreContentionError(
            f"Catalog is locked after {MAX_WRITE_ATTEMPTS} attempts: {last_error}"
        )

    # Lookup

    def get_song(self, song_id: int) -> Optional[Song]:
        with get_db_connection(self.db_path) as conn:
            row = conn.execute(
                f"SELECT {SONG_COLUMNS} FROM songs WHERE id = ?", (song_id,)
            ).fetchone()
        return Song.from_row(row) if row else None

    def get_by_path(self, path: str) -> Optional[Song]:
        with get_db_connection(self.db_path) as conn:
            row = conn.execute(
                f"SELECT {SONG_COLUMNS} FROM songs WHERE path = ?", (path,)
            ).fetchone()
        return Song.from_row(row) if row else None

    def find_by_name(self, query: str) -> Song:
        """
        Find the first song whose title, artist or album contains query.

        Matching is case-insensitive; ties go to the smallest id. When the
        plain substring search finds nothing, "Artist - Title" queries are
        matched part by part, and finally the first two words of the query
        must each appear in some field.

        Raises:
            ValueError: If query is blank
            SongNotFoundError: If nothing matches
        """
        query = query.strip()
        if not query:
            raise ValueError("Search query must not be empty")

        field_match = "(title LIKE ? ESCAPE '\\' OR artist LIKE ? ESCAPE '\\' OR album LIKE ? ESCAPE '\\')"

        with get_db_connection(self.db_path) as conn:
            pattern = _like_pattern(query)
            row = conn.execute(
                f"SELECT {SONG_COLUMNS} FROM songs WHERE {field_match} ORDER BY id LIMIT 1",
                (pattern, pattern, pattern),
            ).fetchone()

            if row is None and " - " in query:
                artist, title = (part.strip() for part in query.split(" - ", 1))
                if artist and title:
                    row = conn.execute(
                        f"SELECT {SONG_COLUMNS} FROM songs "
                        "WHERE artist LIKE ? ESCAPE '\\' AND title LIKE ? ESCAPE '\\' "
                        "ORDER BY id LIMIT 1",
                        (_like_pattern(artist), _like_pattern(title)),
                    ).fetchone()

            words = query.split()
            if row is None and len(words) >= 2:
                first, second = _like_pattern(words[0]), _like_pattern(words[1])
                row = conn.execute(
                    f"SELECT {SONG_COLUMNS} FROM songs "
                    f"WHERE {field_match} AND {field_match} ORDER BY id LIMIT 1",
                    (first, first, first, second, second, second),
                ).fetchone()

        if row is None:
            raise SongNotFoundError(query)
        return Song.from_row(row)

    def all_songs(self) -> list[Song]:
        """All songs ordered by artist, album and title."""
        with get_db_connection(self.db_path) as conn:
            rows = conn.execute(
                f"SELECT {SONG_COLUMNS} FROM songs ORDER BY artist, album, title, id"
            ).fetchall()
        return [Song.from_row(row) for row in rows]

    def count_songs(self) -> int:
        with get_db_connection(self.db_path) as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM songs").fetchone()
        return row["total"]

    def random_sample(self, n: int) -> list[Song]:
        """
        Draw up to n distinct songs uniformly at random.

        Returns:
            min(n, catalog size) songs in draw order
        """
        if n <= 0:
            return []

        with get_db_connection(self.db_path) as conn:
            ids = [row["id"] for row in conn.execute("SELECT id FROM songs ORDER BY id")]
            if not ids:
                return []

            chosen = self.rng.sample(ids, min(n, len(ids)))
            placeholders = ",".join("?" * len(chosen))
            rows = conn.execute(
                f"SELECT {SONG_COLUMNS} FROM songs WHERE id IN ({placeholders})",
                chosen,
            ).fetchall()

        by_id = {row["id"]: Song.from_row(row) for row in rows}
        return [by_id[song_id] for song_id in chosen]

    # Connection graph

    def connections_from(self, song_id: int) -> list[tuple[Song, int]]:
        """Songs the user has moved to from song_id, with transition counts."""
        with get_db_connection(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT s.id, s.path, s.artist, s.album, s.title,
                       s.touches, s.listens, s.skips, s.loved, c.count
                FROM connections c
                JOIN songs s ON s.id = c.to_song_id
                WHERE c.from_song_id = ?
                ORDER BY s.id
                """,
                (song_id,),
            ).fetchall()
        return [(Song.from_row(row), row["count"]) for row in rows]

    def connection_count(self, from_id: int, to_id: int) -> int:
        with get_db_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT count FROM connections WHERE from_song_id = ? AND to_song_id = ?",
                (from_id, to_id),
            ).fetchone()
        return row["count"] if row else 0

    def record_transition(self, from_id: int, to_id: int) -> bool:
        """
        Record that the user moved from one song to another.

        Inserts the edge with count 1 or increments an existing edge by 1.

        Returns:
            False for a self transition (nothing is written), True otherwise
        """
        if from_id == to_id:
            logger.debug(f"Ignoring self transition for song {from_id}")
            return False

        def upsert(conn: sqlite3.Connection) -> bool:
            conn.execute(
                """
                INSERT INTO connections (from_song_id, to_song_id, count)
                VALUES (?, ?, 1)
                ON CONFLICT (from_song_id, to_song_id)
                DO UPDATE SET count = count + 1
                """,
                (from_id, to_id),
            )
            return True

        return self._write(upsert)

    # Counters

    def increment_counters(
        self,
        song_id: int,
        touch: bool = False,
        listen: bool = False,
        skip: bool = False,
    ) -> None:
        """Atomically add 1 to each selected counter. No-op when none is selected."""
        assignments = []
        if touch:
            assignments.append("touches = touches + 1")
        if listen:
            assignments.append("listens = listens + 1")
        if skip:
            assignments.append("skips = skips + 1")
        if not assignments:
            return

        sql = f"UPDATE songs SET {', '.join(assignments)} WHERE id = ?"
        self._write(lambda conn: conn.execute(sql, (song_id,)))

    def set_loved(self, song_id: int, loved: bool) -> bool:
        """Set the loved flag. Returns False if the song does not exist."""

        def update(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute(
                "UPDATE songs SET loved = ? WHERE id = ?", (int(loved), song_id)
            )
            return cursor.rowcount > 0

        return self._write(update)

    # Ingestion

    def add_song(self, path: str, artist: str, album: str, title: str) -> tuple[int, bool]:
        """
        Insert a song unless its path is already catalogued.

        Returns:
            (song_id, created) where created is False for an existing path
        """

        def insert(conn: sqlite3.Connection) -> tuple[int, bool]:
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO songs (path, artist, album, title)
                VALUES (?, ?, ?, ?)
                """,
                (path, artist, album, title),
            )
            if cursor.rowcount > 0:
                return cursor.lastrowid, True
            row = conn.execute("SELECT id FROM songs WHERE path = ?", (path,)).fetchone()
            return row["id"], False

        return self._write(insert)

    def remove_songs(self, song_ids: Iterable[int]) -> int:
        """Delete songs and every connection touching them. Returns rows removed."""
        ids = list(song_ids)
        if not ids:
            return 0

        def delete(conn: sqlite3.Connection) -> int:
            placeholders = ",".join("?" * len(ids))
            conn.execute(
                f"DELETE FROM connections WHERE from_song_id IN ({placeholders}) "
                f"OR to_song_id IN ({placeholders})",
                ids + ids,
            )
            cursor = conn.execute(
                f"DELETE FROM songs WHERE id IN ({placeholders})", ids
            )
            return cursor.rowcount

        removed = self._write(delete)
        logger.info(f"Removed {removed} songs from catalog")
        return removed

    def reset(self) -> None:
        """Drop every song and connection."""

        def clear(conn: sqlite3.Connection) -> None:
            conn.execute("DELETE FROM connections")
            conn.execute("DELETE FROM songs")

        self._write(clear)
        logger.info("Catalog reset")
