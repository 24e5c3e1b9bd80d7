"""
SQLite database setup for Muse
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from .config import get_data_dir


# Database schema version for migrations
SCHEMA_VERSION = 2


def get_database_path() -> Path:
    """Get the path to the SQLite database file.

    MUSE_DB_PATH overrides the default location in the data directory.
    """
    override = os.environ.get("MUSE_DB_PATH")
    if override:
        return Path(override).expanduser()
    return get_data_dir() / "music.db"


@contextmanager
def get_db_connection(db_path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with proper cleanup and concurrency support."""
    path = db_path or get_database_path()
    # The tracker daemon and short-lived commands share the file, so wait
    # on locks rather than failing immediately
    conn = sqlite3.connect(path, timeout=30.0)
    conn.row_factory = sqlite3.Row  # Enable dict-like access

    # WAL mode allows reads during writes
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    try:
        yield conn
    finally:
        conn.close()


def migrate_database(conn: sqlite3.Connection, current_version: int) -> None:
    """Migrate database from current_version to latest schema."""
    if current_version < 2:
        # Migration from v1 to v2: lookup indexes for fuzzy search and graph walks
        conn.execute("CREATE INDEX IF NOT EXISTS idx_songs_artist ON songs (artist)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_songs_album ON songs (album)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_songs_title ON songs (title)")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_connections_from ON connections (from_song_id)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_connections_to ON connections (to_song_id)"
        )
        conn.commit()


def init_database(db_path: Optional[Path] = None) -> None:
    """Initialize the database with required tables."""
    path = db_path or get_database_path()

    # Ensure data directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(path) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS songs (
                id INTEGER PRIMARY KEY,
                path TEXT UNIQUE NOT NULL,
                artist TEXT NOT NULL,
                album TEXT NOT NULL,
                title TEXT NOT NULL,
                touches INTEGER DEFAULT 0,
                listens INTEGER DEFAULT 0,
                skips INTEGER DEFAULT 0,
                loved INTEGER DEFAULT 0
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS connections (
                id INTEGER PRIMARY KEY,
                from_song_id INTEGER NOT NULL,
                to_song_id INTEGER NOT NULL,
                count INTEGER DEFAULT 1,
                FOREIGN KEY (from_song_id) REFERENCES songs (id) ON DELETE CASCADE,
                FOREIGN KEY (to_song_id) REFERENCES songs (id) ON DELETE CASCADE,
                UNIQUE (from_song_id, to_song_id)
            )
        """)

        cursor = conn.execute("SELECT MAX(version) as version FROM schema_version")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 1

        if current_version < SCHEMA_VERSION:
            logger.info(
                f"Migrating database from v{current_version} to v{SCHEMA_VERSION}"
            )
            migrate_database(conn, current_version)

        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        conn.commit()
