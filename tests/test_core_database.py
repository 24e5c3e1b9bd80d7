#!/usr/bin/env python3
"""Tests for database setup."""

from pathlib import Path

from muse.core.database import (
    SCHEMA_VERSION,
    get_database_path,
    get_db_connection,
    init_database,
)


def test_database_path_honours_env(isolated_dirs: Path) -> None:
    """MUSE_DB_PATH (set by the isolated_dirs fixture) wins over the data dir."""
    assert get_database_path() == isolated_dirs / "data" / "test.db"


def test_init_creates_schema(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "music.db"

    init_database(db_path)

    with get_db_connection(db_path) as conn:
        tables = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        indexes = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'index'")
        }
        version = conn.execute("SELECT version FROM schema_version").fetchone()["version"]

    assert {"songs", "connections", "schema_version"} <= tables
    assert {"idx_songs_title", "idx_connections_from", "idx_connections_to"} <= indexes
    assert version == SCHEMA_VERSION


def test_init_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "music.db"
    init_database(db_path)

    with get_db_connection(db_path) as conn:
        conn.execute(
            "INSERT INTO songs (path, artist, album, title) VALUES ('/a.mp3', 'A', 'B', 'C')"
        )
        conn.commit()

    init_database(db_path)

    with get_db_connection(db_path) as conn:
        rows = conn.execute("SELECT version FROM schema_version").fetchall()
        songs = conn.execute("SELECT COUNT(*) AS total FROM songs").fetchone()["total"]

    assert len(rows) == 1
    assert songs == 1


def test_connection_uses_wal(tmp_path: Path) -> None:
    db_path = tmp_path / "music.db"
    init_database(db_path)

    with get_db_connection(db_path) as conn:
        mode = conn.execute("PRAGMA journal_mode").fetchone()[0]

    assert mode.lower() == "wal"
