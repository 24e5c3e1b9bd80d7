"""Catalog domain - songs, the connection graph and ingestion.

This domain handles:
- Song and queue entry models
- SQLite persistence with fuzzy lookup and counter updates
- Scanning music directories into the catalog
"""

# Models
from .models import QueueEntry, Song

# Persistence
from .store import CatalogStore

# Ingestion
from .scanner import (
    ScanResult,
    extract_metadata_from_path,
    extract_song_metadata,
    find_music_files,
    update_catalog,
)

__all__ = [
    # Models
    "QueueEntry",
    "Song",
    # Persistence
    "CatalogStore",
    # Ingestion
    "ScanResult",
    "extract_metadata_from_path",
    "extract_song_metadata",
    "find_music_files",
    "update_catalog",
]
