"""
Catalog ingestion from a music directory.

Walks a directory for supported audio files, reads artist/album/title with
Mutagen and falls back to the directory layout (Artist/Album/Title.ext)
when a file carries no tags.
"""

from pathlib import Path
from typing import NamedTuple, Optional

from loguru import logger
from mutagen import File as MutagenFile

from .store import CatalogStore

UNKNOWN = "Unknown"
DEFAULT_SCAN_DEPTH = 10


class ScanResult(NamedTuple):
    """Outcome of a catalog update."""

    found: int
    added: int
    existing: int
    removed: int


def is_supported_format(local_path: Path, supported_formats: list[str]) -> bool:
    """Check if file format is supported."""
    return local_path.suffix.lower() in supported_formats


def find_music_files(
    directory: Path, supported_formats: list[str], max_depth: int = DEFAULT_SCAN_DEPTH
) -> list[Path]:
    """Find supported audio files, descending at most max_depth levels.

    Files directly inside directory are at depth 0.
    """
    files: list[Path] = []

    def walk(current: Path, depth: int) -> None:
        if depth > max_depth:
            return
        try:
            entries = sorted(current.iterdir())
        except PermissionError:
            logger.warning(f"Permission denied accessing: {current}")
            return

        for entry in entries:
            if entry.is_dir():
                walk(entry, depth + 1)
            elif entry.is_file() and is_supported_format(entry, supported_formats):
                files.append(entry)

    walk(directory, 0)
    return files


def get_tag_value(audio_file: MutagenFile, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
            if value:
                if isinstance(value, list) and value:
                    return str(value[0])
                return str(value)
        except (KeyError, ValueError):
            # Some formats (like Vorbis) raise ValueError for non-existent keys
            continue
    return None


def extract_metadata_from_path(local_path: Path) -> tuple[str, str, str]:
    """Derive (artist, album, title) from an Artist/Album/Title.ext layout."""
    folders = [part for part in local_path.parent.parts if part != local_path.anchor]
    title = local_path.stem
    if len(folders) >= 2:
        return folders[-2], folders[-1], title
    return UNKNOWN, UNKNOWN, title


def extract_song_metadata(local_path: Path) -> tuple[str, str, str]:
    """Read (artist, album, title) from tags, filling gaps from the path."""
    path_artist, path_album, path_title = extract_metadata_from_path(local_path)

    try:
        audio_file = MutagenFile(str(local_path))
    except Exception as e:  # mutagen raises format-specific errors on corrupt files
        logger.warning(f"Could not read metadata from {local_path}: {e}")
        return path_artist, path_album, path_title

    if audio_file is None:
        return path_artist, path_album, path_title

    # ID3 (MP3), MP4, and Vorbis/Opus tags
    title = get_tag_value(audio_file, ["TIT2", "\xa9nam", "TITLE", "title"])
    artist = get_tag_value(audio_file, ["TPE1", "\xa9ART", "ARTIST", "artist"])
    album = get_tag_value(audio_file, ["TALB", "\xa9alb", "ALBUM", "album"])

    return (
        artist or path_artist,
        album or path_album,
        title or path_title,
    )


def update_catalog(
    store: CatalogStore,
    directory: Path,
    supported_formats: list[str],
    scan_depth: int = DEFAULT_SCAN_DEPTH,
    remove_missing: bool = False,
    reset: bool = False,
) -> ScanResult:
    """Add new files under directory to the catalog.

    Args:
        store: Catalog to update
        directory: Music directory to scan
        supported_formats: File extensions to include
        scan_depth: Maximum directory depth to descend
        remove_missing: Drop songs (and their connections) whose file is gone
        reset: Drop every song and connection before scanning

    Returns:
        ScanResult with counts of files found, added, already known and removed
    """
    directory = directory.expanduser().resolve()
    if not directory.is_dir():
        raise FileNotFoundError(f"Music directory does not exist: {directory}")

    if reset:
        store.reset()

    files = find_music_files(directory, supported_formats, scan_depth)
    logger.info(f"Found {len(files)} music files under {directory}")

    added = 0
    existing = 0
    for local_path in files:
        artist, album, title = extract_song_metadata(local_path)
        _, created = store.add_song(str(local_path), artist, album, title)
        if created:
            added += 1
        else:
            existing += 1

    removed = 0
    if remove_missing:
        missing = [song.id for song in store.all_songs() if not Path(song.path).exists()]
        removed = store.remove_songs(missing)

    logger.info(f"Catalog update: added={added} existing={existing} removed={removed}")
    return ScanResult(found=len(files), added=added, existing=existing, removed=removed)
