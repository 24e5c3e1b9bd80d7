"""
Library command handlers for Muse CLI.

Handles: update (scan music directories into the catalog), list
"""

from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.table import Table

from muse.context import AppContext
from muse.core.console import get_console
from muse.core.output import log
from muse.domain.catalog.scanner import update_catalog
from muse.domain.scoring import rank_songs, score, score_statistics

TOP_SONGS = 10


def handle_update_command(
    ctx: AppContext,
    path: Optional[str],
    scan_depth: int,
    remove_missing: bool = False,
    reset: bool = False,
) -> int:
    """Handle update command - scan music directories into the catalog.

    Without a path, every directory in [music] library_paths is scanned.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    directories = [Path(path)] if path else [Path(p) for p in ctx.config.music.library_paths]
    if not directories:
        log("No path given and [music] library_paths is empty", "error")
        return 1

    found = added = existing = removed = 0
    for index, directory in enumerate(directories):
        log(f"Scanning {directory} (depth {scan_depth})...")
        try:
            result = update_catalog(
                ctx.store,
                directory,
                ctx.config.music.supported_formats,
                scan_depth=scan_depth,
                remove_missing=remove_missing and index == len(directories) - 1,
                reset=reset and index == 0,
            )
        except FileNotFoundError as e:
            log(str(e), "error")
            return 1

        found += result.found
        added += result.added
        existing += result.existing
        removed += result.removed

    log(
        f"Found {found} files: {added} added, "
        f"{existing} already catalogued, {removed} removed"
    )
    return 0


def handle_list_command(ctx: AppContext, stats: bool = False) -> int:
    """Handle list command - show the catalog or its score statistics."""
    songs = ctx.store.all_songs()
    console = get_console()

    if not songs:
        log("Catalog is empty. Run 'muse update <music dir>' first.", "warning")
        return 0

    if stats:
        summary = score_statistics(songs)
        console.print(f"[bold]Songs:[/bold] {summary['count']}")
        console.print(f"Mean score: {summary['mean']:.2f}")
        console.print(f"Variance: {summary['variance']:.2f}")
        console.print(f"Std dev: {summary['std_dev']:.2f}")
        console.print(f"Min: {summary['min']:.2f}  Max: {summary['max']:.2f}")
        console.print("[bold]Top songs:[/bold]")
        for song, song_score in rank_songs(songs)[:TOP_SONGS]:
            console.print(f"  {song_score:8.2f}  {song.display_name()}", markup=False)
        return 0

    table = Table(title=f"Catalog ({len(songs)} songs)")
    table.add_column("ID", justify="right")
    table.add_column("Artist")
    table.add_column("Album")
    table.add_column("Title")
    table.add_column("Touches", justify="right")
    table.add_column("Listens", justify="right")
    table.add_column("Skips", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("♥")

    for song in songs:
        table.add_row(
            str(song.id),
            escape(song.artist),
            escape(song.album),
            escape(song.title),
            str(song.touches),
            str(song.listens),
            str(song.skips),
            f"{score(song):.1f}",
            "♥" if song.loved else "",
        )

    console.print(table)
    return 0
