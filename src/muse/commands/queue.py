"""
Queue command handlers for Muse CLI.

Handles: current, thread, stream, play
"""

from typing import Sequence

from rich.markup import escape
from rich.table import Table

from muse.context import AppContext
from muse.core.console import get_console
from muse.core.output import log
from muse.domain.catalog.models import QueueEntry
from muse.domain.playback.mpv import start_mpv
from muse.domain.queue import (
    PlayMode,
    QueueStrategy,
    generate_queue,
    load_queue,
    play_queue,
)
from muse.domain.scoring import score


def _print_queue(title: str, entries: Sequence[QueueEntry]) -> None:
    console = get_console()
    console.print(f"[bold]{title}[/bold] ({len(entries)} songs)")
    for position, entry in enumerate(entries, start=1):
        console.print(f"{position:>3}. {entry.artist} - {entry.title}", markup=False)


def _print_queue_details(
    ctx: AppContext, title: str, entries: Sequence[QueueEntry]
) -> None:
    """Show the counters and score behind every queued song."""
    table = Table(title=f"{title} ({len(entries)} songs)")
    table.add_column("#", justify="right")
    table.add_column("Song")
    table.add_column("Score", justify="right")
    table.add_column("Touches", justify="right")
    table.add_column("Listens", justify="right")
    table.add_column("Skips", justify="right")
    table.add_column("♥")

    for position, entry in enumerate(entries, start=1):
        song = ctx.store.get_by_path(entry.path)
        if song is None:
            table.add_row(str(position), escape(f"{entry.artist} - {entry.title}"))
            continue
        table.add_row(
            str(position),
            escape(song.display_name()),
            f"{score(song):.2f}",
            str(song.touches),
            str(song.listens),
            str(song.skips),
            "♥" if song.loved else "",
        )

    get_console().print(table)


def _start_queue(
    ctx: AppContext, title: str, entries: Sequence[QueueEntry], verbose: bool
) -> int:
    start_mpv(ctx.config)
    load_queue(ctx.gateway, entries)

    if verbose:
        _print_queue_details(ctx, title, entries)
    else:
        _print_queue(title, entries)
    return 0


def handle_queue_command(
    ctx: AppContext, strategy: QueueStrategy, query: str, verbose: bool = False
) -> int:
    """Build a queue from the song matching query and hand it to the player.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        entries = generate_queue(ctx.store, strategy, query, config=ctx.config.queue)
    except ValueError as e:
        log(str(e), "error")
        return 1

    return _start_queue(ctx, f"{strategy.value.title()} queue", entries, verbose)


def handle_play_command(
    ctx: AppContext, mode: PlayMode, verbose: bool = False
) -> int:
    """Queue the whole catalog: top-scored songs or a shuffle."""
    entries = play_queue(ctx.store, mode, config=ctx.config.queue)
    return _start_queue(ctx, f"Play ({mode.value})", entries, verbose)
