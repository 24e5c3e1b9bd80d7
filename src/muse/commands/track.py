"""
Track command handlers for Muse CLI.

Handles: next, skip, love, unlove, info (all act on the song the player
reports as current)
"""

import time
from typing import Optional

from muse.context import AppContext
from muse.core.console import get_console
from muse.core.output import log
from muse.domain.catalog.models import Song
from muse.domain.playback.gateway import PlaybackStatus
from muse.domain.scoring import score
from muse.domain.tracking import Outcome, apply_transition, classify, is_daemon_running

# How long to wait for the player to report the next song after advancing
ADVANCE_TIMEOUT = 2.0


def _current_song(ctx: AppContext) -> tuple[PlaybackStatus, Optional[Song]]:
    status = ctx.gateway.get_status()
    if not status.is_active:
        return status, None
    return status, ctx.store.get_by_path(status.current_path)


def _wait_for_next(ctx: AppContext, previous_path: str) -> Optional[Song]:
    """Poll until the player moves off previous_path and return the new song."""
    deadline = time.time() + ADVANCE_TIMEOUT
    while time.time() < deadline:
        status = ctx.gateway.get_status()
        if not status.is_active:
            return None
        if status.current_path != previous_path:
            return ctx.store.get_by_path(status.current_path)
        time.sleep(0.1)
    return None


def handle_advance_command(ctx: AppContext, force_skip: bool = False) -> int:
    """Handle next/skip commands - advance the player and record the outcome.

    With a tracker daemon running the daemon sees the song change and does
    the bookkeeping, so this only advances. Otherwise the current song is
    classified here (always a skip when force_skip is set) and the
    transition to the new song is recorded.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    status, current = _current_song(ctx)
    ctx.gateway.advance()

    if is_daemon_running():
        log("Advanced (tracker daemon records the change)")
        return 0

    if current is None:
        log("Advanced; current song is not in the catalog", "warning")
        return 0

    if force_skip:
        outcome = Outcome.SKIP
    else:
        outcome = classify(status.elapsed or 0.0, status.duration, ctx.config.tracker)

    next_song = _wait_for_next(ctx, current.path)
    apply_transition(ctx.store, current, outcome, next_song)

    verb = outcome.value if outcome else "unclassified"
    if next_song:
        log(f"{verb}: {current.display_name()} -> {next_song.display_name()}")
    else:
        log(f"{verb}: {current.display_name()}")
    return 0


def handle_love_command(ctx: AppContext, loved: bool = True) -> int:
    """Handle love/unlove commands - set the loved flag on the current song."""
    _, current = _current_song(ctx)
    if current is None:
        log("No catalogued song is currently playing", "warning")
        return 1

    ctx.store.set_loved(current.id, loved)
    log(f"{'Loved' if loved else 'Unloved'}: {current.display_name()}")
    return 0


def handle_info_command(ctx: AppContext) -> int:
    """Handle info command - show counters and score of the current song."""
    status, current = _current_song(ctx)
    if current is None:
        log("No catalogued song is currently playing", "warning")
        return 1

    console = get_console()
    console.print(f"{current.artist} - {current.title}", style="bold", markup=False)
    console.print(f"Album: {current.album}", markup=False)
    console.print(f"Path: {current.path}", markup=False)
    console.print(
        f"Touches: {current.touches}  Listens: {current.listens}  Skips: {current.skips}"
    )
    console.print(f"Score: {score(current):.2f}")
    console.print(f"Loved: {'yes' if current.loved else 'no'}")
    if status.elapsed is not None and status.duration:
        console.print(f"Position: {status.elapsed:.0f}s / {status.duration:.0f}s ({status.state.value})")
    return 0
