"""
Muse CLI - Entry point

Parses arguments, loads configuration and logging, then hands off to the
command handlers. Every command exits with 0 on success and 1 on failure.
"""

import argparse
import sys
from typing import Optional

from loguru import logger

from muse.core.config import ensure_directories, load_config
from muse.core.console import print_error
from muse.core.errors import GatewayUnavailableError, MuseError
from muse.core.output import setup_from_config
from muse.domain.catalog.scanner import DEFAULT_SCAN_DEPTH
from muse.domain.queue import PlayMode, QueueStrategy


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the muse command."""
    parser = argparse.ArgumentParser(
        prog="muse",
        description="Muse - music suggestions and queues learned from your listening",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    # Catalog
    update_parser = subparsers.add_parser(
        "update", help="Scan a music directory into the catalog"
    )
    update_parser.add_argument(
        "path",
        nargs="?",
        help="Root of the music collection (default: [music] library_paths)",
    )
    update_parser.add_argument(
        "--scan-depth",
        type=int,
        default=DEFAULT_SCAN_DEPTH,
        help=f"Maximum directory depth to scan (default: {DEFAULT_SCAN_DEPTH})",
    )
    update_parser.add_argument(
        "--remove-missing",
        action="store_true",
        help="Remove songs whose files no longer exist",
    )
    update_parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop all songs and connections before scanning",
    )

    list_parser = subparsers.add_parser("list", help="List songs in the catalog")
    list_parser.add_argument(
        "--stats", action="store_true", help="Show score statistics instead"
    )

    # Queues
    for strategy, help_text in (
        (QueueStrategy.CURRENT, "Queue two interleaved paths from a song"),
        (QueueStrategy.THREAD, "Queue one path following a song"),
        (QueueStrategy.STREAM, "Queue a 30-song random walk from a song"),
    ):
        queue_parser = subparsers.add_parser(strategy.value, help=help_text)
        queue_parser.add_argument("query", nargs="+", help="Song, artist or album name")
        queue_parser.add_argument(
            "-v", "--verbose", action="store_true", help="Show the score behind each song"
        )

    play_parser = subparsers.add_parser("play", help="Queue the whole catalog")
    play_parser.add_argument(
        "mode",
        nargs="?",
        choices=[mode.value for mode in PlayMode],
        default=PlayMode.ALGORITHM.value,
        help="algorithm: top-scored songs, shuffle: everything in random order",
    )
    play_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show the score behind each song"
    )

    # Current song
    subparsers.add_parser("next", help="Play the next song")
    subparsers.add_parser("skip", help="Skip the current song")
    subparsers.add_parser("love", help="Love the current song")
    subparsers.add_parser("unlove", help="Unlove the current song")
    subparsers.add_parser("info", help="Show stats for the current song")

    # Tracker daemon
    daemon_parser = subparsers.add_parser("daemon", help="Manage the tracker daemon")
    daemon_parser.add_argument(
        "action", choices=["start", "stop", "status", "run"], help="Daemon action"
    )

    return parser


def run_command(args: argparse.Namespace) -> int:
    """Run the parsed subcommand and return its exit code."""
    from muse.commands import daemon, library, queue, track
    from muse.context import AppContext

    config = load_config()
    setup_from_config(config.logging)
    ensure_directories()
    ctx = AppContext.create(config)

    if args.subcommand == "update":
        return library.handle_update_command(
            ctx,
            args.path,
            scan_depth=args.scan_depth,
            remove_missing=args.remove_missing,
            reset=args.reset,
        )

    elif args.subcommand == "list":
        return library.handle_list_command(ctx, stats=args.stats)

    elif args.subcommand in {strategy.value for strategy in QueueStrategy}:
        return queue.handle_queue_command(
            ctx,
            QueueStrategy(args.subcommand),
            " ".join(args.query),
            verbose=args.verbose,
        )

    elif args.subcommand == "play":
        return queue.handle_play_command(ctx, PlayMode(args.mode), verbose=args.verbose)

    elif args.subcommand == "next":
        return track.handle_advance_command(ctx)

    elif args.subcommand == "skip":
        return track.handle_advance_command(ctx, force_skip=True)

    elif args.subcommand == "love":
        return track.handle_love_command(ctx, loved=True)

    elif args.subcommand == "unlove":
        return track.handle_love_command(ctx, loved=False)

    elif args.subcommand == "info":
        return track.handle_info_command(ctx)

    elif args.subcommand == "daemon":
        return daemon.handle_daemon_command(ctx, args.action)

    raise ValueError(f"Unknown command: {args.subcommand}")


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the muse command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        sys.exit(0)

    try:
        sys.exit(run_command(args))
    except GatewayUnavailableError as e:
        print_error(f"Player unavailable: {e}")
        sys.exit(1)
    except MuseError as e:
        print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Unexpected error running '{args.subcommand}'")
        print_error(f"Unexpected error: {e}")
        sys.exit(1)
