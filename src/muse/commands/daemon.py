"""
Daemon command handlers for Muse CLI.

Handles: daemon start, stop, status, run
"""

from muse.context import AppContext
from muse.core.errors import GatewayUnavailableError
from muse.core.output import log
from muse.domain.playback.mpv import start_mpv
from muse.domain.tracking import read_pid, run_daemon, start_daemon, stop_daemon


def handle_daemon_command(ctx: AppContext, action: str) -> int:
    """Dispatch a daemon subcommand.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    if action == "run":
        try:
            start_mpv(ctx.config)
        except GatewayUnavailableError as e:
            # The tracker keeps retrying until a player appears
            log(f"{e}", "warning")
        run_daemon(ctx.config, store=ctx.store, gateway=ctx.gateway)
        return 0

    if action == "start":
        pid = start_daemon()
        log(f"Tracker daemon started (pid {pid})")
        return 0

    if action == "stop":
        if stop_daemon():
            log("Tracker daemon stopped")
        else:
            log("Tracker daemon is not running", "warning")
        return 0

    if action == "status":
        pid = read_pid()
        if pid is None:
            log("Tracker daemon is not running")
            return 1
        log(f"Tracker daemon running (pid {pid})")
        return 0

    log(f"Unknown daemon action: {action}", "error")
    return 1
