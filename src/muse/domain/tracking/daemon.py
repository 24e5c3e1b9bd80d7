"""
Tracker daemon process management.

`muse daemon run` runs the tracker in the foreground with a PID file in the
data directory; `start`, `stop` and `status` manage that process from
other invocations.
"""

import os
import signal
import subprocess
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from loguru import logger

from muse.core.config import Config, get_data_dir, get_socket_path
from muse.core.errors import MuseError
from muse.domain.catalog.store import CatalogStore
from muse.domain.playback.gateway import PlaybackGateway
from muse.domain.playback.mpv import MpvGateway

from .tracker import BehaviorTracker

STOP_TIMEOUT = 10.0


def get_pid_file_path() -> Path:
    return get_data_dir() / "tracker.pid"


def is_process_running(pid: int) -> bool:
    """Check whether a process with pid exists."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by someone else
        return True
    return True


def read_pid(pid_file: Optional[Path] = None) -> Optional[int]:
    """Read the PID of a live daemon, removing a stale PID file."""
    pid_file = pid_file or get_pid_file_path()
    try:
        pid = int(pid_file.read_text().strip())
    except (OSError, ValueError):
        return None

    if not is_process_running(pid):
        logger.debug(f"Removing stale PID file for {pid}")
        pid_file.unlink(missing_ok=True)
        return None
    return pid


def is_daemon_running(pid_file: Optional[Path] = None) -> bool:
    return read_pid(pid_file) is not None


def run_daemon(
    config: Config,
    store: Optional[CatalogStore] = None,
    gateway: Optional[PlaybackGateway] = None,
    pid_file: Optional[Path] = None,
) -> None:
    """Run the tracker in this process until SIGTERM or SIGINT."""
    pid_file = pid_file or get_pid_file_path()
    existing = read_pid(pid_file)
    if existing is not None and existing != os.getpid():
        raise MuseError(f"Tracker daemon already running (pid {existing})")

    store = store or CatalogStore()
    gateway = gateway or MpvGateway(str(get_socket_path(config)))
    tracker = BehaviorTracker(store, gateway, config.tracker)

    stop_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, stopping tracker")
        stop_event.set()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(os.getpid()))
    logger.info(f"Tracker daemon running (pid {os.getpid()})")

    try:
        tracker.run(stop_event)
    finally:
        pid_file.unlink(missing_ok=True)


def start_daemon() -> int:
    """Spawn `muse daemon run` as a detached process.

    Returns:
        PID of the daemon
    """
    existing = read_pid()
    if existing is not None:
        raise MuseError(f"Tracker daemon already running (pid {existing})")

    process = subprocess.Popen(
        [sys.executable, "-m", "muse", "daemon", "run"],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        stdin=subprocess.DEVNULL,
        start_new_session=True,
    )
    logger.info(f"Spawned tracker daemon (pid {process.pid})")
    return process.pid


def stop_daemon(timeout: float = STOP_TIMEOUT) -> bool:
    """Send SIGTERM to the daemon and wait for it to exit.

    Returns:
        False if no daemon was running
    """
    pid = read_pid()
    if pid is None:
        return False

    os.kill(pid, signal.SIGTERM)
    deadline = time.time() + timeout
    while is_process_running(pid):
        if time.time() > deadline:
            raise MuseError(f"Tracker daemon (pid {pid}) did not stop within {timeout}s")
        time.sleep(0.1)

    logger.info(f"Stopped tracker daemon (pid {pid})")
    return True
