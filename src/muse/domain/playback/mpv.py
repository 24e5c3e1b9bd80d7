"""
MPV player integration with JSON IPC.

Each call opens a short-lived connection to mpv's --input-ipc-server
socket, so the tracker daemon and one-off commands can share one player.
"""

import json
import os
import socket
import subprocess
import time
from itertools import count
from pathlib import Path
from typing import Any, Optional, Sequence

from loguru import logger

from muse.core.config import Config, get_socket_path
from muse.core.errors import GatewayUnavailableError
from muse.domain.catalog.models import QueueEntry

from .gateway import PlaybackStatus, PlayState, STOPPED_STATUS

SOCKET_TIMEOUT = 2.0
SOCKET_WAIT_TIMEOUT = 5.0
STATUS_READ_ATTEMPTS = 3

_request_ids = count(1)


def send_mpv_command(socket_path: str, command: list[Any]) -> dict[str, Any]:
    """Send one JSON IPC command to MPV and return its reply.

    mpv broadcasts events to every client, so lines are read until the
    reply carrying our request_id arrives.

    Raises:
        GatewayUnavailableError: If the socket cannot be reached or answers garbage
    """
    if not os.path.exists(socket_path):
        raise GatewayUnavailableError(f"mpv socket not found: {socket_path}")

    request_id = next(_request_ids)
    payload = json.dumps({"command": command, "request_id": request_id}) + "\n"

    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(SOCKET_TIMEOUT)
            sock.connect(socket_path)
            sock.sendall(payload.encode("utf-8"))

            buffer = b""
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    raise GatewayUnavailableError("mpv closed the connection")
                buffer += chunk
                while b"\n" in buffer:
                    line, buffer = buffer.split(b"\n", 1)
                    if not line.strip():
                        continue
                    reply = json.loads(line.decode("utf-8"))
                    if reply.get("request_id") == request_id:
                        return reply
    except (socket.error, OSError) as e:
        raise GatewayUnavailableError(f"Cannot reach mpv at {socket_path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise GatewayUnavailableError(f"Invalid reply from mpv: {e}") from e


def get_mpv_property(socket_path: str, property_name: str) -> Any:
    """Get a property value from MPV, or None when the property is unavailable."""
    reply = send_mpv_command(socket_path, ["get_property", property_name])
    if reply.get("error") == "success":
        return reply.get("data")
    return None


def is_mpv_responding(socket_path: str) -> bool:
    try:
        send_mpv_command(socket_path, ["get_property", "idle-active"])
        return True
    except GatewayUnavailableError:
        return False


class MpvGateway:
    """PlaybackGateway backed by mpv's JSON IPC socket."""

    def __init__(self, socket_path: str):
        self.socket_path = str(socket_path)

    def _command(self, *args: Any) -> bool:
        reply = send_mpv_command(self.socket_path, list(args))
        ok = reply.get("error") == "success"
        if not ok:
            logger.debug(f"mpv command {args[0]} failed: {reply.get('error')}")
        return ok

    def _float_property(self, name: str) -> Optional[float]:
        value = get_mpv_property(self.socket_path, name)
        try:
            return float(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def get_status(self) -> PlaybackStatus:
        """Read one playback snapshot.

        Properties come from separate round-trips, so path is read again
        afterwards; if the track changed in between the read is retried, and
        after STATUS_READ_ATTEMPTS the new path is reported without timing.
        """
        if get_mpv_property(self.socket_path, "idle-active"):
            return STOPPED_STATUS

        path = get_mpv_property(self.socket_path, "path")
        for _ in range(STATUS_READ_ATTEMPTS):
            if not path:
                return STOPPED_STATUS

            paused = get_mpv_property(self.socket_path, "pause")
            elapsed = self._float_property("time-pos")
            duration = self._float_property("duration")

            path_after = get_mpv_property(self.socket_path, "path")
            if path_after == path:
                return PlaybackStatus(
                    state=PlayState.PAUSED if paused else PlayState.PLAYING,
                    current_path=str(path),
                    elapsed=elapsed,
                    duration=duration,
                )
            logger.debug(f"Track changed while reading status: {path} -> {path_after}")
            path = path_after

        if not path:
            return STOPPED_STATUS
        return PlaybackStatus(
            state=PlayState.PLAYING,
            current_path=str(path),
            elapsed=None,
            duration=None,
        )

    def enqueue(self, entries: Sequence[QueueEntry]) -> None:
        for index, entry in enumerate(entries):
            mode = "append-play" if index == 0 else "append"
            if not self._command("loadfile", entry.path, mode):
                logger.warning(f"mpv refused to load {entry.path}")

    def clear_queue(self) -> None:
        self._command("playlist-clear")
        # playlist-clear keeps the current entry; drop it too (fails when idle)
        self._command("playlist-remove", "current")

    def play(self) -> None:
        self._command("set_property", "playlist-pos", 0)
        self._command("set_property", "pause", False)

    def advance(self) -> None:
        self._command("playlist-next", "force")


def start_mpv(config: Config) -> Optional[subprocess.Popen]:
    """Start an idle MPV with JSON IPC unless one already answers.

    The process runs in its own session so it outlives the command that
    launched it.

    Returns:
        The new process, or None when mpv was already running or autostart is off
    """
    socket_path = str(get_socket_path(config))

    if is_mpv_responding(socket_path):
        return None

    if not config.player.autostart:
        logger.debug("mpv not running and autostart disabled")
        return None

    logger.info(f"Starting MPV player with socket: {socket_path}")

    try:
        # Remove stale socket if it exists
        if os.path.exists(socket_path):
            logger.debug(f"Removing existing socket: {socket_path}")
            os.unlink(socket_path)
        Path(socket_path).parent.mkdir(parents=True, exist_ok=True)

        cmd = [
            "mpv",
            "--idle=yes",
            "--no-video",
            "--no-terminal",
            f"--input-ipc-server={socket_path}",
            f"--volume={config.player.volume}",
            "--load-scripts=no",
        ]

        process = subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
        )
    except (subprocess.SubprocessError, OSError) as e:
        raise GatewayUnavailableError(f"Failed to start mpv: {e}") from e

    # Wait for socket to be created
    start_time = time.time()
    while not is_mpv_responding(socket_path):
        if process.poll() is not None or time.time() - start_time > SOCKET_WAIT_TIMEOUT:
            process.kill()
            raise GatewayUnavailableError(
                f"mpv did not open its socket within {SOCKET_WAIT_TIMEOUT}s"
            )
        time.sleep(0.1)

    logger.info("MPV started successfully")
    return process
