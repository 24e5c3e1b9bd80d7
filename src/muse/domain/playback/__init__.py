"""Playback domain - the gateway protocol and its MPV implementation.

This domain handles:
- Playback status snapshots (playing, paused, stopped)
- MPV player integration via JSON IPC
"""

from .gateway import PlaybackGateway, PlaybackStatus, PlayState, STOPPED_STATUS
from .mpv import (
    MpvGateway,
    get_mpv_property,
    is_mpv_responding,
    send_mpv_command,
    start_mpv,
)

__all__ = [
    # Gateway
    "PlaybackGateway",
    "PlaybackStatus",
    "PlayState",
    "STOPPED_STATUS",
    # MPV
    "MpvGateway",
    "get_mpv_property",
    "is_mpv_responding",
    "send_mpv_command",
    "start_mpv",
]
