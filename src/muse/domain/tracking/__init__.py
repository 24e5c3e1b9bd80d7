"""Tracking domain - learns listening behavior from playback.

This domain handles:
- The Idle/Tracking state machine and listen/skip classification
- The polling loop with backoff while the player is unreachable
- Running the tracker as a background daemon
"""

from .tracker import (
    BehaviorTracker,
    Idle,
    Outcome,
    Tracking,
    TrackerState,
    apply_transition,
    classify,
)
from .daemon import (
    get_pid_file_path,
    is_daemon_running,
    read_pid,
    run_daemon,
    start_daemon,
    stop_daemon,
)

__all__ = [
    # Tracker
    "BehaviorTracker",
    "Idle",
    "Outcome",
    "Tracking",
    "TrackerState",
    "apply_transition",
    "classify",
    # Daemon
    "get_pid_file_path",
    "is_daemon_running",
    "read_pid",
    "run_daemon",
    "start_daemon",
    "stop_daemon",
]
