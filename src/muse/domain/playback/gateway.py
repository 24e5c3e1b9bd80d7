"""
Playback gateway interface.

The queue generator and behavior tracker only talk to the player through
this protocol, so any transport (mpv, a fake in tests) can sit behind it.
"""

from enum import Enum
from typing import NamedTuple, Optional, Protocol, Sequence

from muse.domain.catalog.models import QueueEntry


class PlayState(str, Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"


class PlaybackStatus(NamedTuple):
    """Snapshot of what the player is doing."""

    state: PlayState
    current_path: Optional[str] = None
    elapsed: Optional[float] = None  # seconds
    duration: Optional[float] = None  # seconds, None when unknown

    @property
    def is_active(self) -> bool:
        """True when a song is loaded (playing or paused)."""
        return self.state != PlayState.STOPPED and self.current_path is not None


STOPPED_STATUS = PlaybackStatus(state=PlayState.STOPPED)


class PlaybackGateway(Protocol):
    """Transport control and status.

    Implementations raise GatewayUnavailableError when the player
    cannot be reached.
    """

    def get_status(self) -> PlaybackStatus: ...

    def enqueue(self, entries: Sequence[QueueEntry]) -> None: ...

    def clear_queue(self) -> None: ...

    def play(self) -> None: ...

    def advance(self) -> None: ...
