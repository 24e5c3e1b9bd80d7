"""
Behavior tracker: watches playback and turns it into catalog updates.

The tracker is a two-state machine (Idle, Tracking). Each poll reads a
PlaybackStatus from the gateway and feeds it to observe(), which
classifies the song that just ended as listened or skipped, records the
transition to the next song and touches the new song.
"""

import sqlite3
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from loguru import logger

from muse.core.config import TrackerConfig
from muse.core.errors import GatewayUnavailableError, MuseError
from muse.domain.catalog.models import Song
from muse.domain.catalog.store import CatalogStore
from muse.domain.playback.gateway import PlaybackGateway, PlaybackStatus


@dataclass(frozen=True)
class Idle:
    """Nothing known to the catalog is playing."""


@dataclass(frozen=True)
class Tracking:
    """A catalog song is current; elapsed/duration are the last observed values."""

    song: Song
    started_at: float
    last_elapsed: float
    last_duration: Optional[float]


TrackerState = Union[Idle, Tracking]


class Outcome(str, Enum):
    LISTEN = "listen"
    SKIP = "skip"


def classify(
    elapsed: float, duration: Optional[float], config: TrackerConfig
) -> Optional[Outcome]:
    """
    Decide whether a song that stopped at elapsed counts as listened.

    A song is listened when elapsed / duration is strictly greater than
    config.listen_threshold, otherwise skipped. A missing or non-positive
    duration falls back to config.default_song_length.

    Returns:
        The outcome, or None when no usable duration is available

    Examples:
        >>> classify(81.0, 100.0, TrackerConfig())
        <Outcome.LISTEN: 'listen'>
        >>> classify(80.0, 100.0, TrackerConfig())
        <Outcome.SKIP: 'skip'>
    """
    if duration is None or duration <= 0:
        duration = config.default_song_length
    if duration is None or duration <= 0:
        return None

    ratio = elapsed / duration
    return Outcome.LISTEN if ratio > config.listen_threshold else Outcome.SKIP


def apply_transition(
    store: CatalogStore,
    previous: Song,
    outcome: Optional[Outcome],
    next_song: Optional[Song] = None,
) -> None:
    """
    Write the effects of leaving previous for next_song.

    Records the outcome for previous, then (when next_song is given)
    the previous -> next_song connection and a touch on next_song.
    """
    if outcome is None:
        logger.warning(
            f"No duration for {previous.display_name()}, not classifying it"
        )
    else:
        store.increment_counters(
            previous.id,
            listen=outcome == Outcome.LISTEN,
            skip=outcome == Outcome.SKIP,
        )
        logger.info(f"{outcome.value}: {previous.display_name()}")

    if next_song is not None:
        store.record_transition(previous.id, next_song.id)
        store.increment_counters(next_song.id, touch=True)


class BehaviorTracker:
    """
    Polls a playback gateway and records listening behavior in the catalog.

    run() drives the loop in the calling thread; start()/stop() run it on a
    background thread.
    """

    def __init__(
        self,
        store: CatalogStore,
        gateway: PlaybackGateway,
        config: Optional[TrackerConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.gateway = gateway
        self.config = config or TrackerConfig()
        self.clock = clock

        self._state: TrackerState = Idle()
        self._unknown_paths: set[str] = set()
        self._consecutive_failures = 0
        self._degraded = False
        self._backoff = self.config.backoff_initial

        self._stop_event: Optional[threading.Event] = None
        self.thread: Optional[threading.Thread] = None

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def degraded(self) -> bool:
        """True after degraded_after consecutive gateway failures."""
        return self._degraded

    @property
    def current_backoff(self) -> float:
        """Seconds the loop waits after the next gateway failure."""
        return self._backoff

    # State machine

    def _lookup(self, path: str) -> Optional[Song]:
        song = self.store.get_by_path(path)
        if song is None and path not in self._unknown_paths:
            self._unknown_paths.add(path)
            logger.info(f"Not in catalog, ignoring: {path}")
        return song

    def _start_tracking(self, song: Song, status: PlaybackStatus) -> Tracking:
        return Tracking(
            song=song,
            started_at=self.clock(),
            last_elapsed=status.elapsed or 0.0,
            last_duration=status.duration,
        )

    def _is_replay(self, state: Tracking, status: PlaybackStatus) -> bool:
        """True when the tracked path jumped back to its start after playing on."""
        if status.elapsed is None:
            return False
        window = self.config.replay_window
        return status.elapsed < window and state.last_elapsed - status.elapsed > window

    def observe(self, status: PlaybackStatus) -> TrackerState:
        """Advance the state machine with one playback observation."""
        state = self._state

        if isinstance(state, Idle):
            if not status.is_active:
                return state
            song = self._lookup(status.current_path)
            if song is None:
                return state
            self._state = self._start_tracking(song, status)
            self.store.increment_counters(song.id, touch=True)
            logger.debug(f"Tracking {song.display_name()}")
            return self._state

        if not status.is_active:
            self.finalize()
            return self._state

        if status.current_path == state.song.path:
            if self._is_replay(state, status):
                # Same file again: close the finished play, no self-connection
                outcome = classify(state.last_elapsed, state.last_duration, self.config)
                apply_transition(self.store, state.song, outcome)
                self._state = self._start_tracking(state.song, status)
                self.store.increment_counters(state.song.id, touch=True)
                logger.debug(f"Replaying {state.song.display_name()}")
                return self._state

            self._state = Tracking(
                song=state.song,
                started_at=state.started_at,
                last_elapsed=(
                    status.elapsed if status.elapsed is not None else state.last_elapsed
                ),
                last_duration=(
                    status.duration
                    if status.duration is not None
                    else state.last_duration
                ),
            )
            return self._state

        # Path changed: classify the old song before moving on
        outcome = classify(state.last_elapsed, state.last_duration, self.config)
        next_song = self._lookup(status.current_path)
        self._state = Idle() if next_song is None else self._start_tracking(next_song, status)
        apply_transition(self.store, state.song, outcome, next_song)
        return self._state

    def finalize(self) -> None:
        """Classify the tracked song (if any) and return to Idle."""
        state = self._state
        if not isinstance(state, Tracking):
            return
        self._state = Idle()
        outcome = classify(state.last_elapsed, state.last_duration, self.config)
        apply_transition(self.store, state.song, outcome)

    # Polling loop

    def _record_gateway_failure(self, error: GatewayUnavailableError) -> float:
        """Count a failure and return the delay before the next attempt."""
        self._consecutive_failures += 1
        logger.debug(f"Gateway unavailable ({self._consecutive_failures}): {error}")

        if (
            not self._degraded
            and self._consecutive_failures >= self.config.degraded_after
        ):
            self._degraded = True
            logger.warning(
                f"Player unreachable after {self._consecutive_failures} attempts, "
                "tracker running degraded"
            )

        delay = self._backoff
        self._backoff = min(self._backoff * 2, self.config.backoff_max)
        return delay

    def _record_gateway_success(self) -> None:
        if self._degraded:
            logger.info("Player reachable again, leaving degraded mode")
        self._degraded = False
        self._consecutive_failures = 0
        self._backoff = self.config.backoff_initial

    def poll_once(self) -> float:
        """
        Run one observation cycle.

        Returns:
            Seconds to wait before the next cycle
        """
        try:
            status = self.gateway.get_status()
        except GatewayUnavailableError as e:
            return self._record_gateway_failure(e)

        self._record_gateway_success()

        try:
            self.observe(status)
        except (MuseError, sqlite3.Error) as e:
            logger.error(f"Failed to record playback: {e}")

        return self.config.poll_interval

    def run(self, stop_event: threading.Event) -> None:
        """Poll until stop_event is set, then classify the tracked song."""
        logger.info("Behavior tracker started")
        while not stop_event.is_set():
            delay = self.poll_once()
            stop_event.wait(delay)

        try:
            self.finalize()
        except (MuseError, sqlite3.Error) as e:
            logger.error(f"Failed to record final song: {e}")
        logger.info("Behavior tracker stopped")

    def start(self) -> None:
        """Start the tracker in a background thread."""
        if self.thread and self.thread.is_alive():
            logger.warning("Tracker already running")
            return

        self._stop_event = threading.Event()
        self.thread = threading.Thread(
            target=self.run, args=(self._stop_event,), daemon=True
        )
        self.thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal the background thread to stop and wait for it."""
        if self._stop_event:
            self._stop_event.set()
        if self.thread and self.thread.is_alive():
            self.thread.join(timeout=timeout)
        self.thread = None
