"""Queue domain - Current, Thread and Stream queue strategies."""

from .generator import (
    PlayMode,
    QueueStrategy,
    current_queue,
    generate_path,
    generate_queue,
    load_queue,
    pad_queue,
    play_queue,
    random_pick,
    stream_queue,
    thread_queue,
)

__all__ = [
    "PlayMode",
    "QueueStrategy",
    "current_queue",
    "generate_path",
    "generate_queue",
    "load_queue",
    "pad_queue",
    "play_queue",
    "random_pick",
    "stream_queue",
    "thread_queue",
]
