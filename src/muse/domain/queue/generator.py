"""
Queue generation strategies.

All strategies start from a song found by name and walk the connection
graph through CatalogStore.connections_from(), falling back to random picks
when the graph runs dry. Every strategy terminates: path lengths are capped
and padding gives up after a bounded number of attempts.
"""

import random
from enum import Enum
from typing import Optional, Sequence

from loguru import logger

from muse.core.config import QueueConfig
from muse.core.errors import EmptyCatalogError
from muse.domain.catalog.models import QueueEntry, Song
from muse.domain.catalog.store import CatalogStore
from muse.domain.playback.gateway import PlaybackGateway
from muse.domain.scoring import connection_weight, rank_songs, score


class QueueStrategy(str, Enum):
    CURRENT = "current"
    THREAD = "thread"
    STREAM = "stream"


def _ranked_connections(store: CatalogStore, song_id: int) -> list[Song]:
    """Connected songs by descending connection weight, ties by smallest id."""
    weighted = [
        (connection_weight(score(song), count), song)
        for song, count in store.connections_from(song_id)
    ]
    weighted.sort(key=lambda pair: (-pair[0], pair[1].id))
    return [song for _, song in weighted]


def random_pick(
    store: CatalogStore, sample_size: int, exclude: Optional[set[int]] = None
) -> Optional[Song]:
    """
    Sample songs and return the highest scoring one.

    Ties go to the song drawn first. Songs whose id is in exclude are
    ignored, so the result may be None when every drawn song is excluded.

    Raises:
        EmptyCatalogError: If the catalog has no songs
    """
    sample = store.random_sample(sample_size)
    if not sample:
        raise EmptyCatalogError()

    best: Optional[Song] = None
    best_score = 0.0
    for song in sample:
        if exclude and song.id in exclude:
            continue
        song_score = score(song)
        if best is None or song_score > best_score:
            best, best_score = song, song_score
    return best


def generate_path(store: CatalogStore, start_id: int, max_length: int) -> list[Song]:
    """
    Greedily follow the best-weighted connection from start_id.

    Stops when the current song has no connections, when the best
    candidate's own score is not positive, or after max_length songs.
    Songs may repeat.

    Returns:
        The songs after start_id, at most max_length of them
    """
    path: list[Song] = []
    current_id = start_id

    while len(path) < max_length:
        ranked = _ranked_connections(store, current_id)
        if not ranked:
            break
        best = ranked[0]
        if score(best) <= 0:
            break
        path.append(best)
        current_id = best.id

    return path


def pad_queue(store: CatalogStore, songs: list[Song], config: QueueConfig) -> list[Song]:
    """Add random picks not already queued until min_length is reached.

    Gives up after config.pad_attempts draws and returns what it has.
    """
    padded = list(songs)
    present = {song.id for song in padded}
    attempts = 0

    while len(padded) < config.min_length and attempts < config.pad_attempts:
        attempts += 1
        pick = random_pick(store, config.sample_size, exclude=present)
        if pick is None:
            continue
        padded.append(pick)
        present.add(pick.id)

    if len(padded) < config.min_length:
        logger.debug(
            f"Padding stopped at {len(padded)} songs after {attempts} attempts"
        )
    return padded


def _interleave(paths: Sequence[list[Song]]) -> list[Song]:
    """Take one song from each path in turn, skipping exhausted paths."""
    result: list[Song] = []
    longest = max((len(path) for path in paths), default=0)
    for index in range(longest):
        for path in paths:
            if index < len(path):
                result.append(path[index])
    return result


def current_queue(store: CatalogStore, start: Song, config: QueueConfig) -> list[Song]:
    """Two interleaved paths following the start song's strongest connections."""
    targets = _ranked_connections(store, start.id)[:2]
    paths = [
        generate_path(store, target.id, config.current_path_length)
        for target in targets
    ]

    songs = [start] + _interleave(paths)
    songs = songs[: config.max_length]
    return pad_queue(store, songs, config)


def thread_queue(store: CatalogStore, start: Song, config: QueueConfig) -> list[Song]:
    """A single greedy path from the start song."""
    songs = [start] + generate_path(store, start.id, config.thread_path_length)
    songs = pad_queue(store, songs, config)
    return songs[: config.max_length]


def _fresh_pick(
    store: CatalogStore, config: QueueConfig, visited: set[int], catalog_size: int
) -> Song:
    """Random pick avoiding visited songs while unvisited ones remain."""
    if len(visited) < catalog_size:
        for _ in range(config.pad_attempts):
            pick = random_pick(store, config.sample_size, exclude=visited)
            if pick is not None:
                return pick
    return random_pick(store, config.sample_size)


def stream_queue(
    store: CatalogStore, start: Song, config: QueueConfig, rng: random.Random
) -> list[Song]:
    """
    A fixed-length random walk from the start song.

    Each step picks uniformly among positively scored connected songs not
    yet in the walk, or falls back to a random pick when the current song
    is poorly connected. Once every song has been walked the visited set
    starts over, so songs repeat only in catalogs smaller than the walk.
    """
    catalog_size = store.count_songs()
    songs = [start]
    visited = {start.id}
    current = start

    while len(songs) < config.stream_length:
        if len(visited) >= catalog_size:
            visited = {current.id}

        connections = store.connections_from(current.id)
        positive = sorted(
            (
                song
                for song, _ in connections
                if score(song) > 0 and song.id not in visited
            ),
            key=lambda song: song.id,
        )

        if len(connections) < config.stream_min_connections or not positive:
            next_song = _fresh_pick(store, config, visited, catalog_size)
        else:
            next_song = rng.choice(positive)

        songs.append(next_song)
        visited.add(next_song.id)
        current = next_song

    return songs


def generate_queue(
    store: CatalogStore,
    strategy: QueueStrategy,
    query: str,
    config: Optional[QueueConfig] = None,
    rng: Optional[random.Random] = None,
) -> list[QueueEntry]:
    """
    Build a queue for the song matching query.

    Args:
        store: Catalog to read songs and connections from
        strategy: Which queue shape to build
        query: Song name passed to CatalogStore.find_by_name()
        config: Queue lengths and thresholds (default: QueueConfig())
        rng: Random source for stream steps

    Returns:
        Queue entries, starting with the matched song

    Raises:
        SongNotFoundError: If no song matches query
        EmptyCatalogError: If the catalog is empty
    """
    config = config or QueueConfig()
    rng = rng or random.Random()

    start = store.find_by_name(query)
    logger.info(f"Generating {strategy.value} queue from {start.display_name()}")

    if strategy == QueueStrategy.CURRENT:
        songs = current_queue(store, start, config)
    elif strategy == QueueStrategy.THREAD:
        songs = thread_queue(store, start, config)
    elif strategy == QueueStrategy.STREAM:
        songs = stream_queue(store, start, config, rng)
    else:
        raise ValueError(f"Unknown queue strategy: {strategy}")

    logger.debug(f"Generated {len(songs)} songs for {strategy.value} queue")
    return [QueueEntry.from_song(song) for song in songs]


class PlayMode(str, Enum):
    ALGORITHM = "algorithm"
    SHUFFLE = "shuffle"


def play_queue(
    store: CatalogStore,
    mode: PlayMode,
    config: Optional[QueueConfig] = None,
    rng: Optional[random.Random] = None,
) -> list[QueueEntry]:
    """
    Build a queue from the whole catalog instead of a start song.

    ALGORITHM takes the config.play_length highest scoring songs; SHUFFLE
    takes every song in random order.

    Raises:
        EmptyCatalogError: If the catalog has no songs
    """
    config = config or QueueConfig()
    rng = rng or random.Random()

    songs = store.all_songs()
    if not songs:
        raise EmptyCatalogError()

    if mode == PlayMode.ALGORITHM:
        chosen = [song for song, _ in rank_songs(songs)[: config.play_length]]
    elif mode == PlayMode.SHUFFLE:
        chosen = list(songs)
        rng.shuffle(chosen)
    else:
        raise ValueError(f"Unknown play mode: {mode}")

    logger.info(f"Playing {len(chosen)} songs in {mode.value} mode")
    return [QueueEntry.from_song(song) for song in chosen]


def load_queue(gateway: PlaybackGateway, entries: Sequence[QueueEntry]) -> None:
    """Replace the player's queue with entries and start playing.

    Raises:
        ValueError: If entries is empty
    """
    if not entries:
        raise ValueError("Cannot load an empty queue")

    gateway.clear_queue()
    gateway.enqueue(entries)
    gateway.play()
