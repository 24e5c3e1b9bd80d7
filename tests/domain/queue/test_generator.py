"""
Tests for the Current, Thread and Stream queue strategies.
"""

import random
from unittest.mock import MagicMock, call

import pytest

from muse.core.config import QueueConfig
from muse.core.errors import EmptyCatalogError, SongNotFoundError
from muse.domain.catalog.models import QueueEntry, Song
from muse.domain.queue import (
    PlayMode,
    QueueStrategy,
    generate_path,
    generate_queue,
    load_queue,
    pad_queue,
    play_queue,
    random_pick,
)


def titles(entries: list[QueueEntry]) -> list[str]:
    return [entry.title for entry in entries]


@pytest.fixture
def filler(make_song):
    """Add unconnected songs so padding has something to draw from."""

    def _filler(count: int) -> list[Song]:
        return [make_song(f"Filler {i}", listens=1) for i in range(count)]

    return _filler


class TestRandomPick:
    def test_empty_catalog_raises(self, store) -> None:
        with pytest.raises(EmptyCatalogError):
            random_pick(store, 10)

    def test_returns_highest_score(self) -> None:
        low = Song(1, "/a", "A", "B", "low", touches=1, listens=1)
        high = Song(2, "/b", "A", "B", "high", touches=1, listens=5)
        fake_store = MagicMock()
        fake_store.random_sample.return_value = [low, high]

        assert random_pick(fake_store, 10) == high
        fake_store.random_sample.assert_called_once_with(10)

    def test_tie_goes_to_first_drawn(self) -> None:
        first = Song(5, "/a", "A", "B", "first")
        second = Song(1, "/b", "A", "B", "second")
        fake_store = MagicMock()
        fake_store.random_sample.return_value = [first, second]

        assert random_pick(fake_store, 10) == first

    def test_excluded_songs_are_skipped(self) -> None:
        taken = Song(1, "/a", "A", "B", "taken", touches=1, listens=9)
        free = Song(2, "/b", "A", "B", "free")
        fake_store = MagicMock()
        fake_store.random_sample.return_value = [taken, free]

        assert random_pick(fake_store, 10, exclude={1}) == free
        assert random_pick(fake_store, 10, exclude={1, 2}) is None


class TestGeneratePath:
    def test_follows_best_weighted_connection(self, store, make_song, connect) -> None:
        start = make_song("Start", listens=1)
        weak = make_song("Weak", listens=1)
        strong = make_song("Strong", listens=3)
        after = make_song("After", listens=1)
        connect(start, weak)
        connect(start, strong)
        connect(strong, after)

        path = generate_path(store, start.id, 8)

        assert [s.title for s in path] == ["Strong", "After"]

    def test_edge_count_boosts_weight(self, store, make_song, connect) -> None:
        start = make_song("Start", listens=1)
        popular = make_song("Popular", listens=1)
        rare = make_song("Rare", listens=1)
        connect(start, rare, 1)
        connect(start, popular, 5)

        assert generate_path(store, start.id, 1)[0].title == "Popular"

    def test_ties_go_to_smallest_id(self, store, make_song, connect) -> None:
        start = make_song("Start", listens=1)
        first = make_song("First", listens=1)
        second = make_song("Second", listens=1)
        connect(start, second)
        connect(start, first)

        assert generate_path(store, start.id, 1)[0].id == first.id

    def test_stops_at_non_positive_score(self, store, make_song, connect) -> None:
        start = make_song("Start", listens=1)
        disliked = make_song("Disliked", touches=20, skips=5)
        connect(start, disliked)

        assert generate_path(store, start.id, 8) == []

    def test_revisits_allowed_and_length_capped(self, store, make_song, connect) -> None:
        a = make_song("A", listens=1)
        b = make_song("B", listens=1)
        connect(a, b)
        connect(b, a)

        path = generate_path(store, a.id, 5)

        assert [s.title for s in path] == ["B", "A", "B", "A", "B"]


class TestCurrentQueue:
    def test_interleaves_two_paths(self, store, make_song, connect, filler) -> None:
        start = make_song("Start", listens=1)
        left = make_song("Left", listens=5)
        right = make_song("Right", listens=3)
        left_next = make_song("Left Next", listens=1)
        left_after = make_song("Left After", listens=1)
        right_next = make_song("Right Next", listens=1)
        connect(start, left)
        connect(start, right)
        connect(left, left_next)
        connect(left_next, left_after)
        connect(right, right_next)
        filler(10)

        queue = generate_queue(store, QueueStrategy.CURRENT, "Start")

        assert titles(queue)[:4] == ["Start", "Left Next", "Right Next", "Left After"]
        assert 9 <= len(queue) <= 27

    def test_zero_score_target_still_leads_a_path(
        self, store, make_song, connect, filler
    ) -> None:
        start = make_song("Start", listens=1)
        bridge = make_song("Bridge", touches=20, skips=3)
        follower = make_song("Follower", listens=9)
        connect(start, bridge)
        connect(bridge, follower)
        filler(12)

        queue = generate_queue(store, QueueStrategy.CURRENT, "Start")

        assert titles(queue)[:2] == ["Start", "Follower"]

    def test_paths_limited_to_four_songs(self, store, make_song, connect, filler) -> None:
        start = make_song("Start", listens=1)
        chain = [make_song(f"Chain {i}", listens=1) for i in range(6)]
        connect(start, chain[0])
        for a, b in zip(chain, chain[1:]):
            connect(a, b)
        filler(10)

        queue = generate_queue(store, QueueStrategy.CURRENT, "Start")

        assert titles(queue)[:5] == ["Start", "Chain 1", "Chain 2", "Chain 3", "Chain 4"]


class TestThreadQueue:
    def test_start_then_path_then_padding(self, store, make_song, connect, filler) -> None:
        start = make_song("Start", listens=1)
        nxt = make_song("Next", listens=1)
        connect(start, nxt)
        filler(12)

        queue = generate_queue(store, QueueStrategy.THREAD, "Start")

        assert titles(queue)[:2] == ["Start", "Next"]
        assert len(queue) == 9
        assert len(set(titles(queue))) == 9

    def test_long_path_is_truncated(self, store, make_song, connect) -> None:
        a = make_song("A", listens=1)
        b = make_song("B", listens=1)
        connect(a, b)
        connect(b, a)
        config = QueueConfig(min_length=2, max_length=5, thread_path_length=8)

        queue = generate_queue(store, QueueStrategy.THREAD, "A", config=config)

        assert titles(queue) == ["A", "B", "A", "B", "A"]

    def test_small_catalog_gives_up_padding(self, store, make_song) -> None:
        make_song("Only", listens=1)
        make_song("Other", listens=1)

        queue = generate_queue(store, QueueStrategy.THREAD, "Only")

        assert sorted(titles(queue)) == ["Only", "Other"]


def has_back_to_back_repeat(entries: list[QueueEntry]) -> bool:
    return any(a.path == b.path for a, b in zip(entries, entries[1:]))


class TestStreamQueue:
    def test_always_thirty_entries(self, store, make_song) -> None:
        make_song("Lonely", listens=1)
        make_song("Other")

        queue = generate_queue(store, QueueStrategy.STREAM, "Lonely", rng=random.Random(1))

        assert len(queue) == 30
        assert queue[0].title == "Lonely"

    def test_single_song_catalog_repeats(self, store, make_song) -> None:
        make_song("Only", listens=1)

        queue = generate_queue(store, QueueStrategy.STREAM, "Only", rng=random.Random(1))

        assert titles(queue) == ["Only"] * 30

    def test_walks_graph_before_leaving_it(self, store, make_song, connect) -> None:
        clique = [make_song(name, listens=1) for name in ("A", "B", "C", "D")]
        make_song("Outsider", touches=1, listens=50)
        for a in clique:
            for b in clique:
                if a.id != b.id:
                    connect(a, b)

        queue = generate_queue(store, QueueStrategy.STREAM, "A", rng=random.Random(3))

        assert len(queue) == 30
        assert titles(queue)[0] == "A"
        assert sorted(titles(queue)[:4]) == ["A", "B", "C", "D"]
        assert titles(queue)[4] == "Outsider"

    def test_poorly_connected_song_uses_random_pick(self, store, make_song, connect) -> None:
        start = make_song("Start", listens=1)
        neighbour = make_song("Neighbour", listens=1)
        make_song("Favourite", touches=1, listens=50)
        connect(start, neighbour)  # below the three-connection minimum

        queue = generate_queue(store, QueueStrategy.STREAM, "Start", rng=random.Random(0))

        # Favourite wins every sample it is not excluded from
        assert titles(queue)[:4] == ["Start", "Favourite", "Neighbour", "Favourite"]
        assert not has_back_to_back_repeat(queue)

    def test_top_scoring_start_does_not_repeat(self, store, make_song) -> None:
        make_song("Start", touches=10, listens=9, loved=True)
        for i in range(5):
            make_song(f"Other {i}", listens=1)

        queue = generate_queue(store, QueueStrategy.STREAM, "Start", rng=random.Random(5))

        assert len(queue) == 30
        assert len(set(titles(queue)[:6])) == 6
        assert not has_back_to_back_repeat(queue)


class TestPlayQueue:
    def test_algorithm_takes_top_scored_songs(self, store, make_song) -> None:
        make_song("Low", listens=1)
        make_song("High", listens=5)
        make_song("Middle", listens=3)
        make_song("Zero")

        queue = play_queue(store, PlayMode.ALGORITHM, config=QueueConfig(play_length=2))

        assert titles(queue) == ["High", "Middle"]

    def test_shuffle_takes_every_song(self, store, make_song) -> None:
        for i in range(8):
            make_song(f"Song {i}")

        queue = play_queue(store, PlayMode.SHUFFLE, rng=random.Random(7))

        assert sorted(titles(queue)) == sorted(f"Song {i}" for i in range(8))

    def test_empty_catalog(self, store) -> None:
        with pytest.raises(EmptyCatalogError):
            play_queue(store, PlayMode.ALGORITHM)


class TestGenerateQueue:
    def test_unknown_song(self, store, make_song) -> None:
        make_song("Something")

        with pytest.raises(SongNotFoundError):
            generate_queue(store, QueueStrategy.THREAD, "missing")

    def test_pad_respects_attempt_limit(self, store, make_song) -> None:
        only = make_song("Only")
        config = QueueConfig(min_length=9, pad_attempts=3)

        assert pad_queue(store, [only], config) == [only]


class TestLoadQueue:
    def test_clear_enqueue_play_in_order(self) -> None:
        gateway = MagicMock()
        entries = [QueueEntry("/m/a.mp3", "A", "a")]

        load_queue(gateway, entries)

        assert gateway.mock_calls == [call.clear_queue(), call.enqueue(entries), call.play()]

    def test_empty_queue_rejected(self) -> None:
        gateway = MagicMock()

        with pytest.raises(ValueError):
            load_queue(gateway, [])
        gateway.clear_queue.assert_not_called()
