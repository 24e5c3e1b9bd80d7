"""
Recommendation scoring for songs.

Pure functional implementation with no side effects or database access.
A song's score is derived only from its interaction counters and loved flag.
"""

import math
from typing import Any, Iterable, Protocol

# Touch count at which scoring switches from fixed weights to log dampening
DAMPEN_THRESHOLD = 30

LOG_BASE = 1.2


class Scorable(Protocol):
    """Anything carrying the interaction counters a score is computed from."""

    id: int
    touches: int
    listens: int
    skips: int
    loved: bool


def weight(touches: int) -> tuple[int, int]:
    """
    Get the (listen, skip) weights for a lightly-touched song.

    - <5 touches: (4, 1) reward early listens, forgive early skips
    - 5-15 touches: (2, 2) neutral
    - >15 touches: (1, 4) punish skips on songs that keep coming up

    Args:
        touches: Number of times the song has been suggested or played

    Returns:
        (listen_weight, skip_weight)

    Examples:
        >>> weight(4)
        (4, 1)
        >>> weight(16)
        (1, 4)
    """
    if touches < 5:
        return (4, 1)
    elif touches <= 15:
        return (2, 2)
    else:
        return (1, 4)


def dampen(touches: int) -> float:
    """
    Log-scale dampening factor used once a song has been touched often.

    Formula: log_1.2(touches + 1)

    Examples:
        >>> round(dampen(50), 2)
        21.57
    """
    return math.log(touches + 1) / math.log(LOG_BASE)


def score_counters(touches: int, listens: int, skips: int, loved: bool = False) -> float:
    """
    Compute a recommendation score from raw interaction counters.

    Args:
        touches: Times the song was suggested or played
        listens: Times the song was played to completion
        skips: Times the song was abandoned early
        loved: Whether the user marked the song as loved

    Returns:
        Score >= 0. Loved songs score double.

    Examples:
        >>> score_counters(3, 2, 1)
        7.0
        >>> score_counters(10, 6, 4)
        4.0
        >>> score_counters(10, 6, 4, loved=True)
        8.0
    """
    if touches < DAMPEN_THRESHOLD:
        listen_weight, skip_weight = weight(touches)
        raw = float(listen_weight * listens - skip_weight * skips)
    else:
        factor = dampen(touches)
        raw = factor * listens - factor * skips

    result = max(raw, 0.0)
    if loved:
        result *= 2
    return result


def score(song: Scorable) -> float:
    """Score a song from its counters. See score_counters()."""
    return score_counters(song.touches, song.listens, song.skips, bool(song.loved))


def connection_weight(base: float, count: int) -> float:
    """
    Weight a candidate's score by how often the user moved to it.

    Formula: base * log_1.2(count + 1), or base when count is 0

    Args:
        base: Score of the candidate song
        count: Number of observed transitions to the candidate

    Returns:
        Weighted score used to rank candidates during path generation
    """
    if count == 0:
        return base
    return base * math.log(count + 1) / math.log(LOG_BASE)


def rank_songs(songs: Iterable[Scorable]) -> list[tuple[Any, float]]:
    """
    Order songs by descending score, ties broken by smallest id.

    Returns:
        List of (song, score) pairs
    """
    scored = [(song, score(song)) for song in songs]
    scored.sort(key=lambda pair: (-pair[1], pair[0].id))
    return scored


def score_statistics(songs: Iterable[Scorable]) -> dict[str, Any]:
    """
    Summarize the score distribution of a set of songs.

    Returns:
        Dict with count, mean, variance, std_dev, min and max.
        All values are zero for an empty input.
    """
    scores = [score(song) for song in songs]
    if not scores:
        return {
            "count": 0,
            "mean": 0.0,
            "variance": 0.0,
            "std_dev": 0.0,
            "min": 0.0,
            "max": 0.0,
        }

    count = len(scores)
    mean = sum(scores) / count
    variance = sum((s - mean) ** 2 for s in scores) / count

    return {
        "count": count,
        "mean": mean,
        "variance": variance,
        "std_dev": math.sqrt(variance),
        "min": min(scores),
        "max": max(scores),
    }
