"""Scoring domain - turns interaction counters into recommendation weights."""

from .scoring import (
    DAMPEN_THRESHOLD,
    Scorable,
    connection_weight,
    dampen,
    rank_songs,
    score,
    score_counters,
    score_statistics,
    weight,
)

__all__ = [
    "DAMPEN_THRESHOLD",
    "Scorable",
    "connection_weight",
    "dampen",
    "rank_songs",
    "score",
    "score_counters",
    "score_statistics",
    "weight",
]
