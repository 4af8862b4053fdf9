"""
Level Calculator - maps activity volume and aggregate accuracy to a
continuous 1.0-5.0 milestone level.

Level 1: < 10 activities, < 50% accuracy
Level 2: 10-30 activities, 50-65% accuracy
Level 3: 30-60 activities, 65-80% accuracy (graduation target)
Level 4: 60-100 activities, 80-90% accuracy
Level 5: 100+ activities, 90%+ accuracy
"""

from typing import Sequence, Tuple

MIN_LEVEL = 1.0
MAX_LEVEL = 5.0

COUNT_WEIGHT = 0.4
SCORE_WEIGHT = 0.6

# (exclusive upper bound, level); anything above the last bound is level 5
COUNT_BUCKETS: Sequence[Tuple[float, int]] = ((10, 1), (30, 2), (60, 3), (100, 4))
SCORE_BUCKETS: Sequence[Tuple[float, int]] = ((0.50, 1), (0.65, 2), (0.80, 3), (0.90, 4))


def _bucket(value: float, buckets: Sequence[Tuple[float, int]]) -> int:
    for upper, level in buckets:
        if value < upper:
            return level
    return 5


def count_level(activity_count: int) -> int:
    return _bucket(activity_count, COUNT_BUCKETS)


def score_level(avg_score: float) -> int:
    return _bucket(avg_score, SCORE_BUCKETS)


def calculate_level(activity_count: int, avg_score: float) -> float:
    """Blend of volume (40%) and accuracy (60%), floored at 1.0, one decimal."""
    blended = count_level(activity_count) * COUNT_WEIGHT + score_level(avg_score) * SCORE_WEIGHT
    return round(min(max(MIN_LEVEL, blended), MAX_LEVEL), 1)
