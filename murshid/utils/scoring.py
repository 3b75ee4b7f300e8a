# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Score Helpers
Rounding and clamping shared by every similarity module.
"""

import math


def round_score(value: float) -> float:
    """
    Round to 2 decimals, halves away from zero for non-negative scores.
    Python's round() is banker's rounding, which would store 0.125 as 0.12.
    """
    return math.floor(value * 100 + 0.5) / 100


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def weighted_sum(pairs: list[tuple[float, float]]) -> float:
    """Sum of score * weight over (score, weight) pairs."""
    return sum(score * weight for score, weight in pairs)


def to_percent(value: float) -> int:
    """Whole-number percentage, halves rounded up like round_score."""
    return int(math.floor(value * 100 + 0.5))
