# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Time Similarity
Scores how close two "date occurred" values are. Items are usually
found within days of being lost; beyond the cut-off window the pair
earns nothing from this dimension.
"""

from __future__ import annotations

from datetime import date, datetime

DEFAULT_MAX_DATE_DIFF_DAYS = 45

# (max day difference, score), checked in order
DAY_BANDS: tuple[tuple[float, float], ...] = (
    (1.0, 1.0),
    (3.0, 0.95),
    (7.0, 0.85),
    (14.0, 0.7),
)
LATE_FLOOR = 0.2


def day_difference(d1: date | datetime, d2: date | datetime) -> float:
    """Absolute difference in (possibly fractional) days."""
    if isinstance(d1, datetime) != isinstance(d2, datetime):
        # Compare calendar dates when only one side carries a time
        d1 = d1.date() if isinstance(d1, datetime) else d1
        d2 = d2.date() if isinstance(d2, datetime) else d2
    return abs((d1 - d2).total_seconds()) / 86400


def time_score(
    d1: date | datetime,
    d2: date | datetime,
    max_days: int = DEFAULT_MAX_DATE_DIFF_DAYS,
) -> float:
    diff = day_difference(d1, d2)
    if diff > max_days:
        return 0.0
    for max_diff, score in DAY_BANDS:
        if diff <= max_diff:
            return score
    return max(LATE_FLOOR, 1 - diff / max_days)
