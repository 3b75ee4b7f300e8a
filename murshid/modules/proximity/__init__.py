# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Proximity Module
Public API for the geographic and temporal similarity functions.
"""

from murshid.modules.proximity.location import (
    LocationInfo,
    distance_score,
    haversine_km,
    location_score,
)
from murshid.modules.proximity.timing import day_difference, time_score

__all__ = [
    # Location
    "LocationInfo",
    "haversine_km",
    "distance_score",
    "location_score",
    # Time
    "day_difference",
    "time_score",
]
