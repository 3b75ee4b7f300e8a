# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Location Similarity
GPS first, city/address fallback.

With coordinates on both sides the haversine distance is mapped through
a fixed band table (non-increasing in distance). Without them, reports
in the same city start at 0.7 and earn up to 0.3 more from address text.
"""

from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel

from murshid.config import TextWeights
from murshid.models.report import Report
from murshid.modules.text_similarity.similarity import text_similarity

EARTH_RADIUS_KM = 6371.0

# (max distance km, score), checked in order
DISTANCE_BANDS: tuple[tuple[float, float], ...] = (
    (1.0, 1.0),
    (5.0, 0.9),
    (10.0, 0.8),
    (20.0, 0.6),
    (50.0, 0.4),
)
FAR_DECAY_KM = 200.0
FAR_FLOOR = 0.1

SAME_CITY_BASE = 0.7
ADDRESS_BONUS = 0.3
DIFFERENT_CITY = 0.1


class LocationInfo(BaseModel):
    city: Optional[str] = None
    address: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    @classmethod
    def from_report(cls, report: Report) -> "LocationInfo":
        return cls(
            city=report.location_city,
            address=report.location_address,
            lat=report.location_lat,
            lng=report.location_lng,
        )

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres between two WGS-84 points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_score(distance_km: float) -> float:
    for max_km, score in DISTANCE_BANDS:
        if distance_km <= max_km:
            return score
    # Capped at the last band so the score never rises with distance
    tail = max(FAR_FLOOR, 1 - distance_km / FAR_DECAY_KM)
    return min(DISTANCE_BANDS[-1][1], tail)


def _same_city(city1: str, city2: str) -> bool:
    return city1.strip().casefold() == city2.strip().casefold()


def location_score(
    loc1: LocationInfo,
    loc2: LocationInfo,
    text_weights: TextWeights | None = None,
) -> float:
    if loc1.has_coordinates and loc2.has_coordinates:
        return distance_score(haversine_km(loc1.lat, loc1.lng, loc2.lat, loc2.lng))

    # No city on one side is "unknown", scored below "different city"
    if not loc1.city or not loc2.city:
        return 0.0

    if not _same_city(loc1.city, loc2.city):
        return DIFFERENT_CITY

    if loc1.address and loc2.address:
        address_sim = text_similarity(
            loc1.address, loc2.address, text_weights or TextWeights()
        ).overall
        return SAME_CITY_BASE + ADDRESS_BONUS * address_sim

    return SAME_CITY_BASE
