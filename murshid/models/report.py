# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Report Models
A lost or found item report as seen by the matching engine.
Stores validate into this model, so malformed rows (missing type or
date_occurred) are rejected at the store boundary, not inside scoring.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ReportType(str, Enum):
    LOST = "lost"
    FOUND = "found"


class ReportStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    MATCHED = "matched"
    CONTACTED = "contacted"
    CLOSED = "closed"


# Reports in these states are never offered as candidates
INACTIVE_STATUSES: tuple[ReportStatus, ...] = (ReportStatus.CLOSED, ReportStatus.MATCHED)

MAX_IMAGES_PER_REPORT = 5


class Report(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    type: ReportType
    category: str

    title: str
    description: str
    color: Optional[str] = None
    distinguishing_marks: Optional[str] = None

    date_occurred: date
    location_city: Optional[str] = None
    location_address: Optional[str] = None
    location_lat: Optional[float] = Field(None, ge=-90.0, le=90.0)
    location_lng: Optional[float] = Field(None, ge=-180.0, le=180.0)

    images: list[str] = Field(default_factory=list, max_length=MAX_IMAGES_PER_REPORT)

    status: ReportStatus = ReportStatus.PENDING
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def opposite_type(self) -> ReportType:
        return ReportType.FOUND if self.type == ReportType.LOST else ReportType.LOST

    @property
    def has_coordinates(self) -> bool:
        return self.location_lat is not None and self.location_lng is not None
