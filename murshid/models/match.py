# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Match Models
A proposed correspondence between one lost and one found report,
from unsaved candidate through the pending → confirmed | rejected lifecycle.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from murshid.models.report import Report, ReportType


class MatchStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


TERMINAL_STATUSES: tuple[MatchStatus, ...] = (MatchStatus.CONFIRMED, MatchStatus.REJECTED)


class Side(str, Enum):
    """Which report column of a match to read. Closed set, never a column name."""
    LOST = "lost"
    FOUND = "found"

    @classmethod
    def of(cls, report_type: ReportType) -> "Side":
        return cls.LOST if report_type == ReportType.LOST else cls.FOUND

    def other(self) -> "Side":
        return Side.FOUND if self is Side.LOST else Side.LOST


class MatchCandidate(BaseModel):
    """Ranked, scored template produced by the finder. Not yet persisted."""
    lost_report_id: str
    found_report_id: str

    image_score: float = Field(0.0, ge=0.0, le=1.0)
    text_score: float = Field(0.0, ge=0.0, le=1.0)
    location_score: float = Field(0.0, ge=0.0, le=1.0)
    time_score: float = Field(0.0, ge=0.0, le=1.0)
    final_score: float = Field(0.0, ge=0.0, le=1.0)

    status: MatchStatus = MatchStatus.PENDING

    def report_id(self, side: Side) -> str:
        return self.lost_report_id if side is Side.LOST else self.found_report_id

    def pair(self) -> tuple[str, str]:
        return self.lost_report_id, self.found_report_id


class Match(MatchCandidate):
    """Persisted match record."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_candidate(cls, candidate: MatchCandidate) -> "Match":
        return cls(**candidate.model_dump())


class MatchDetails(Match):
    """Match joined with both reports (core fields and images) for review UIs."""
    lost_report: Optional[Report] = None
    found_report: Optional[Report] = None
