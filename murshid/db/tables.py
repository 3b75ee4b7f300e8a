# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: SQL Tables
SQLModel tables backing the SQL store implementations.
Domain code never sees these rows; stores convert them to the pydantic
models in murshid.models.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserRow(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=_uuid, primary_key=True)
    created_at: datetime = Field(default_factory=_now)

    name: str
    email: str = Field(index=True, unique=True)
    role: str = Field(default="user", index=True)  # user, moderator, admin


class ReportRow(SQLModel, table=True):
    __tablename__ = "reports"

    id: str = Field(default_factory=_uuid, primary_key=True)
    created_at: datetime = Field(default_factory=_now, index=True)
    updated_at: datetime = Field(default_factory=_now)

    # Reporter
    user_id: str = Field(foreign_key="users.id", index=True)

    # Classification
    type: str = Field(index=True)  # "lost" or "found"
    category: str = Field(index=True)

    # Description
    title: str
    description: str
    color: Optional[str] = None
    distinguishing_marks: Optional[str] = None

    # Where / when
    date_occurred: date
    location_address: Optional[str] = None
    location_city: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None

    status: str = Field(default="pending", index=True)


class ReportImageRow(SQLModel, table=True):
    __tablename__ = "report_images"

    id: str = Field(default_factory=_uuid, primary_key=True)
    created_at: datetime = Field(default_factory=_now)

    report_id: str = Field(foreign_key="reports.id", index=True, ondelete="CASCADE")
    position: int = Field(default=0)
    image_url: str


class MatchRow(SQLModel, table=True):
    __tablename__ = "ai_matches"

    id: str = Field(default_factory=_uuid, primary_key=True)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    lost_report_id: str = Field(foreign_key="reports.id", index=True, ondelete="CASCADE")
    found_report_id: str = Field(foreign_key="reports.id", index=True, ondelete="CASCADE")

    image_score: float = Field(default=0.0)
    text_score: float = Field(default=0.0)
    location_score: float = Field(default=0.0)
    time_score: float = Field(default=0.0)
    final_score: float = Field(default=0.0, index=True)

    status: str = Field(default="pending", index=True)  # pending, confirmed, rejected

    __table_args__ = (
        # Makes save_match's check-then-insert safe under concurrent runs
        UniqueConstraint(
            "lost_report_id",
            "found_report_id",
            name="uq_match_lost_found",
        ),
    )


class NotificationRow(SQLModel, table=True):
    __tablename__ = "notifications"

    id: str = Field(default_factory=_uuid, primary_key=True)
    created_at: datetime = Field(default_factory=_now)

    user_id: str = Field(foreign_key="users.id", index=True)
    type: str = Field(index=True)  # values: "match", "admin"

    title: str
    message: str

    related_match_id: Optional[str] = Field(default=None, index=True)
    related_report_id: Optional[str] = Field(default=None, index=True)

    is_read: bool = Field(default=False)
