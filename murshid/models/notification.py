# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Notification Events
Outbound event shape only. Storage and delivery belong to whatever
NotificationSink the host wires in.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class NotificationType(str, Enum):
    MATCH = "match"    # confirmed match, sent to report owners
    ADMIN = "admin"    # new pending match, sent to reviewers


class NotificationEvent(BaseModel):
    user_id: str
    title: str
    message: str
    type: NotificationType
    related_match_id: Optional[str] = None
    related_report_id: Optional[str] = None
