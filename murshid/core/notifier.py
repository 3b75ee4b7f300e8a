# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Notifications
Who gets told about matches, and where the events go.

UserDirectory     : answers "who reviews matches?"
NotificationSink  : accepts NotificationEvents (in-memory list or SQL table)
Notifier          : builds the admin / owner messages on top of both

Notification delivery is best-effort: a failing sink is logged and never
undoes the match write that triggered it.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Iterable

from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from murshid.db.tables import NotificationRow, UserRow
from murshid.models.notification import NotificationEvent, NotificationType
from murshid.utils.logger import get_logger
from murshid.utils.scoring import to_percent

log = get_logger(__name__)

REVIEWER_ROLES: tuple[str, ...] = ("admin", "moderator")


# ─── User Directory ──────────────────────────────────────────────────────────

class UserDirectory(ABC):

    @abstractmethod
    def admin_user_ids(self) -> list[str]:
        """IDs of every user allowed to review matches."""


class InMemoryUserDirectory(UserDirectory):
    """Fixed reviewer list, seeded from settings or tests."""

    def __init__(self, admin_ids: Iterable[str] = ()) -> None:
        self._admin_ids = list(dict.fromkeys(admin_ids))

    def admin_user_ids(self) -> list[str]:
        return list(self._admin_ids)


class SqlUserDirectory(UserDirectory):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def admin_user_ids(self) -> list[str]:
        stmt = select(UserRow.id).where(col(UserRow.role).in_(REVIEWER_ROLES))
        with Session(self._engine) as session:
            return list(session.exec(stmt).all())

    def add_user(self, name: str, email: str, role: str = "user", user_id: str | None = None) -> str:
        row = UserRow(name=name, email=email, role=role)
        if user_id is not None:
            row.id = user_id
        with Session(self._engine) as session:
            session.add(row)
            session.commit()
            return row.id


# ─── Notification Sinks ──────────────────────────────────────────────────────

class NotificationSink(ABC):

    @abstractmethod
    def publish(self, event: NotificationEvent) -> None:
        """Deliver or store one event. May raise on backend failure."""


class InMemoryNotificationSink(NotificationSink):
    """Collects events in a list. Used in development and tests."""

    def __init__(self) -> None:
        self._events: list[NotificationEvent] = []
        self._lock = threading.Lock()

    def publish(self, event: NotificationEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> list[NotificationEvent]:
        with self._lock:
            return list(self._events)

    def for_user(self, user_id: str) -> list[NotificationEvent]:
        return [e for e in self.events if e.user_id == user_id]


class SqlNotificationSink(NotificationSink):
    """Writes events to the notifications table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def publish(self, event: NotificationEvent) -> None:
        data = event.model_dump()
        data["type"] = event.type.value
        with Session(self._engine) as session:
            session.add(NotificationRow(**data))
            session.commit()


# ─── Notifier ────────────────────────────────────────────────────────────────

class Notifier:
    """Formats match notifications and publishes them through a sink."""

    def __init__(self, users: UserDirectory, sink: NotificationSink) -> None:
        self.users = users
        self.sink = sink

    def notify_admins_of_match(
        self,
        match_id: str,
        lost_title: str,
        found_title: str,
        final_score: float,
    ) -> int:
        """
        Tell every reviewer about a new pending match.
        Returns the number of events published.
        """
        try:
            admin_ids = self.users.admin_user_ids()
        except Exception as exc:
            log.error("admin_lookup_failed", match_id=match_id, error=str(exc))
            return 0

        percent = to_percent(final_score)
        message = (
            f"A match of {percent}% has been detected between "
            f"\"{lost_title}\" and \"{found_title}\". Please review and take action."
        )
        sent = 0
        for admin_id in admin_ids:
            sent += self._publish(
                NotificationEvent(
                    user_id=admin_id,
                    title="New potential match",
                    message=message,
                    type=NotificationType.ADMIN,
                    related_match_id=match_id,
                )
            )

        log.info("admins_notified", match_id=match_id, recipients=sent)
        return sent

    def notify_user_of_confirmed_match(
        self,
        user_id: str,
        report_title: str,
        matched_title: str,
        match_id: str,
        report_id: str | None = None,
    ) -> bool:
        """Tell a report owner that their item was matched."""
        return bool(
            self._publish(
                NotificationEvent(
                    user_id=user_id,
                    title="Match found",
                    message=(
                        f'Good news! Your report "{report_title}" has been matched with '
                        f'"{matched_title}". Please get in touch to retrieve the item.'
                    ),
                    type=NotificationType.MATCH,
                    related_match_id=match_id,
                    related_report_id=report_id,
                )
            )
        )

    def _publish(self, event: NotificationEvent) -> int:
        try:
            self.sink.publish(event)
        except Exception as exc:
            log.error(
                "notification_publish_failed",
                user_id=event.user_id,
                type=event.type.value,
                error=str(exc),
            )
            return 0
        return 1
