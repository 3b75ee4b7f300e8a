# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Abstract ReportStore
Read access to lost/found reports plus the status writes the matching
engine performs. Swap InMemoryReportStore for SqlReportStore with zero
engine changes.

InMemoryReportStore  : development / tests
SqlReportStore       : SQLModel-backed persistence (SQLite, Postgres)
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from murshid.db.tables import ReportImageRow, ReportRow
from murshid.models.report import Report, ReportStatus, ReportType
from murshid.utils.logger import get_logger

log = get_logger(__name__)


# ─── Abstract Interface ──────────────────────────────────────────────────────

class ReportStore(ABC):
    """
    Abstract base class for report backends.
    All methods are synchronous. Implementations may raise on backend
    failure; the engine catches and logs.
    """

    @abstractmethod
    def get_report_by_id(self, report_id: str) -> Optional[Report]:
        """Return the report with its image URLs, or None if not found."""

    @abstractmethod
    def get_candidate_reports(
        self,
        opposite_type: ReportType,
        category: str,
        exclude_statuses: Iterable[ReportStatus],
        limit: int,
    ) -> list[Report]:
        """
        Reports of opposite_type in exactly category whose status is not
        excluded, most recently created first, at most limit of them.
        """

    @abstractmethod
    def update_report_status(self, report_id: str, status: ReportStatus) -> bool:
        """Set a report's status. Returns False if the report does not exist."""

    @abstractmethod
    def add_report(self, report: Report) -> Report:
        """Insert or replace a report. Returns the stored report."""


# ─── In-Memory Implementation ────────────────────────────────────────────────

class InMemoryReportStore(ReportStore):
    """
    Thread-safe in-memory report store using a dict + RLock.
    Returned reports are copies; mutate through the store methods.
    """

    def __init__(self, reports: Iterable[Report] = ()) -> None:
        self._store: dict[str, Report] = {}
        self._lock = threading.RLock()
        for report in reports:
            self.add_report(report)

    def get_report_by_id(self, report_id: str) -> Optional[Report]:
        with self._lock:
            report = self._store.get(report_id)
            return report.model_copy(deep=True) if report else None

    def get_candidate_reports(
        self,
        opposite_type: ReportType,
        category: str,
        exclude_statuses: Iterable[ReportStatus],
        limit: int,
    ) -> list[Report]:
        excluded = set(exclude_statuses)
        with self._lock:
            matches = [
                r for r in self._store.values()
                if r.type == opposite_type
                and r.category == category
                and r.status not in excluded
            ]
            # sorted() is stable, so equal timestamps keep insertion order
            matches = sorted(matches, key=lambda r: r.created_at, reverse=True)
            return [r.model_copy(deep=True) for r in matches[:limit]]

    def update_report_status(self, report_id: str, status: ReportStatus) -> bool:
        with self._lock:
            report = self._store.get(report_id)
            if report is None:
                log.warning("update_report_not_found", report_id=report_id)
                return False
            report.status = status
            report.updated_at = datetime.now(timezone.utc)

        log.debug("report_status_updated", report_id=report_id, status=status.value)
        return True

    def add_report(self, report: Report) -> Report:
        with self._lock:
            self._store[report.id] = report.model_copy(deep=True)
        log.debug("report_added", report_id=report.id, type=report.type.value, backend="memory")
        return report

    def count(self) -> int:
        with self._lock:
            return len(self._store)


# ─── SQL Implementation ──────────────────────────────────────────────────────

class SqlReportStore(ReportStore):
    """
    SQLModel-backed report store.
    One short-lived Session per call; rows never leave this module.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get_report_by_id(self, report_id: str) -> Optional[Report]:
        with Session(self._engine) as session:
            row = session.get(ReportRow, report_id)
            if row is None:
                return None
            images = self._images_for(session, [row.id])
            return _to_report(row, images.get(row.id, []))

    def get_candidate_reports(
        self,
        opposite_type: ReportType,
        category: str,
        exclude_statuses: Iterable[ReportStatus],
        limit: int,
    ) -> list[Report]:
        excluded = [s.value for s in exclude_statuses]
        stmt = (
            select(ReportRow)
            .where(ReportRow.type == opposite_type.value)
            .where(ReportRow.category == category)
            .order_by(col(ReportRow.created_at).desc())
            .limit(limit)
        )
        if excluded:
            stmt = stmt.where(col(ReportRow.status).not_in(excluded))

        with Session(self._engine) as session:
            rows = session.exec(stmt).all()
            images = self._images_for(session, [r.id for r in rows])

            reports: list[Report] = []
            for row in rows:
                try:
                    reports.append(_to_report(row, images.get(row.id, [])))
                except ValidationError as exc:
                    # One bad row must not hide the rest of the category
                    log.warning(
                        "candidate_row_invalid",
                        report_id=row.id,
                        errors=exc.error_count(),
                        error=str(exc),
                    )
            return reports

    def update_report_status(self, report_id: str, status: ReportStatus) -> bool:
        with Session(self._engine) as session:
            row = session.get(ReportRow, report_id)
            if row is None:
                log.warning("update_report_not_found", report_id=report_id)
                return False
            row.status = status.value
            row.updated_at = datetime.now(timezone.utc)
            session.add(row)
            session.commit()

        log.debug("report_status_updated", report_id=report_id, status=status.value)
        return True

    def add_report(self, report: Report) -> Report:
        data = report.model_dump(exclude={"images"})
        data["type"] = report.type.value
        data["status"] = report.status.value

        with Session(self._engine) as session:
            existing = session.get(ReportRow, report.id)
            if existing is not None:
                for key, value in data.items():
                    setattr(existing, key, value)
                session.add(existing)
                old_images = session.exec(
                    select(ReportImageRow).where(ReportImageRow.report_id == report.id)
                ).all()
                for image in old_images:
                    session.delete(image)
            else:
                session.add(ReportRow(**data))
            # Parent row must exist before its images under enforced foreign keys
            session.flush()

            for position, url in enumerate(report.images):
                session.add(
                    ReportImageRow(report_id=report.id, position=position, image_url=url)
                )
            session.commit()

        log.debug("report_added", report_id=report.id, type=report.type.value, backend="sql")
        return report

    @staticmethod
    def _images_for(session: Session, report_ids: list[str]) -> dict[str, list[str]]:
        if not report_ids:
            return {}
        rows = session.exec(
            select(ReportImageRow)
            .where(col(ReportImageRow.report_id).in_(report_ids))
            .order_by(col(ReportImageRow.report_id), col(ReportImageRow.position))
        ).all()
        images: dict[str, list[str]] = {}
        for row in rows:
            images.setdefault(row.report_id, []).append(row.image_url)
        return images


def _to_report(row: ReportRow, images: list[str]) -> Report:
    # Validation here rejects malformed rows before they reach scoring
    return Report.model_validate(
        {**row.model_dump(), "images": images}
    )
