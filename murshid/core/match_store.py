# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Abstract MatchStore
Persistence for match records.

Both backends enforce one record per (lost_report_id, found_report_id):
InMemoryMatchStore with a locked check-and-insert, SqlMatchStore with the
ai_matches unique constraint. Status changes are compare-and-set so a
confirmed or rejected match cannot be flipped by a concurrent reviewer.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from murshid.api.middleware.error_handler import DuplicateMatchError
from murshid.db.tables import MatchRow
from murshid.models.match import Match, MatchStatus, Side
from murshid.utils.logger import get_logger

log = get_logger(__name__)


# ─── Abstract Interface ──────────────────────────────────────────────────────

class MatchStore(ABC):

    @abstractmethod
    def find_existing_match(self, lost_report_id: str, found_report_id: str) -> Optional[Match]:
        """Return the match for this exact (lost, found) pair, or None."""

    @abstractmethod
    def insert_match(self, match: Match) -> Match:
        """
        Persist a new match.
        Raises DuplicateMatchError if the (lost, found) pair already exists.
        """

    @abstractmethod
    def update_match_status(
        self,
        match_id: str,
        status: MatchStatus,
        expected: Optional[MatchStatus] = MatchStatus.PENDING,
    ) -> bool:
        """
        Set status only if the current status equals expected
        (expected=None skips the check). Returns True if a row changed.
        """

    @abstractmethod
    def get_match_by_id(self, match_id: str) -> Optional[Match]:
        """Return Match by ID, or None if not found."""

    @abstractmethod
    def list_matches(self, status: Optional[MatchStatus] = None) -> list[Match]:
        """All matches, optionally filtered by status. Order unspecified."""

    @abstractmethod
    def list_matches_for_report(self, side: Side, report_id: str) -> list[Match]:
        """Matches whose side column equals report_id, newest first."""


# ─── In-Memory Implementation ────────────────────────────────────────────────

class InMemoryMatchStore(MatchStore):
    """Thread-safe in-memory match store using a dict + RLock."""

    def __init__(self) -> None:
        self._store: dict[str, Match] = {}
        self._pairs: dict[tuple[str, str], str] = {}
        self._lock = threading.RLock()

    def find_existing_match(self, lost_report_id: str, found_report_id: str) -> Optional[Match]:
        with self._lock:
            match_id = self._pairs.get((lost_report_id, found_report_id))
            return self._copy(match_id)

    def insert_match(self, match: Match) -> Match:
        with self._lock:
            if match.pair() in self._pairs:
                raise DuplicateMatchError(match.pair())
            self._store[match.id] = match.model_copy()
            self._pairs[match.pair()] = match.id
        log.debug("match_inserted", match_id=match.id, backend="memory")
        return match

    def update_match_status(
        self,
        match_id: str,
        status: MatchStatus,
        expected: Optional[MatchStatus] = MatchStatus.PENDING,
    ) -> bool:
        with self._lock:
            match = self._store.get(match_id)
            if match is None:
                return False
            if expected is not None and match.status != expected:
                return False
            match.status = status
            match.updated_at = datetime.now(timezone.utc)
        return True

    def get_match_by_id(self, match_id: str) -> Optional[Match]:
        with self._lock:
            return self._copy(match_id)

    def list_matches(self, status: Optional[MatchStatus] = None) -> list[Match]:
        with self._lock:
            return [
                m.model_copy() for m in self._store.values()
                if status is None or m.status == status
            ]

    def list_matches_for_report(self, side: Side, report_id: str) -> list[Match]:
        with self._lock:
            found = [m.model_copy() for m in self._store.values() if m.report_id(side) == report_id]
        return sorted(found, key=lambda m: m.created_at, reverse=True)

    def count(self) -> int:
        with self._lock:
            return len(self._store)

    def _copy(self, match_id: Optional[str]) -> Optional[Match]:
        match = self._store.get(match_id) if match_id else None
        return match.model_copy() if match else None


# ─── SQL Implementation ──────────────────────────────────────────────────────

# Side → column. Keeps column choice out of caller-supplied strings.
_SIDE_COLUMNS = {
    Side.LOST: MatchRow.lost_report_id,
    Side.FOUND: MatchRow.found_report_id,
}


class SqlMatchStore(MatchStore):
    """SQLModel-backed match store over the ai_matches table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def find_existing_match(self, lost_report_id: str, found_report_id: str) -> Optional[Match]:
        stmt = (
            select(MatchRow)
            .where(MatchRow.lost_report_id == lost_report_id)
            .where(MatchRow.found_report_id == found_report_id)
        )
        with Session(self._engine) as session:
            row = session.exec(stmt).first()
            return _to_match(row) if row else None

    def insert_match(self, match: Match) -> Match:
        data = match.model_dump()
        data["status"] = match.status.value
        with Session(self._engine) as session:
            session.add(MatchRow(**data))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                # Only the pair constraint means "duplicate"; a dangling
                # report id (foreign key) propagates as is
                if self.find_existing_match(*match.pair()) is None:
                    raise
                raise DuplicateMatchError(match.pair()) from exc
        log.debug("match_inserted", match_id=match.id, backend="sql")
        return match

    def update_match_status(
        self,
        match_id: str,
        status: MatchStatus,
        expected: Optional[MatchStatus] = MatchStatus.PENDING,
    ) -> bool:
        stmt = (
            update(MatchRow)
            .where(col(MatchRow.id) == match_id)
            .values(status=status.value, updated_at=datetime.now(timezone.utc))
        )
        if expected is not None:
            stmt = stmt.where(col(MatchRow.status) == expected.value)

        # Core statement on a plain transaction; rowcount tells whether the CAS won
        with self._engine.begin() as conn:
            result = conn.execute(stmt)
            return result.rowcount == 1

    def get_match_by_id(self, match_id: str) -> Optional[Match]:
        with Session(self._engine) as session:
            row = session.get(MatchRow, match_id)
            return _to_match(row) if row else None

    def list_matches(self, status: Optional[MatchStatus] = None) -> list[Match]:
        stmt = select(MatchRow)
        if status is not None:
            stmt = stmt.where(MatchRow.status == status.value)
        with Session(self._engine) as session:
            return [_to_match(r) for r in session.exec(stmt).all()]

    def list_matches_for_report(self, side: Side, report_id: str) -> list[Match]:
        column = _SIDE_COLUMNS[side]
        stmt = (
            select(MatchRow)
            .where(column == report_id)
            .order_by(col(MatchRow.created_at).desc())
        )
        with Session(self._engine) as session:
            return [_to_match(r) for r in session.exec(stmt).all()]


def _to_match(row: MatchRow) -> Match:
    return Match.model_validate(row.model_dump())
