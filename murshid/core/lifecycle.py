# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Match Lifecycle Manager
Persists finder output and drives reviewer decisions:

  candidate ──save──▶ pending ──confirm──▶ confirmed  (both reports → matched)
                         │
                         └────reject───▶ rejected

confirmed and rejected are terminal. A review action on a non-pending
match returns False and changes nothing; the store applies the transition
as a compare-and-set so two reviewers cannot both win. A confirm whose
report updates fail is undone (reports restored, match back to pending)
so it can be retried.

Every public method catches backend errors, logs them, and returns the
conservative default (None / 0 / False / []). Callers never see store
exceptions from here.
"""

from __future__ import annotations

import traceback
from typing import Optional

import structlog

from murshid.api.middleware.error_handler import DuplicateMatchError
from murshid.core.match_store import MatchStore
from murshid.core.notifier import Notifier
from murshid.core.report_store import ReportStore
from murshid.models.match import Match, MatchCandidate, MatchDetails, MatchStatus, Side
from murshid.models.report import Report, ReportStatus
from murshid.modules.matching.finder import MatchFinder
from murshid.utils.logger import get_logger

log = get_logger(__name__)


class MatchLifecycleManager:

    def __init__(
        self,
        finder: MatchFinder,
        report_store: ReportStore,
        match_store: MatchStore,
        notifier: Notifier,
    ) -> None:
        self.finder = finder
        self.report_store = report_store
        self.match_store = match_store
        self.notifier = notifier

    # ── Creation ─────────────────────────────────────────────────────────────

    def save_match(self, candidate: MatchCandidate) -> Optional[Match]:
        """
        Persist a candidate as a pending match and notify reviewers.
        Returns None if the (lost, found) pair is already recorded.
        """
        try:
            existing = self.match_store.find_existing_match(*candidate.pair())
            if existing is not None:
                log.debug("match_already_exists", match_id=existing.id)
                return None

            if candidate.status != MatchStatus.PENDING:
                log.warning("save_match_not_pending", status=candidate.status.value)
                return None

            match = Match.from_candidate(candidate)
            try:
                self.match_store.insert_match(match)
            except DuplicateMatchError:
                # Lost the race to a concurrent run for the same pair
                log.info("match_insert_duplicate", pair=list(candidate.pair()))
                return None

            lost = self.report_store.get_report_by_id(match.lost_report_id)
            found = self.report_store.get_report_by_id(match.found_report_id)
        except Exception as exc:
            log.error("save_match_failed", error=str(exc), traceback=traceback.format_exc())
            return None

        log.info(
            "match_saved",
            match_id=match.id,
            lost_report_id=match.lost_report_id,
            found_report_id=match.found_report_id,
            final_score=match.final_score,
        )
        self.notifier.notify_admins_of_match(
            match.id,
            lost.title if lost else match.lost_report_id,
            found.title if found else match.found_report_id,
            match.final_score,
        )
        return match

    async def run_auto_match_for_report(self, report_id: str) -> int:
        """
        Find and save matches for one report.
        Returns how many new matches were created. A pending report that
        gained at least one match moves to processing.
        """
        with structlog.contextvars.bound_contextvars(report_id=report_id):
            try:
                candidates = await self.finder.find_potential_matches(report_id)

                created = 0
                for candidate in candidates:
                    if self.save_match(candidate) is not None:
                        created += 1

                if created > 0:
                    report = self.report_store.get_report_by_id(report_id)
                    if report is not None and report.status == ReportStatus.PENDING:
                        self.report_store.update_report_status(report_id, ReportStatus.PROCESSING)
            except Exception as exc:
                log.error("auto_match_failed", error=str(exc), traceback=traceback.format_exc())
                return 0

            log.info("auto_match_complete", candidates=len(candidates), created=created)
            return created

    # ── Review ───────────────────────────────────────────────────────────────

    def confirm_match(self, match_id: str) -> bool:
        """
        pending → confirmed. Marks both reports matched and tells each
        owner about the other report. False for unknown or non-pending.

        If a report cannot be marked, the reports already touched get their
        old status back and the match returns to pending, so a retry can
        complete the confirmation.
        """
        with structlog.contextvars.bound_contextvars(match_id=match_id):
            try:
                match = self.match_store.get_match_by_id(match_id)
                if match is None:
                    log.warning("confirm_match_not_found")
                    return False

                if not self.match_store.update_match_status(
                    match_id, MatchStatus.CONFIRMED, expected=MatchStatus.PENDING
                ):
                    log.warning("confirm_match_not_pending", status=match.status.value)
                    return False
            except Exception as exc:
                log.error("confirm_match_failed", error=str(exc), traceback=traceback.format_exc())
                return False

            previous: dict[str, ReportStatus] = {}
            try:
                for report_id in match.pair():
                    report = self.report_store.get_report_by_id(report_id)
                    if report is not None:
                        previous[report_id] = report.status
                    self.report_store.update_report_status(report_id, ReportStatus.MATCHED)

                lost = self.report_store.get_report_by_id(match.lost_report_id)
                found = self.report_store.get_report_by_id(match.found_report_id)
            except Exception as exc:
                log.error(
                    "confirm_match_reports_failed",
                    error=str(exc),
                    traceback=traceback.format_exc(),
                )
                self._undo_confirm(match_id, previous)
                return False

            log.info("match_confirmed")
            if lost is not None and found is not None:
                self._notify_owners(match_id, lost, found)
            return True

    def _undo_confirm(self, match_id: str, previous: dict[str, ReportStatus]) -> None:
        for report_id, status in previous.items():
            try:
                self.report_store.update_report_status(report_id, status)
            except Exception as exc:
                log.error("confirm_undo_report_failed", report_id=report_id, error=str(exc))
        try:
            reverted = self.match_store.update_match_status(
                match_id, MatchStatus.PENDING, expected=MatchStatus.CONFIRMED
            )
        except Exception as exc:
            log.error("confirm_undo_match_failed", error=str(exc))
            return
        log.warning("confirm_match_reverted", reverted=reverted)

    def reject_match(self, match_id: str) -> bool:
        """pending → rejected. Reports and owners are left alone."""
        with structlog.contextvars.bound_contextvars(match_id=match_id):
            try:
                changed = self.match_store.update_match_status(
                    match_id, MatchStatus.REJECTED, expected=MatchStatus.PENDING
                )
            except Exception as exc:
                log.error("reject_match_failed", error=str(exc), traceback=traceback.format_exc())
                return False

            if changed:
                log.info("match_rejected")
            else:
                log.warning("reject_match_not_applied")
            return changed

    def _notify_owners(self, match_id: str, lost: Report, found: Report) -> None:
        self.notifier.notify_user_of_confirmed_match(
            lost.user_id, lost.title, found.title, match_id, report_id=lost.id
        )
        self.notifier.notify_user_of_confirmed_match(
            found.user_id, found.title, lost.title, match_id, report_id=found.id
        )

    # ── Queries ──────────────────────────────────────────────────────────────

    def get_match(self, match_id: str) -> Optional[Match]:
        try:
            return self.match_store.get_match_by_id(match_id)
        except Exception as exc:
            log.error("get_match_failed", match_id=match_id, error=str(exc))
            return None

    def get_matches_with_details(self, status: Optional[MatchStatus] = None) -> list[MatchDetails]:
        """
        Matches joined with both reports, best first.
        Ordered by final_score descending, then created_at descending.
        """
        try:
            matches = self.match_store.list_matches(status)
            reports: dict[str, Optional[Report]] = {}

            def _report(report_id: str) -> Optional[Report]:
                if report_id not in reports:
                    reports[report_id] = self.report_store.get_report_by_id(report_id)
                return reports[report_id]

            details = [
                MatchDetails(
                    **m.model_dump(),
                    lost_report=_report(m.lost_report_id),
                    found_report=_report(m.found_report_id),
                )
                for m in matches
            ]
        except Exception as exc:
            log.error("list_matches_failed", error=str(exc), traceback=traceback.format_exc())
            return []

        details.sort(key=lambda d: (d.final_score, d.created_at), reverse=True)
        return details

    def get_matches_for_report(self, report_id: str) -> list[Match]:
        """Matches that involve report_id on its own side, newest first."""
        try:
            report = self.report_store.get_report_by_id(report_id)
            if report is None:
                return []
            return self.match_store.list_matches_for_report(Side.of(report.type), report_id)
        except Exception as exc:
            log.error("report_matches_failed", report_id=report_id, error=str(exc))
            return []
