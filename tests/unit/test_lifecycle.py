# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Match lifecycle tests.
Saving with dedup, auto-match runs, confirm / reject transitions,
terminality, notifications, queries, and store-failure defaults.
"""

from datetime import date, datetime, timedelta, timezone

import pytest


def _report(**kw):
    from murshid.models.report import Report, ReportType
    data = dict(
        user_id="owner-lost",
        type=ReportType.LOST,
        category="electronics",
        title="Black iPhone 13",
        description="Black iPhone in a clear case",
        location_city="Delhi",
        location_lat=28.70,
        location_lng=77.10,
        date_occurred=date(2024, 1, 10),
    )
    data.update(kw)
    return Report(**data)


def _seed():
    from murshid.models.report import ReportType
    lost = _report(id="A")
    found = _report(
        id="B",
        user_id="owner-found",
        type=ReportType.FOUND,
        title="iPhone 13 black",
        description="Found a black iPhone with a clear case",
        location_lat=28.705,
        location_lng=77.105,
        date_occurred=date(2024, 1, 12),
    )
    return [lost, found]


class NullFingerprinter:
    async def fingerprint(self, url):
        return None


def _manager(reports=None, admins=("admin-1", "admin-2"), match_store=None, report_store=None):
    from murshid.core.lifecycle import MatchLifecycleManager
    from murshid.core.match_store import InMemoryMatchStore
    from murshid.core.notifier import InMemoryNotificationSink, InMemoryUserDirectory, Notifier
    from murshid.core.report_store import InMemoryReportStore
    from murshid.modules.image_similarity import ImageSimilarityEngine
    from murshid.modules.matching import MatchFinder

    report_store = report_store or InMemoryReportStore(_seed() if reports is None else reports)
    match_store = match_store or InMemoryMatchStore()
    sink = InMemoryNotificationSink()
    finder = MatchFinder(report_store, ImageSimilarityEngine(NullFingerprinter()))
    manager = MatchLifecycleManager(
        finder=finder,
        report_store=report_store,
        match_store=match_store,
        notifier=Notifier(InMemoryUserDirectory(admins), sink),
    )
    return manager, sink


def _candidate(lost="A", found="B", score=0.8):
    from murshid.models.match import MatchCandidate
    return MatchCandidate(lost_report_id=lost, found_report_id=found, final_score=score)


# ─── save_match ──────────────────────────────────────────────────────────────

def test_save_match_persists_pending_and_notifies_admins():
    from murshid.models.match import MatchStatus
    from murshid.models.notification import NotificationType
    manager, sink = _manager()

    match = manager.save_match(_candidate(score=0.875))

    assert match is not None
    assert match.status == MatchStatus.PENDING
    assert manager.get_match(match.id) is not None

    events = sink.events
    assert {e.user_id for e in events} == {"admin-1", "admin-2"}
    assert all(e.type == NotificationType.ADMIN for e in events)
    assert all(e.related_match_id == match.id for e in events)
    assert "88%" in events[0].message
    assert "Black iPhone 13" in events[0].message
    assert "iPhone 13 black" in events[0].message


def test_save_match_twice_is_a_no_op():
    manager, sink = _manager()

    first = manager.save_match(_candidate())
    second = manager.save_match(_candidate())

    assert first is not None
    assert second is None
    assert len(manager.get_matches_with_details()) == 1
    assert len(sink.events) == 2        # admins told once


def test_save_match_race_on_insert_returns_none():
    from murshid.core.match_store import InMemoryMatchStore

    class RacingStore(InMemoryMatchStore):
        # Simulates a concurrent writer landing between check and insert
        def find_existing_match(self, lost_report_id, found_report_id):
            return None

    store = RacingStore()
    manager, _ = _manager(match_store=store)
    assert manager.save_match(_candidate()) is not None
    assert manager.save_match(_candidate()) is None
    assert store.count() == 1


def test_save_match_refuses_non_pending_candidate():
    from murshid.models.match import MatchStatus
    manager, sink = _manager()
    candidate = _candidate().model_copy(update={"status": MatchStatus.CONFIRMED})

    assert manager.save_match(candidate) is None
    assert manager.get_matches_with_details() == []
    assert sink.events == []


def test_save_match_without_admins_still_saves():
    manager, sink = _manager(admins=())
    assert manager.save_match(_candidate()) is not None
    assert sink.events == []


# ─── run_auto_match_for_report ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_auto_match_creates_and_marks_processing():
    from murshid.models.report import ReportStatus
    manager, _ = _manager()

    created = await manager.run_auto_match_for_report("A")

    assert created == 1
    assert manager.report_store.get_report_by_id("A").status == ReportStatus.PROCESSING
    # The other side is left alone
    assert manager.report_store.get_report_by_id("B").status == ReportStatus.PENDING


@pytest.mark.asyncio
async def test_auto_match_rerun_creates_nothing():
    manager, _ = _manager()
    assert await manager.run_auto_match_for_report("A") == 1
    assert await manager.run_auto_match_for_report("A") == 0
    # Triggering from the other side finds the same pair, already on record
    assert await manager.run_auto_match_for_report("B") == 0


@pytest.mark.asyncio
async def test_auto_match_without_candidates_keeps_status():
    from murshid.models.report import ReportStatus
    manager, _ = _manager(reports=[_report(id="solo")])
    assert await manager.run_auto_match_for_report("solo") == 0
    assert manager.report_store.get_report_by_id("solo").status == ReportStatus.PENDING


@pytest.mark.asyncio
async def test_auto_match_unknown_report_returns_zero():
    manager, _ = _manager()
    assert await manager.run_auto_match_for_report("missing") == 0


# ─── confirm / reject ────────────────────────────────────────────────────────

def test_confirm_match_updates_reports_and_notifies_owners():
    from murshid.models.match import MatchStatus
    from murshid.models.notification import NotificationType
    from murshid.models.report import ReportStatus
    manager, sink = _manager(admins=())
    match = manager.save_match(_candidate())

    assert manager.confirm_match(match.id) is True

    assert manager.get_match(match.id).status == MatchStatus.CONFIRMED
    assert manager.report_store.get_report_by_id("A").status == ReportStatus.MATCHED
    assert manager.report_store.get_report_by_id("B").status == ReportStatus.MATCHED

    to_lost = sink.for_user("owner-lost")
    to_found = sink.for_user("owner-found")
    assert len(to_lost) == 1 and len(to_found) == 1
    assert to_lost[0].type == NotificationType.MATCH
    # Each owner is told the title of the other report
    assert '"iPhone 13 black"' in to_lost[0].message
    assert '"Black iPhone 13"' in to_found[0].message.split("matched with")[1]


def test_reject_match_leaves_reports_alone():
    from murshid.models.match import MatchStatus
    from murshid.models.report import ReportStatus
    manager, sink = _manager(admins=())
    match = manager.save_match(_candidate())

    assert manager.reject_match(match.id) is True

    assert manager.get_match(match.id).status == MatchStatus.REJECTED
    assert manager.report_store.get_report_by_id("A").status == ReportStatus.PENDING
    assert sink.events == []


def test_unknown_match_ids_return_false():
    manager, _ = _manager()
    assert manager.confirm_match("nope") is False
    assert manager.reject_match("nope") is False
    assert manager.get_match("nope") is None


def test_confirmed_match_is_terminal():
    from murshid.models.match import MatchStatus
    manager, sink = _manager(admins=())
    match = manager.save_match(_candidate())
    assert manager.confirm_match(match.id) is True

    assert manager.reject_match(match.id) is False
    assert manager.confirm_match(match.id) is False
    assert manager.get_match(match.id).status == MatchStatus.CONFIRMED
    assert len(sink.events) == 2        # no second round of owner messages


def test_rejected_match_is_terminal():
    from murshid.models.match import MatchStatus
    from murshid.models.report import ReportStatus
    manager, _ = _manager(admins=())
    match = manager.save_match(_candidate())
    assert manager.reject_match(match.id) is True

    assert manager.confirm_match(match.id) is False
    assert manager.get_match(match.id).status == MatchStatus.REJECTED
    assert manager.report_store.get_report_by_id("A").status == ReportStatus.PENDING


def test_report_update_failure_rolls_back_confirm():
    from murshid.core.report_store import InMemoryReportStore
    from murshid.models.match import MatchStatus
    from murshid.models.report import ReportStatus

    class FlakyReportStore(InMemoryReportStore):
        # Fails the first time the found report is marked matched
        failed = False

        def update_report_status(self, report_id, status):
            if report_id == "B" and status == ReportStatus.MATCHED and not self.failed:
                self.failed = True
                raise ConnectionError("database unavailable")
            return super().update_report_status(report_id, status)

    store = FlakyReportStore(_seed())
    manager, sink = _manager(admins=(), report_store=store)
    match = manager.save_match(_candidate())

    assert manager.confirm_match(match.id) is False
    assert manager.get_match(match.id).status == MatchStatus.PENDING
    # The lost report was marked before the failure and is restored
    assert store.get_report_by_id("A").status == ReportStatus.PENDING
    assert store.get_report_by_id("B").status == ReportStatus.PENDING
    assert sink.events == []

    # A retry completes the confirmation
    assert manager.confirm_match(match.id) is True
    assert manager.get_match(match.id).status == MatchStatus.CONFIRMED
    assert store.get_report_by_id("A").status == ReportStatus.MATCHED
    assert store.get_report_by_id("B").status == ReportStatus.MATCHED
    assert len(sink.events) == 2


def test_notification_failure_does_not_undo_confirm():
    from murshid.models.match import MatchStatus
    manager, _ = _manager(admins=())

    class BrokenSink:
        def publish(self, event):
            raise ConnectionError("smtp down")

    manager.notifier.sink = BrokenSink()
    match = manager.save_match(_candidate())
    assert manager.confirm_match(match.id) is True
    assert manager.get_match(match.id).status == MatchStatus.CONFIRMED


# ─── Queries ─────────────────────────────────────────────────────────────────

def test_get_matches_with_details_order_and_join():
    from murshid.models.report import ReportType
    extra = _report(id="C", user_id="owner-c", type=ReportType.FOUND, title="Phone")
    manager, _ = _manager(reports=_seed() + [extra], admins=())

    low = manager.save_match(_candidate("A", "C", score=0.5))
    high = manager.save_match(_candidate("A", "B", score=0.9))

    details = manager.get_matches_with_details()

    assert [d.id for d in details] == [high.id, low.id]
    assert details[0].lost_report.id == "A"
    assert details[0].found_report.title == "iPhone 13 black"


def test_get_matches_with_details_ties_newest_first():
    from murshid.models.match import Match
    from murshid.models.report import ReportType
    manager, _ = _manager(
        reports=_seed() + [_report(id="C", type=ReportType.FOUND)],
        admins=(),
    )
    now = datetime.now(timezone.utc)
    older = Match(lost_report_id="A", found_report_id="B", final_score=0.6,
                  created_at=now - timedelta(days=1))
    newer = Match(lost_report_id="A", found_report_id="C", final_score=0.6, created_at=now)
    manager.match_store.insert_match(older)
    manager.match_store.insert_match(newer)

    assert [d.id for d in manager.get_matches_with_details()] == [newer.id, older.id]


def test_get_matches_with_details_status_filter():
    from murshid.models.match import MatchStatus
    manager, _ = _manager(admins=())
    match = manager.save_match(_candidate())
    manager.reject_match(match.id)

    assert manager.get_matches_with_details(MatchStatus.PENDING) == []
    assert [d.id for d in manager.get_matches_with_details(MatchStatus.REJECTED)] == [match.id]


def test_get_matches_for_report_uses_report_side():
    manager, _ = _manager(admins=())
    match = manager.save_match(_candidate())

    assert [m.id for m in manager.get_matches_for_report("A")] == [match.id]
    assert [m.id for m in manager.get_matches_for_report("B")] == [match.id]
    assert manager.get_matches_for_report("missing") == []


# ─── Store failures ──────────────────────────────────────────────────────────

class BrokenMatchStore:
    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise ConnectionError("database unavailable")
        return _fail


def test_store_failures_return_defaults():
    manager, _ = _manager(match_store=BrokenMatchStore())
    assert manager.save_match(_candidate()) is None
    assert manager.confirm_match("m") is False
    assert manager.reject_match("m") is False
    assert manager.get_match("m") is None
    assert manager.get_matches_with_details() == []
    assert manager.get_matches_for_report("A") == []


@pytest.mark.asyncio
async def test_auto_match_store_failure_returns_zero():
    manager, _ = _manager(match_store=BrokenMatchStore())
    assert await manager.run_auto_match_for_report("A") == 0
