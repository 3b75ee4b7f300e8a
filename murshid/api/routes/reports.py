# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: /reports/{report_id} matching endpoints
Trigger auto-matching for a report and inspect its candidates / matches.
Report CRUD lives in the host application, not here.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter

from murshid.api.middleware.error_handler import ReportNotFoundError
from murshid.dependencies import FinderDep, LifecycleDep, ReportStoreDep
from murshid.models.match import Match, MatchCandidate

router = APIRouter(prefix="/reports", tags=["reports"])


async def _require_report(report_id: str, store: ReportStoreDep) -> None:
    # Store calls are blocking I/O; run them in a worker thread
    if await asyncio.to_thread(store.get_report_by_id, report_id) is None:
        raise ReportNotFoundError(report_id)


@router.post(
    "/{report_id}/auto-match",
    summary="Run auto-matching for a report",
    description=(
        "Scores the report against active opposite-type reports in the same "
        "category and saves every pair above the threshold as a pending match. "
        "Pairs already on record are skipped."
    ),
)
async def auto_match(report_id: str, lifecycle: LifecycleDep, store: ReportStoreDep) -> dict:
    await _require_report(report_id, store)
    created = await lifecycle.run_auto_match_for_report(report_id)
    return {"report_id": report_id, "matches_created": created}


@router.get(
    "/{report_id}/candidates",
    summary="Preview ranked candidates (not saved)",
    response_model=list[MatchCandidate],
)
async def candidates(report_id: str, finder: FinderDep, store: ReportStoreDep) -> list[MatchCandidate]:
    await _require_report(report_id, store)
    return await finder.find_potential_matches(report_id)


@router.get(
    "/{report_id}/matches",
    summary="Matches involving a report",
    response_model=list[Match],
)
async def report_matches(report_id: str, lifecycle: LifecycleDep, store: ReportStoreDep) -> list[Match]:
    await _require_report(report_id, store)
    return await asyncio.to_thread(lifecycle.get_matches_for_report, report_id)
