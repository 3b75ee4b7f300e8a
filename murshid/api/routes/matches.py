# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: /matches review endpoints
List matches with both reports attached, and confirm or reject pending ones.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter

from murshid.api.middleware.error_handler import (
    MatchNotFoundError,
    MatchReviewError,
    MatchStateError,
)
from murshid.core.lifecycle import MatchLifecycleManager
from murshid.dependencies import LifecycleDep
from murshid.models.match import MatchDetails, MatchStatus

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get(
    "",
    summary="List matches for review",
    description="Best first: final score descending, then newest first.",
    response_model=list[MatchDetails],
)
async def list_matches(
    lifecycle: LifecycleDep,
    status: Optional[MatchStatus] = None,
) -> list[MatchDetails]:
    return await asyncio.to_thread(lifecycle.get_matches_with_details, status)


async def _require_pending(match_id: str, lifecycle: MatchLifecycleManager) -> None:
    match = await asyncio.to_thread(lifecycle.get_match, match_id)
    if match is None:
        raise MatchNotFoundError(match_id)
    if match.is_terminal:
        raise MatchStateError(f"Match {match_id} is already {match.status.value}")


async def _review_failed(match_id: str, lifecycle: MatchLifecycleManager) -> MatchReviewError:
    # Another reviewer got there first: 409. Still pending: the write failed.
    await _require_pending(match_id, lifecycle)
    return MatchReviewError(f"Review of match {match_id} could not be applied")


@router.post("/{match_id}/confirm", summary="Confirm a pending match")
async def confirm_match(match_id: str, lifecycle: LifecycleDep) -> dict:
    await _require_pending(match_id, lifecycle)
    if not await asyncio.to_thread(lifecycle.confirm_match, match_id):
        raise await _review_failed(match_id, lifecycle)
    return {"ok": True}


@router.post("/{match_id}/reject", summary="Reject a pending match")
async def reject_match(match_id: str, lifecycle: LifecycleDep) -> dict:
    await _require_pending(match_id, lifecycle)
    if not await asyncio.to_thread(lifecycle.reject_match, match_id):
        raise await _review_failed(match_id, lifecycle)
    return {"ok": True}
