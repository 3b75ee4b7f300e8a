# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Match Finder
For one report, find the ranked opposite-type reports likely to be the
same physical item:

  Stage 1: Load the source report
  Stage 2: Hard filter candidates (opposite type, same category, still active)
  Stage 3: Score each candidate (bounded concurrency, order preserved)
  Stage 4: Keep final >= min_threshold, sort by final score descending

Returns unsaved MatchCandidate templates. Persisting them is the
lifecycle manager's job.
"""

from __future__ import annotations

import asyncio
import time

import structlog

from murshid.config import MatchingConfig
from murshid.core.report_store import ReportStore
from murshid.models.match import MatchCandidate
from murshid.models.report import INACTIVE_STATUSES, Report
from murshid.modules.image_similarity.similarity import ImageSimilarityEngine
from murshid.modules.matching.scorer import (
    CandidateScores,
    build_candidate,
    compute_score_stats,
    meets_threshold,
    score_candidate,
)
from murshid.utils.logger import get_logger

log = get_logger(__name__)


class MatchFinder:
    """
    Usage:
        finder = MatchFinder(report_store, image_engine, MatchingConfig())
        candidates = await finder.find_potential_matches(report_id)
    """

    def __init__(
        self,
        report_store: ReportStore,
        image_engine: ImageSimilarityEngine,
        config: MatchingConfig | None = None,
    ) -> None:
        self.report_store = report_store
        self.image_engine = image_engine
        self.config = config or MatchingConfig()

    async def find_potential_matches(self, report_id: str) -> list[MatchCandidate]:
        """
        Ranked candidates for report_id, best first.
        Unknown report, store failure or scoring failure → [] (logged, never raised).
        """
        with structlog.contextvars.bound_contextvars(report_id=report_id):
            t0 = time.perf_counter()
            try:
                source = await asyncio.to_thread(self.report_store.get_report_by_id, report_id)
                if source is None:
                    log.warning("match_source_not_found")
                    return []

                pool = await asyncio.to_thread(
                    self.report_store.get_candidate_reports,
                    opposite_type=source.opposite_type(),
                    category=source.category,
                    exclude_statuses=INACTIVE_STATUSES,
                    limit=self.config.candidate_limit,
                )
            except Exception as exc:
                log.error("match_candidates_load_failed", error=str(exc), exc_type=type(exc).__name__)
                return []

            # The store filters already; re-check so a loose backend cannot leak
            # other categories or the source itself into the results
            pool = [
                c for c in pool
                if c.id != source.id
                and c.type == source.opposite_type()
                and c.category == source.category
                and c.status not in INACTIVE_STATUSES
            ]

            log.info(
                "match_search_start",
                type=source.type.value,
                category=source.category,
                n_candidates=len(pool),
            )

            try:
                scored = await self._score_all(source, pool)
            except Exception as exc:
                log.error("match_scoring_failed", error=str(exc), exc_type=type(exc).__name__)
                return []

            passing = [
                (candidate, scores)
                for candidate, scores in zip(pool, scored)
                if meets_threshold(scores.final, self.config)
            ]
            # Stable: ties keep the store's most-recent-first order
            passing.sort(key=lambda pair: pair[1].final, reverse=True)
            kept = [build_candidate(source, c, s) for c, s in passing]

            for m in kept:
                if m.final_score >= self.config.high_threshold:
                    log.info(
                        "high_confidence_match",
                        lost_report_id=m.lost_report_id,
                        found_report_id=m.found_report_id,
                        final_score=m.final_score,
                    )

            log.info(
                "match_search_complete",
                kept=len(kept),
                scored=len(pool),
                stats=compute_score_stats(kept),
                elapsed_ms=round((time.perf_counter() - t0) * 1000, 1),
            )
            return kept

    async def _score_all(self, source: Report, pool: list[Report]) -> list[CandidateScores]:
        """Score every candidate; at most comparison_concurrency in flight."""
        semaphore = asyncio.Semaphore(self.config.comparison_concurrency)

        async def _score(candidate: Report) -> CandidateScores:
            async with semaphore:
                scores = await score_candidate(source, candidate, self.image_engine, self.config)
            log.debug(
                "candidate_scored",
                candidate_id=candidate.id,
                text=scores.text,
                image=scores.image,
                location=scores.location,
                time=scores.time,
                final=round(scores.final, 4),
            )
            return scores

        # gather preserves input order whatever the completion order
        return list(await asyncio.gather(*(_score(c) for c in pool)))
