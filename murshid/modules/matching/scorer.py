# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Candidate Scorer
Scores one (source, candidate) report pair on the four match dimensions
and fuses them into the final score:

  text      attribute fusion of title / description / color / marks / category
  image     best pairwise fingerprint similarity of the two image sets
  location  coordinate distance band, else city / address comparison
  time      date_occurred difference band

A dimension with no data (no images, no location) scores 0 and keeps its
weight; the final score is never renormalised over present dimensions.

Also computes summary statistics used in the finder's run log.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from murshid.config import MatchingConfig, MatchWeights
from murshid.models.match import MatchCandidate
from murshid.models.report import Report, ReportType
from murshid.modules.image_similarity.similarity import ImageSimilarityEngine
from murshid.modules.proximity.location import LocationInfo, location_score
from murshid.modules.proximity.timing import time_score
from murshid.modules.text_similarity.attributes import AttributeSet, compare_attributes
from murshid.utils.scoring import clamp01, round_score, weighted_sum


@dataclass(frozen=True)
class CandidateScores:
    text: float
    image: float
    location: float
    time: float
    final: float


def fuse_scores(
    text: float,
    image: float,
    location: float,
    time: float,
    weights: MatchWeights,
) -> float:
    """Weighted sum of the four dimension scores (unrounded)."""
    return clamp01(weighted_sum([
        (text, weights.text),
        (image, weights.image),
        (location, weights.location),
        (time, weights.time),
    ]))


def meets_threshold(final_score: float, config: MatchingConfig) -> bool:
    """Inclusive: a pair scoring exactly min_threshold is kept."""
    return final_score >= config.min_threshold


async def score_candidate(
    source: Report,
    candidate: Report,
    image_engine: ImageSimilarityEngine,
    config: MatchingConfig,
) -> CandidateScores:
    """
    Compute all dimension scores for one pair.

    Args:
        source:       The report being matched
        candidate:    One report of the opposite type, same category
        image_engine: Shared engine (fingerprinter injected by the host)
        config:       Frozen weights and thresholds

    Returns:
        CandidateScores with each dimension rounded to 2 decimals and the
        final score fused from the unrounded dimension values.
    """
    text = compare_attributes(
        AttributeSet.from_report(source),
        AttributeSet.from_report(candidate),
        weights=config.attribute_weights,
        text_weights=config.text_weights,
    )

    image = 0.0
    if source.images and candidate.images:
        image = await image_engine.compare_image_sets(source.images, candidate.images)

    location = location_score(
        LocationInfo.from_report(source),
        LocationInfo.from_report(candidate),
        text_weights=config.text_weights,
    )
    time = time_score(
        source.date_occurred,
        candidate.date_occurred,
        max_days=config.max_date_diff_days,
    )

    final = fuse_scores(text, image, location, time, config.weights)

    return CandidateScores(
        text=round_score(text),
        image=round_score(image),
        location=round_score(location),
        time=round_score(time),
        final=final,
    )


def build_candidate(source: Report, candidate: Report, scores: CandidateScores) -> MatchCandidate:
    """
    Orient a scored pair by report type: the lost report always lands in
    lost_report_id, regardless of which side triggered the run.
    """
    if source.type == ReportType.LOST:
        lost, found = source, candidate
    else:
        lost, found = candidate, source

    return MatchCandidate(
        lost_report_id=lost.id,
        found_report_id=found.id,
        image_score=scores.image,
        text_score=scores.text,
        location_score=scores.location,
        time_score=scores.time,
        final_score=round_score(scores.final),
    )


def compute_score_stats(candidates: list[MatchCandidate]) -> dict:
    """
    Summary statistics over kept candidates for the run log.

    Returns:
        Dict with keys: count, mean, min, max
    """
    if not candidates:
        return {"count": 0, "mean": 0.0, "min": 0.0, "max": 0.0}

    scores = np.array([c.final_score for c in candidates], dtype=np.float64)
    return {
        "count": len(candidates),
        "mean": round(float(scores.mean()), 4),
        "min": float(scores.min()),
        "max": float(scores.max()),
    }
