# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Matching Module
Public API for candidate scoring and the match finder.
"""

from murshid.modules.matching.finder import MatchFinder
from murshid.modules.matching.scorer import (
    CandidateScores,
    build_candidate,
    compute_score_stats,
    fuse_scores,
    meets_threshold,
    score_candidate,
)

__all__ = [
    "MatchFinder",
    "CandidateScores",
    "fuse_scores",
    "meets_threshold",
    "score_candidate",
    "build_candidate",
    "compute_score_stats",
]
