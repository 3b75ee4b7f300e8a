# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Attribute Fusion
Folds the descriptive fields of two reports into the single "text"
dimension used by the match finder:

  title 0.30 · description 0.40 · color 0.15 · marks 0.10 · category 0.05

Optional fields (color, marks) score 0 unless both sides provide them.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from murshid.config import AttributeWeights, TextWeights
from murshid.models.report import Report
from murshid.modules.text_similarity.similarity import text_similarity
from murshid.utils.scoring import round_score, weighted_sum


class AttributeSet(BaseModel):
    title: str
    description: str
    category: str
    color: Optional[str] = None
    marks: Optional[str] = None

    @classmethod
    def from_report(cls, report: Report) -> "AttributeSet":
        return cls(
            title=report.title,
            description=report.description,
            category=report.category,
            color=report.color,
            marks=report.distinguishing_marks,
        )


def _optional_similarity(a: str | None, b: str | None, weights: TextWeights) -> float:
    if not a or not b:
        return 0.0
    return text_similarity(a, b, weights).overall


def compare_attributes(
    item1: AttributeSet,
    item2: AttributeSet,
    weights: AttributeWeights | None = None,
    text_weights: TextWeights | None = None,
) -> float:
    weights = weights or AttributeWeights()
    text_weights = text_weights or TextWeights()

    title_sim = text_similarity(item1.title, item2.title, text_weights).overall
    desc_sim = text_similarity(item1.description, item2.description, text_weights).overall
    color_sim = _optional_similarity(item1.color, item2.color, text_weights)
    marks_sim = _optional_similarity(item1.marks, item2.marks, text_weights)
    category_sim = 1.0 if item1.category == item2.category else 0.0

    total = weighted_sum([
        (title_sim, weights.title),
        (desc_sim, weights.description),
        (color_sim, weights.color),
        (marks_sim, weights.marks),
        (category_sim, weights.category),
    ])

    return round_score(total)
