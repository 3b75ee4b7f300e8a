# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Image Similarity Engine
Scores two item photos as 0.6·hash similarity + 0.4·histogram cosine,
and two photo sets as the best pair among their first three images.

Set comparison fingerprints each image once, then runs the (at most)
3×3 pairwise comparisons on the cached fingerprints.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from pydantic import BaseModel, ConfigDict

from murshid.config import ImageWeights
from murshid.modules.image_similarity.fingerprint import (
    ImageFingerprint,
    ImageFingerprinter,
    hash_similarity,
    histogram_similarity,
)
from murshid.utils.logger import get_logger
from murshid.utils.scoring import round_score, weighted_sum

log = get_logger(__name__)

DEFAULT_SET_LIMIT = 3


class ImageSimilarityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: float = 0.0
    phash_score: float = 0.0
    color_score: float = 0.0
    has_images: bool = False


class ImageSetComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    best: float = 0.0
    comparisons: int = 0


def compare_fingerprints(
    fp1: Optional[ImageFingerprint],
    fp2: Optional[ImageFingerprint],
    weights: ImageWeights,
) -> ImageSimilarityResult:
    """
    Combine two (possibly missing) fingerprints.
    A missing fingerprint means its image failed to load; both of its
    sub-scores degrade to 0 but the pair still counts as having images.
    """
    phash_score = 0.0
    color_score = 0.0
    if fp1 is not None and fp2 is not None:
        phash_score = hash_similarity(fp1.hash, fp2.hash)
        color_score = histogram_similarity(fp1.histogram, fp2.histogram)

    overall = weighted_sum([(phash_score, weights.phash), (color_score, weights.color)])

    return ImageSimilarityResult(
        overall=round_score(overall),
        phash_score=round_score(phash_score),
        color_score=round_score(color_score),
        has_images=True,
    )


class ImageSimilarityEngine:
    """
    Image comparison over an injected fingerprinter.

    Usage:
        engine = ImageSimilarityEngine(DefaultFingerprinter(HttpImageLoader()))
        result = await engine.similarity(url_a, url_b)
        best = await engine.compare_image_sets(report_a.images, report_b.images)
    """

    def __init__(
        self,
        fingerprinter: ImageFingerprinter,
        weights: ImageWeights | None = None,
        set_limit: int = DEFAULT_SET_LIMIT,
    ) -> None:
        self.fingerprinter = fingerprinter
        self.weights = weights or ImageWeights()
        self.set_limit = set_limit

    async def similarity(self, url1: str, url2: str) -> ImageSimilarityResult:
        if not url1 or not url2:
            return ImageSimilarityResult()

        fp1, fp2 = await asyncio.gather(
            self.fingerprinter.fingerprint(url1),
            self.fingerprinter.fingerprint(url2),
        )
        return compare_fingerprints(fp1, fp2, self.weights)

    async def compare_image_sets(self, images1: list[str], images2: list[str]) -> float:
        """
        Best pairwise overall score between the first `set_limit` images of
        each set. Returns 0 when either set is empty.
        """
        return (await self.compare_image_sets_detailed(images1, images2)).best

    async def compare_image_sets_detailed(
        self, images1: list[str], images2: list[str]
    ) -> ImageSetComparison:
        set1 = [u for u in images1 if u][: self.set_limit]
        set2 = [u for u in images2 if u][: self.set_limit]
        if not set1 or not set2:
            return ImageSetComparison()

        unique_urls = list(dict.fromkeys(set1 + set2))
        fingerprints = await asyncio.gather(
            *(self.fingerprinter.fingerprint(u) for u in unique_urls)
        )
        by_url = dict(zip(unique_urls, fingerprints))

        best = 0.0
        comparisons = 0
        for u1 in set1:
            for u2 in set2:
                result = compare_fingerprints(by_url[u1], by_url[u2], self.weights)
                comparisons += 1
                best = max(best, result.overall)

        log.debug(
            "image_sets_compared",
            n_left=len(set1),
            n_right=len(set2),
            comparisons=comparisons,
            failed=sum(fp is None for fp in fingerprints),
            best=best,
        )
        return ImageSetComparison(best=best, comparisons=comparisons)
