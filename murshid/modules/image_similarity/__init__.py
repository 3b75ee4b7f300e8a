# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Image Similarity Module
Public API for image loading, fingerprinting and comparison.
"""

from murshid.modules.image_similarity.fingerprint import (
    DefaultFingerprinter,
    ImageFingerprint,
    ImageFingerprinter,
    average_hash,
    color_histogram,
    dct_hash,
    fingerprint_image,
    hamming_distance,
    hash_similarity,
    histogram_similarity,
)
from murshid.modules.image_similarity.loader import HttpImageLoader, ImageLoader
from murshid.modules.image_similarity.similarity import (
    ImageSetComparison,
    ImageSimilarityEngine,
    ImageSimilarityResult,
    compare_fingerprints,
)

__all__ = [
    # Loading
    "ImageLoader",
    "HttpImageLoader",
    # Fingerprints
    "ImageFingerprint",
    "ImageFingerprinter",
    "DefaultFingerprinter",
    "average_hash",
    "dct_hash",
    "color_histogram",
    "fingerprint_image",
    "hamming_distance",
    "hash_similarity",
    "histogram_similarity",
    # Engine
    "ImageSimilarityResult",
    "ImageSetComparison",
    "ImageSimilarityEngine",
    "compare_fingerprints",
]
