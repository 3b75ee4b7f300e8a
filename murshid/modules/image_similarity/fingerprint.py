# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Image Fingerprints
Classical, model-free descriptors for comparing item photos.

  aHash      8×8 luminance grid, bit = pixel > mean          (64 bits)
  pHash      32×32 luminance → orthonormal 2-D DCT-II, the 64 lowest
             non-DC frequencies, bit = coefficient > mean    (64 bits)
  histogram  64×64 RGB, 8 bins per channel (value // 32), R|G|B
             concatenated and normalised by pixel count      (24 floats)

aHash is the default: it is cheap and, on phone photos of the same
object, about as discriminative as pHash. Both sides of one comparison
must use the same mode; mismatched hash lengths score 0.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal, Optional

import numpy as np
from scipy.fft import dctn

from murshid.modules.image_similarity.loader import ImageLoader
from murshid.utils.image_utils import resize_exact, rgb_to_luminance
from murshid.utils.logger import get_logger

log = get_logger(__name__)

FingerprintMode = Literal["ahash", "phash"]

AHASH_SIZE = 8
PHASH_SIZE = 32
PHASH_BITS = 64
HISTOGRAM_SIZE = 64
HISTOGRAM_BINS = 8


# ─── Hashes ──────────────────────────────────────────────────────────────────

def _bits(values: np.ndarray) -> str:
    mean = values.mean()
    return "".join("1" if v > mean else "0" for v in values.ravel())


def average_hash(img: np.ndarray, size: int = AHASH_SIZE) -> str:
    """Average hash of an RGB image as a string of size² '0'/'1' characters."""
    gray = rgb_to_luminance(resize_exact(img, size))
    return _bits(gray)


def _low_frequency_order(size: int, count: int) -> tuple[np.ndarray, np.ndarray]:
    """(u, v) indices of the `count` lowest frequencies, DC excluded, by (u+v, u)."""
    coords = sorted(
        ((u, v) for u in range(size) for v in range(size) if (u, v) != (0, 0)),
        key=lambda uv: (uv[0] + uv[1], uv[0]),
    )[:count]
    us, vs = zip(*coords)
    return np.array(us), np.array(vs)


_PHASH_U, _PHASH_V = _low_frequency_order(PHASH_SIZE, PHASH_BITS)


def dct_hash(img: np.ndarray) -> str:
    """DCT perceptual hash (64 bits) of an RGB image."""
    gray = rgb_to_luminance(resize_exact(img, PHASH_SIZE))
    coeffs = dctn(gray, type=2, norm="ortho")
    return _bits(coeffs[_PHASH_U, _PHASH_V])


def hamming_distance(hash1: str, hash2: str) -> int:
    """Differing bit count. Mismatched lengths count as maximally distant."""
    if len(hash1) != len(hash2):
        return max(len(hash1), len(hash2))
    return sum(c1 != c2 for c1, c2 in zip(hash1, hash2))


def hash_similarity(hash1: str, hash2: str) -> float:
    if not hash1 or len(hash1) != len(hash2):
        return 0.0
    return 1.0 - hamming_distance(hash1, hash2) / len(hash1)


# ─── Colour Histogram ────────────────────────────────────────────────────────

def color_histogram(img: np.ndarray) -> np.ndarray:
    """
    Concatenated per-channel histograms, each bin a fraction of all pixels.
    Returns float64 array of shape (3 * HISTOGRAM_BINS,).
    """
    small = resize_exact(img, HISTOGRAM_SIZE)
    n_pixels = small.shape[0] * small.shape[1]
    bin_width = 256 // HISTOGRAM_BINS

    channels = []
    for c in range(3):
        bins = small[..., c].ravel().astype(np.int64) // bin_width
        channels.append(np.bincount(bins, minlength=HISTOGRAM_BINS)[:HISTOGRAM_BINS])

    return np.concatenate(channels).astype(np.float64) / n_pixels


def histogram_similarity(hist1: np.ndarray, hist2: np.ndarray) -> float:
    """Cosine similarity of two histograms; 0 if either is all zeros."""
    norm1 = float(np.linalg.norm(hist1))
    norm2 = float(np.linalg.norm(hist2))
    if norm1 == 0 or norm2 == 0 or hist1.shape != hist2.shape:
        return 0.0
    return min(1.0, float(np.dot(hist1, hist2)) / (norm1 * norm2))


# ─── Fingerprinter ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ImageFingerprint:
    hash: str
    histogram: np.ndarray


def fingerprint_image(img: np.ndarray, mode: FingerprintMode = "ahash") -> ImageFingerprint:
    image_hash = dct_hash(img) if mode == "phash" else average_hash(img)
    return ImageFingerprint(hash=image_hash, histogram=color_histogram(img))


class ImageFingerprinter(ABC):
    """
    Produces fingerprints for image URLs. Injected into the similarity
    engine so tests can substitute a deterministic in-memory fake.
    """

    @abstractmethod
    async def fingerprint(self, url: str) -> Optional[ImageFingerprint]:
        """Return the fingerprint, or None if the image cannot be loaded."""


class DefaultFingerprinter(ImageFingerprinter):
    """Loads through an ImageLoader and fingerprints with aHash or pHash."""

    def __init__(self, loader: ImageLoader, mode: FingerprintMode = "ahash") -> None:
        self._loader = loader
        self.mode = mode

    async def fingerprint(self, url: str) -> Optional[ImageFingerprint]:
        img = await self._loader.load(url)
        if img is None:
            return None
        if img.ndim != 3 or img.shape[2] < 3 or min(img.shape[:2]) == 0:
            log.warning("image_shape_unsupported", url=url, shape=img.shape)
            return None
        # Resizing and the DCT are CPU-bound; keep them off the event loop
        return await asyncio.to_thread(fingerprint_image, img, self.mode)
