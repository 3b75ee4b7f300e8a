# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Image Decoding and Conversion Utilities
All fingerprinting works on RGB uint8 numpy arrays (H×W×3).
Decoding goes through Pillow so WebP, palette and RGBA uploads are
flattened to RGB the same way the upload path stores them.
"""

import io
from pathlib import Path

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

# ITU-R BT.601 luma coefficients
_LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float64)


# ─── Decode ──────────────────────────────────────────────────────────────────

def bytes_to_rgb(data: bytes) -> np.ndarray:
    """
    Decode raw image bytes to an RGB uint8 numpy array.
    Raises ValueError if the bytes cannot be decoded as an image.
    """
    if not data:
        raise ValueError("Empty image payload.")
    try:
        with Image.open(io.BytesIO(data)) as img:
            return np.array(img.convert("RGB"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Could not decode image bytes: {e}") from e


def load_image_rgb(path: Path) -> np.ndarray:
    """
    Load an image from disk as an RGB uint8 numpy array.
    Raises FileNotFoundError if path does not exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    return bytes_to_rgb(path.read_bytes())


# ─── Resize / Colour ─────────────────────────────────────────────────────────

def resize_exact(img: np.ndarray, size: int) -> np.ndarray:
    """
    Resize to size×size ignoring aspect ratio (fingerprint grids are square).
    INTER_AREA averages source pixels when shrinking, which is what makes
    the 8×8 hash tolerant of recompression noise.
    """
    h, w = img.shape[:2]
    interpolation = cv2.INTER_AREA if (h >= size and w >= size) else cv2.INTER_LINEAR
    return cv2.resize(img, (size, size), interpolation=interpolation)


def rgb_to_luminance(img: np.ndarray) -> np.ndarray:
    """Per-pixel luminance 0.299R + 0.587G + 0.114B as float64 (H×W)."""
    return img[..., :3].astype(np.float64) @ _LUMA
