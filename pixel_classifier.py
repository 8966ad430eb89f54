#!/usr/bin/env python3
"""
Assign sampled image pixels to their nearest candidate color.

Pixels are sampled at a stride that bounds the work to roughly
MAX_SAMPLED_PIXELS, then matched against the candidates with a single
distance matrix per chunk. Per-candidate counts from each chunk are
summed, so chunks are independent of each other.
"""

import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image
from scipy.spatial.distance import cdist

from color_math import rgb_to_hsv, round_half_up
from palette_types import CandidateSwatch, ClassifiedColor, InvalidInputError


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_SAMPLED_PIXELS = 50_000
ALPHA_CUTOFF = 128  # alpha below this counts as transparent
MATCH_DISTANCE = 60  # pixels farther than this from every candidate are dropped
CHUNK_SIZE = 16_384

# Skin tone window in HSV (hue degrees, saturation, value), inclusive
SKIN_HUE_RANGE = (0, 50)
SKIN_SATURATION_RANGE = (0.1, 0.7)
SKIN_VALUE_RANGE = (0.2, 0.95)


@dataclass(frozen=True)
class PixelClassification:
    """Output of classify_pixels."""
    colors: list  # ClassifiedColor, descending by count
    sampled: int  # pixels examined (including transparent and unmatched)
    stride: int
    total_pixels: int

    @property
    def classified(self) -> int:
        return sum(c.count for c in self.colors)


# =============================================================================
# Pixel buffers
# =============================================================================

def as_pixel_array(pixels) -> np.ndarray:
    """
    Normalize a pixel buffer to a flat (N, 4) uint8 RGBA array.

    Accepts a PIL image, an (H, W, 3|4) or (N, 3|4) array, or a sequence of
    (r, g, b, a) samples. RGB input is treated as fully opaque.

    Raises:
        InvalidInputError: If the buffer does not have 3 or 4 channels
    """
    if isinstance(pixels, Image.Image):
        pixels = np.asarray(pixels.convert('RGBA'))

    arr = np.asarray(pixels)
    if arr.size == 0:
        return np.zeros((0, 4), dtype=np.uint8)
    if arr.ndim == 3:
        arr = arr.reshape(-1, arr.shape[2])
    if arr.ndim != 2 or arr.shape[1] not in (3, 4):
        raise InvalidInputError(f"Pixel buffer must have 3 or 4 channels, got shape {np.shape(pixels)}")

    arr = np.clip(arr, 0, 255).astype(np.uint8)
    if arr.shape[1] == 3:
        alpha = np.full((arr.shape[0], 1), 255, dtype=np.uint8)
        arr = np.hstack([arr, alpha])
    return arr


def sampling_stride(total_pixels: int, max_samples: int = MAX_SAMPLED_PIXELS) -> int:
    """Stride so that at most ~max_samples pixels are examined."""
    return max(1, total_pixels // max_samples)


# =============================================================================
# Skin tones
# =============================================================================

def is_skin_tone(color) -> bool:
    h, s, v = rgb_to_hsv(*color[:3])
    return (SKIN_HUE_RANGE[0] <= h <= SKIN_HUE_RANGE[1]
            and SKIN_SATURATION_RANGE[0] <= s <= SKIN_SATURATION_RANGE[1]
            and SKIN_VALUE_RANGE[0] <= v <= SKIN_VALUE_RANGE[1])


def skin_tone_mask(rgb: np.ndarray) -> np.ndarray:
    """Vectorized is_skin_tone over an (N, 3) array."""
    rgb = rgb.astype(np.float64) / 255.0
    r, g, b = rgb[:, 0], rgb[:, 1], rgb[:, 2]
    max_c = rgb.max(axis=1)
    min_c = rgb.min(axis=1)
    diff = max_c - min_c
    safe_diff = np.where(diff == 0, 1, diff)

    hue = np.select(
        [diff == 0, max_c == r, max_c == g],
        [0.0, (g - b) / safe_diff, (b - r) / safe_diff + 2],
        default=(r - g) / safe_diff + 4,
    )
    hue = np.floor(hue * 60 + 0.5)
    hue = np.where(hue < 0, hue + 360, hue) % 360

    saturation = np.where(max_c == 0, 0.0, diff / np.where(max_c == 0, 1, max_c))

    return ((hue >= SKIN_HUE_RANGE[0]) & (hue <= SKIN_HUE_RANGE[1])
            & (saturation >= SKIN_SATURATION_RANGE[0]) & (saturation <= SKIN_SATURATION_RANGE[1])
            & (max_c >= SKIN_VALUE_RANGE[0]) & (max_c <= SKIN_VALUE_RANGE[1]))


# =============================================================================
# Classification
# =============================================================================

def nearest_candidates(rgb: np.ndarray, candidates: np.ndarray,
                       max_distance: float = MATCH_DISTANCE) -> np.ndarray:
    """
    Index of the nearest candidate for each pixel, or -1 when none is close enough.

    Ties go to the earlier candidate.
    """
    distances = cdist(rgb.astype(np.float64), candidates.astype(np.float64))
    nearest = distances.argmin(axis=1)
    nearest_dist = distances[np.arange(len(rgb)), nearest]
    return np.where(nearest_dist < max_distance, nearest, -1)


def classify_pixels(pixels, candidates: list[CandidateSwatch],
                    exclude_skin: bool = False) -> PixelClassification:
    """
    Count how many sampled pixels fall nearest to each candidate.

    Args:
        pixels: Pixel buffer (see as_pixel_array)
        candidates: Candidate swatches, in priority order
        exclude_skin: Skip skin-toned pixels entirely (portrait mode)

    Returns:
        PixelClassification with candidates that received at least one
        pixel, sorted by count descending (ties keep candidate order).
    """
    rgba = as_pixel_array(pixels)
    total_pixels = len(rgba)
    stride = sampling_stride(total_pixels)
    sampled = rgba[::stride]

    counts = np.zeros(len(candidates), dtype=np.int64)
    if candidates and len(sampled):
        candidate_rgb = np.array([c.color.rgb for c in candidates], dtype=np.float64)

        for start in range(0, len(sampled), CHUNK_SIZE):
            chunk = sampled[start:start + CHUNK_SIZE]
            keep = chunk[:, 3] >= ALPHA_CUTOFF
            rgb = chunk[keep, :3]
            if exclude_skin and len(rgb):
                rgb = rgb[~skin_tone_mask(rgb)]
            if not len(rgb):
                continue

            nearest = nearest_candidates(rgb, candidate_rgb)
            matched = nearest[nearest >= 0]
            counts += np.bincount(matched, minlength=len(candidates))

    total = int(counts.sum())
    order = np.argsort(-counts, kind='stable')
    colors = [
        ClassifiedColor(
            swatch=candidates[i],
            count=int(counts[i]),
            percentage=round_half_up(float(counts[i]) / total * 100, 1),
        )
        for i in order if counts[i] > 0
    ]

    logger.debug(
        "Classified %d of %d sampled pixels (stride %d, %d total) into %d colors",
        total, len(sampled), stride, total_pixels, len(colors)
    )
    return PixelClassification(colors=colors, sampled=len(sampled), stride=stride,
                               total_pixels=total_pixels)
