#!/usr/bin/env python3
"""
Build the candidate palette from quantizer output.

Stages: greedy dedup by RGB distance -> mode filter -> truncate to count.
"""

import logging

from color_math import Color, color_distance
from palette_types import CandidateSwatch, InvalidInputError


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Minimum RGB distance between kept swatches, per extraction mode
DEDUP_THRESHOLDS = {
    'balanced': 25,
    'vibrant': 30,
    'muted': 20,
}

VIBRANT_MIN_SATURATION = 0.4
VIBRANT_MIN_BRIGHTNESS = 0.3
MUTED_MAX_SATURATION = 0.6


# =============================================================================
# Mode predicates
# =============================================================================

def is_vibrant(color: Color) -> bool:
    return color.saturation > VIBRANT_MIN_SATURATION and color.brightness > VIBRANT_MIN_BRIGHTNESS


def is_muted(color: Color) -> bool:
    return color.saturation < MUTED_MAX_SATURATION


MODE_FILTERS = {
    'vibrant': is_vibrant,
    'muted': is_muted,
}


# =============================================================================
# Stages
# =============================================================================

def swatches_from_quantizer(dominant, palette) -> list[CandidateSwatch]:
    """
    Order quantizer output as candidates: dominant first, then the palette.

    Args:
        dominant: (r, g, b) reported as the dominant color
        palette: Sequence of (r, g, b) swatches in quantizer order
    """
    swatches = [CandidateSwatch(Color(*dominant), is_dominant=True)]
    swatches.extend(CandidateSwatch(Color(*rgb)) for rgb in palette)
    return swatches


def dedupe_swatches(swatches: list[CandidateSwatch], mode: str = 'balanced') -> list[CandidateSwatch]:
    """Keep a swatch only if it is at least the mode threshold away from every kept swatch."""
    threshold = DEDUP_THRESHOLDS[mode]
    kept = []

    for swatch in swatches:
        is_duplicate = any(
            color_distance(swatch.color, existing.color) < threshold
            for existing in kept
        )
        if not is_duplicate:
            kept.append(swatch)

    return kept


def filter_by_mode(swatches: list[CandidateSwatch], mode: str) -> list[CandidateSwatch]:
    """Vibrant/muted keep only matching swatches; balanced keeps all."""
    predicate = MODE_FILTERS.get(mode)
    if predicate is None:
        return list(swatches)
    return [s for s in swatches if predicate(s.color)]


def build_candidate_palette(swatches: list[CandidateSwatch], mode: str,
                            color_count: int) -> list[CandidateSwatch]:
    """
    Deduplicate, filter by mode and truncate the quantizer swatches.

    The result may be shorter than color_count (or empty) when the mode
    filter removes candidates.

    Raises:
        InvalidInputError: If swatches is empty or mode is unknown
    """
    if not swatches:
        raise InvalidInputError("No candidate swatches supplied")
    if mode not in DEDUP_THRESHOLDS:
        raise InvalidInputError(f"Unknown extraction mode {mode!r}")

    unique = dedupe_swatches(swatches, mode)
    filtered = filter_by_mode(unique, mode)
    result = filtered[:color_count]

    logger.debug(
        "Candidates: %d supplied, %d unique, %d after %s filter, %d kept",
        len(swatches), len(unique), len(filtered), mode, len(result)
    )
    return result
