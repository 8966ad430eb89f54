#!/usr/bin/env python3
"""Drop background-dominant populations from a classified palette."""

import logging
from typing import Optional

from color_math import color_distance
from palette_types import ClassifiedColor


logger = logging.getLogger(__name__)


BACKGROUND_THRESHOLD = 0.25  # top color share at which it is treated as background
BACKGROUND_SIMILARITY = 30  # RGB distance to the background that also gets dropped

NEAR_WHITE_MIN = 240
NEAR_BLACK_MAX = 25
GRAY_MAX_DEVIATION = 25
GRAY_MIN_MEAN = 200


def is_background_color(color) -> bool:
    """Near-white, light gray or near-black."""
    r, g, b = color[0], color[1], color[2]

    if r > NEAR_WHITE_MIN and g > NEAR_WHITE_MIN and b > NEAR_WHITE_MIN:
        return True

    # Sum of absolute deviations from the channel mean
    mean = (r + g + b) / 3
    deviation = abs(r - mean) + abs(g - mean) + abs(b - mean)
    if deviation < GRAY_MAX_DEVIATION and mean > GRAY_MIN_MEAN:
        return True

    if r < NEAR_BLACK_MAX and g < NEAR_BLACK_MAX and b < NEAR_BLACK_MAX:
        return True

    return False


def remove_background(colors: list[ClassifiedColor], threshold: float = BACKGROUND_THRESHOLD,
                      population: Optional[int] = None) -> list[ClassifiedColor]:
    """
    Remove the background population and colors that look like background.

    The top (most populous) color is the background candidate. If its share
    of the population reaches threshold it is dropped, and so is every other
    color that is white/gray/black-like or within BACKGROUND_SIMILARITY of it.
    Below the threshold nothing is removed.

    Args:
        colors: Classified colors sorted by count descending
        threshold: Share (0-1) at which the top color counts as background
        population: Pixel total the share is measured against. Defaults to
            the sum of counts.

    Returns:
        Filtered colors in the same order. May be empty.
    """
    if not colors:
        return []

    background = max(colors, key=lambda c: c.count)
    if population is None:
        population = sum(c.count for c in colors)
    share = background.count / population if population else 0.0

    if share < threshold:
        return list(colors)

    logger.debug("Dropping background %s (%.1f%% of %d pixels)",
                 background.color.hex, share * 100, population)

    kept = []
    for color in colors:
        if color is background:
            continue
        if is_background_color(color.color):
            continue
        if color_distance(color.color, background.color) < BACKGROUND_SIMILARITY:
            continue
        kept.append(color)
    return kept
