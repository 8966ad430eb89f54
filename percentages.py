#!/usr/bin/env python3
"""
Turn populations (or their absence) into palette percentages.

Measured mode normalizes pixel counts. Synthetic mode, used when no pixel
classification ran, apportions 100% at random with a floor per color.
"""

from typing import Callable, Optional

import numpy as np

from color_math import round_half_up
from palette_types import AccessibilityProfile, CandidateSwatch, ClassifiedColor, PaletteEntry


MIN_SYNTHETIC_SHARE = 5  # percent


def _default_profile(color) -> AccessibilityProfile:
    return AccessibilityProfile()


def measured_percentages(colors: list[ClassifiedColor],
                         profile: Optional[Callable] = None) -> list[PaletteEntry]:
    """Percentages from counts, one decimal, order preserved."""
    profile = profile or _default_profile
    total = sum(c.count for c in colors)
    if total == 0:
        return []

    return [
        PaletteEntry(
            color=c.color,
            percentage=round_half_up(c.count / total * 100, 1),
            accessibility=profile(c.color),
        )
        for c in colors
    ]


def synthetic_shares(n: int, rng: np.random.Generator,
                     floor: float = MIN_SYNTHETIC_SHARE) -> list[float]:
    """
    Split 100% into n one-decimal shares that sum to exactly 100.

    Each share but the last is max(floor, U(0,1) * remaining / colors_left);
    the last absorbs the remainder. Shares are computed in tenths of a
    percent so the total is exact.
    """
    remaining = 1000
    shares = []
    for index in range(n):
        if index == n - 1:
            tenths = remaining
        else:
            share = max(floor, rng.random() * (remaining / 10 / (n - index)))
            tenths = round_half_up(share * 10)
        remaining -= tenths
        shares.append(tenths / 10)
    return shares


def synthetic_percentages(swatches: list[CandidateSwatch],
                          rng: Optional[np.random.Generator] = None,
                          profile: Optional[Callable] = None) -> list[PaletteEntry]:
    """
    Palette entries with random percentages summing to 100, sorted descending.

    Pass a seeded numpy Generator for reproducible output; without one the
    result differs between runs.
    """
    if not swatches:
        return []
    profile = profile or _default_profile
    rng = rng if rng is not None else np.random.default_rng()

    shares = synthetic_shares(len(swatches), rng)
    entries = [
        PaletteEntry(color=s.color, percentage=share, accessibility=profile(s.color))
        for s, share in zip(swatches, shares)
    ]
    return sorted(entries, key=lambda e: -e.percentage)
