#!/usr/bin/env python3
"""
Dichromacy flags for palette colors.

The simulations are fixed linear approximations, not calibrated CIE
transforms. A flag is set when the simulated color stays within
CONFUSION_THRESHOLD of the original.
"""

import numpy as np

from color_math import color_distance
from palette_types import AccessibilityProfile


CONFUSION_THRESHOLD = 50

# Rows produce r', g', b' from (r, g, b)
PROTANOPIA = np.array([
    [0.567, 0.433, 0.0],
    [0.558, 0.442, 0.0],
    [0.0, 0.242, 0.758],
])

DEUTERANOPIA = np.array([
    [0.625, 0.375, 0.0],
    [0.7, 0.3, 0.0],
    [0.0, 0.3, 0.7],
])

TRITANOPIA = np.array([
    [0.95, 0.05, 0.0],
    [0.0, 0.433, 0.567],
    [0.0, 0.475, 0.525],
])


def simulate(color, matrix: np.ndarray) -> tuple:
    """Apply a 3x3 simulation matrix, rounding half up."""
    simulated = matrix @ np.array(color[:3], dtype=np.float64)
    return tuple(int(v) for v in np.floor(simulated + 0.5))


def simulate_protanopia(color) -> tuple:
    return simulate(color, PROTANOPIA)


def simulate_deuteranopia(color) -> tuple:
    return simulate(color, DEUTERANOPIA)


def simulate_tritanopia(color) -> tuple:
    return simulate(color, TRITANOPIA)


def accessibility_profile(color, enabled: bool = True) -> AccessibilityProfile:
    """
    Compute dichromacy flags for a color.

    With enabled=False all deficiency flags stay False and only normal is set.
    """
    if not enabled:
        return AccessibilityProfile()

    return AccessibilityProfile(
        normal=True,
        protanopia=color_distance(color, simulate_protanopia(color)) < CONFUSION_THRESHOLD,
        deuteranopia=color_distance(color, simulate_deuteranopia(color)) < CONFUSION_THRESHOLD,
        tritanopia=color_distance(color, simulate_tritanopia(color)) < CONFUSION_THRESHOLD,
    )
