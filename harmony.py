#!/usr/bin/env python3
"""
Harmony colors for the leading palette entries.

Each generator takes an (r, g, b) color and returns companion colors.
Hue-based harmonies rotate the HSL hue at constant saturation and
lightness. Complementary is a straight RGB inversion.
"""

import logging
from dataclasses import dataclass

from color_math import Color, hsl_to_rgb, rgb_to_hsl
from palette_types import HARMONY_KINDS, HarmonyOutcome, HarmonySet


logger = logging.getLogger(__name__)


MAX_HARMONY_BASES = 3

# (saturation multiplier, lightness multiplier); lightness capped at 1
MONOCHROMATIC_STEPS = (
    (0.7, 1.3),
    (1.2, 0.7),
    (0.9, 1.1),
    (0.5, 0.9),
)


# =============================================================================
# Generators
# =============================================================================

def _rotate(color, offsets: tuple) -> list[tuple]:
    h, s, l = rgb_to_hsl(*color[:3])
    return [hsl_to_rgb((h + offset) % 360, s, l) for offset in offsets]


def get_complementary(color) -> list[tuple]:
    r, g, b = color[:3]
    return [(255 - r, 255 - g, 255 - b)]


def get_analogous(color) -> list[tuple]:
    return _rotate(color, (30, -30))


def get_triad(color) -> list[tuple]:
    return _rotate(color, (120, 240))


def get_tetradic(color) -> list[tuple]:
    return _rotate(color, (90, 180, 270))


def get_monochromatic(color) -> list[tuple]:
    h, s, l = rgb_to_hsl(*color[:3])
    # Saturation may exceed 1 on the 1.2 step; hsl_to_rgb clamps the channels
    return [
        hsl_to_rgb(h, s * s_mult, min(1.0, l * l_mult))
        for s_mult, l_mult in MONOCHROMATIC_STEPS
    ]


GENERATORS = {
    'complementary': get_complementary,
    'analogous': get_analogous,
    'triad': get_triad,
    'tetradic': get_tetradic,
    'monochromatic': get_monochromatic,
}


# =============================================================================
# Palette-level generation
# =============================================================================

def generate_harmony(base, kind: str) -> HarmonySet:
    """
    Build one harmony set for a palette entry.

    Raises:
        KeyError: If kind is unknown
        AttributeError, TypeError, ValueError: If base is malformed
    """
    generator = GENERATORS[kind]
    colors = tuple(Color(*rgb) for rgb in generator(base.color.rgb))
    return HarmonySet(base=base, kind=kind, colors=colors)


def generate_harmony_outcomes(palette: list, kinds: tuple = HARMONY_KINDS,
                              max_bases: int = MAX_HARMONY_BASES) -> list[HarmonyOutcome]:
    """
    One outcome per (base, kind) for the leading palette entries.

    A failure in one pair is logged and recorded on its outcome; the
    remaining pairs are still generated.
    """
    outcomes = []
    for base in palette[:max_bases]:
        for kind in kinds:
            try:
                harmony = generate_harmony(base, kind)
            except Exception as e:
                logger.exception("Failed to generate %s harmony for %r", kind, base)
                outcomes.append(HarmonyOutcome(base=base, kind=kind, error=f"{type(e).__name__}: {e}"))
            else:
                outcomes.append(HarmonyOutcome(base=base, kind=kind, harmony=harmony))
    return outcomes


def generate_harmonies(palette: list) -> list[HarmonySet]:
    """Harmony sets for up to three leading entries; failed pairs are omitted."""
    return [o.harmony for o in generate_harmony_outcomes(palette) if o.ok]


# =============================================================================
# Hue family
# =============================================================================

@dataclass(frozen=True)
class HueFamily:
    """Descriptive reading of a color's hue, shown for portraits."""
    name: str
    traits: tuple
    pairs_with: str


# (upper hue bound exclusive, family)
HUE_FAMILIES = (
    (30, HueFamily("Passionate Red", ("passionate", "proactive", "a natural leader", "decisive"),
                   "orange, yellow and deep blue")),
    (60, HueFamily("Cheerful Orange-Yellow", ("sociable", "bright", "creative", "optimistic"),
                   "red, green and purple")),
    (120, HueFamily("Calming Green", ("gentle", "soothing", "cooperative", "balanced"),
                    "blue, yellow and earth tones")),
    (180, HueFamily("Intelligent Cyan-Teal", ("composed", "intellectual", "refined", "analytical"),
                    "orange, red and navy")),
    (240, HueFamily("Trustworthy Blue", ("sincere", "responsible", "logical", "steady"),
                    "orange, yellow and white")),
    (300, HueFamily("Mysterious Purple", ("original", "mysterious", "intuitive", "artistic"),
                    "yellow, green and silver")),
    (360, HueFamily("Gentle Pink-Magenta", ("considerate", "affectionate", "warm", "supportive"),
                    "green, blue and gold")),
)


def describe_hue_family(color) -> HueFamily:
    """Family of a color by its HSV hue."""
    hue = Color(*color[:3]).hsv[0]
    for upper, family in HUE_FAMILIES:
        if hue < upper:
            return family
    return HUE_FAMILIES[-1][1]
