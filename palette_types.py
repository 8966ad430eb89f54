#!/usr/bin/env python3
"""
Data model shared by the palette extraction stages.

Every record is frozen: stages build new records rather than mutating
the ones they receive.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional

from color_math import Color


# =============================================================================
# Constants
# =============================================================================

EXTRACTION_MODES = ('balanced', 'vibrant', 'muted')
HARMONY_KINDS = ('complementary', 'analogous', 'triad', 'tetradic', 'monochromatic')

MIN_COLOR_COUNT = 3
MAX_COLOR_COUNT = 15
DEFAULT_COLOR_COUNT = 8


class InvalidInputError(ValueError):
    """Input rejected before any processing (bad options or empty candidates)."""


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class CandidateSwatch:
    """A quantizer color plus whether it was reported as the dominant color."""
    color: Color
    is_dominant: bool = False


@dataclass(frozen=True)
class ClassifiedColor:
    """A candidate with the number of sampled pixels assigned to it."""
    swatch: CandidateSwatch
    count: int
    percentage: float = 0.0  # count / total classified * 100, one decimal

    @property
    def color(self) -> Color:
        return self.swatch.color


@dataclass(frozen=True)
class AccessibilityProfile:
    """Dichromacy flags: True means the color barely changes under that deficiency."""
    normal: bool = True
    protanopia: bool = False
    deuteranopia: bool = False
    tritanopia: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PaletteEntry:
    """One color of the final palette."""
    color: Color
    percentage: float
    accessibility: AccessibilityProfile = field(default_factory=AccessibilityProfile)

    @property
    def hex(self) -> str:
        return self.color.hex

    @property
    def rgb(self) -> tuple:
        return self.color.rgb

    def to_dict(self) -> dict:
        """Plain serializable record for export and history."""
        return {
            'hex': self.hex,
            'rgb': list(self.rgb),
            'percentage': self.percentage,
            'accessibility': self.accessibility.to_dict(),
        }


@dataclass(frozen=True)
class HarmonySet:
    """Companion colors derived from one palette entry."""
    base: PaletteEntry
    kind: str  # one of HARMONY_KINDS
    colors: tuple  # 1-4 Color values


@dataclass(frozen=True)
class HarmonyOutcome:
    """Result of one (base, kind) generation: either a set or an error message."""
    base: object
    kind: str
    harmony: Optional[HarmonySet] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.harmony is not None


# =============================================================================
# Options
# =============================================================================

@dataclass(frozen=True)
class ExtractionOptions:
    """Per-run settings for extract_palette."""
    mode: str = 'balanced'
    color_count: int = DEFAULT_COLOR_COUNT
    use_smart_filter: bool = False
    use_portrait_mode: bool = False
    accessibility_enabled: bool = False
    advanced_mode: bool = False  # quantizer asked for twice the swatches
    seed: Optional[int] = None  # seeds synthetic percentages

    @property
    def classify_pixels(self) -> bool:
        """Pixel classification runs when either region filter is requested."""
        return self.use_smart_filter or self.use_portrait_mode

    def validate(self) -> None:
        """
        Raises:
            InvalidInputError: If mode is unknown or color_count is outside 3-15
        """
        if self.mode not in EXTRACTION_MODES:
            raise InvalidInputError(
                f"Unknown extraction mode {self.mode!r}; expected one of {', '.join(EXTRACTION_MODES)}"
            )
        if isinstance(self.color_count, bool) or not isinstance(self.color_count, int):
            raise InvalidInputError(f"color_count must be an integer, got {self.color_count!r}")
        if not MIN_COLOR_COUNT <= self.color_count <= MAX_COLOR_COUNT:
            raise InvalidInputError(
                f"color_count {self.color_count} outside {MIN_COLOR_COUNT}-{MAX_COLOR_COUNT}"
            )

    def to_dict(self) -> dict:
        return asdict(self)
