#!/usr/bin/env python3
"""
Color space conversions and RGB distance.

All hues are integer degrees in [0, 360); saturation, lightness and value
are floats in [0, 1]; channels are integers in [0, 255].
"""

import math
import re
from dataclasses import dataclass


HEX_PATTERN = re.compile(r'^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$', re.IGNORECASE)

# Max possible RGB distance: sqrt(3 * 255^2)
MAX_DISTANCE = math.sqrt(3 * 255 ** 2)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 upward, matching browser Math.round rather than banker's rounding."""
    scale = 10 ** digits
    result = math.floor(value * scale + 0.5) / scale
    return int(result) if digits == 0 else result


# =============================================================================
# Hex
# =============================================================================

def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Uppercase '#RRGGBB'."""
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_rgb(hex_str: str) -> tuple:
    """Parse '#RRGGBB' or 'RRGGBB' (any case) into an (r, g, b) tuple."""
    match = HEX_PATTERN.match(hex_str.strip())
    if not match:
        raise ValueError(f"Invalid hex color: {hex_str!r}")
    return tuple(int(part, 16) for part in match.groups())


# =============================================================================
# HSL / HSV
# =============================================================================

def rgb_to_hsl(r: int, g: int, b: int) -> tuple:
    """Convert RGB (0-255) to (hue degrees, saturation, lightness)."""
    r, g, b = r / 255, g / 255, b / 255
    max_c = max(r, g, b)
    min_c = min(r, g, b)
    l = (max_c + min_c) / 2

    if max_c == min_c:
        return 0, 0.0, l

    d = max_c - min_c
    s = d / (2 - max_c - min_c) if l > 0.5 else d / (max_c + min_c)

    if max_c == r:
        h = (g - b) / d + (6 if g < b else 0)
    elif max_c == g:
        h = (b - r) / d + 2
    else:
        h = (r - g) / d + 4

    return round_half_up(h * 60) % 360, s, l


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def hsl_to_rgb(h: float, s: float, l: float) -> tuple:
    """Convert (hue degrees, saturation, lightness) back to RGB (0-255)."""
    h = (h % 360) / 360

    if s == 0:
        r = g = b = l
    else:
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = _hue_to_channel(p, q, h + 1 / 3)
        g = _hue_to_channel(p, q, h)
        b = _hue_to_channel(p, q, h - 1 / 3)

    return tuple(_clamp_channel(round_half_up(c * 255)) for c in (r, g, b))


def rgb_to_hsv(r: int, g: int, b: int) -> tuple:
    """Convert RGB (0-255) to (hue degrees, saturation, value)."""
    r, g, b = r / 255, g / 255, b / 255
    max_c = max(r, g, b)
    min_c = min(r, g, b)
    diff = max_c - min_c

    h = 0.0
    if diff != 0:
        if max_c == r:
            h = (g - b) / diff
        elif max_c == g:
            h = (b - r) / diff + 2
        else:
            h = (r - g) / diff + 4

    hue = round_half_up(h * 60)
    if hue < 0:
        hue += 360

    return hue % 360, (0.0 if diff == 0 else diff / max_c), max_c


def hsv_to_rgb(h: float, s: float, v: float) -> tuple:
    """Convert (hue degrees, saturation, value) back to RGB (0-255)."""
    h = (h % 360) / 60
    c = v * s
    x = c * (1 - abs(h % 2 - 1))
    m = v - c

    sector = int(h)
    r, g, b = [
        (c, x, 0), (x, c, 0), (0, c, x),
        (0, x, c), (x, 0, c), (c, 0, x),
    ][sector % 6]

    return tuple(_clamp_channel(round_half_up((ch + m) * 255)) for ch in (r, g, b))


def _clamp_channel(value: int) -> int:
    return max(0, min(255, value))


# =============================================================================
# Distance and Contrast
# =============================================================================

def color_distance(c1, c2) -> float:
    """Euclidean distance in raw RGB space (0 to ~441.67)."""
    return math.sqrt(
        (c1[0] - c2[0]) ** 2 +
        (c1[1] - c2[1]) ** 2 +
        (c1[2] - c2[2]) ** 2
    )


def luminance(r: int, g: int, b: int) -> float:
    """Perceived brightness (0-255) using Rec. 601 weights."""
    return (r * 299 + g * 587 + b * 114) / 1000


def contrast_color(hex_str: str) -> str:
    """Return the text color ('#000000' or '#ffffff') readable on hex_str."""
    return '#000000' if luminance(*hex_to_rgb(hex_str)) > 128 else '#ffffff'


# =============================================================================
# Color
# =============================================================================

@dataclass(frozen=True)
class Color:
    """An immutable RGB triple. Derived forms are computed on access."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ('r', 'g', 'b'):
            value = getattr(self, name)
            if isinstance(value, bool):
                raise ValueError(f"Channel {name} must be an integer, got {value!r}")
            if not isinstance(value, int):
                # numpy integers are accepted and normalized to int
                try:
                    normalized = int(value)
                except (TypeError, ValueError):
                    raise ValueError(f"Channel {name} must be an integer, got {value!r}")
                if normalized != value:
                    raise ValueError(f"Channel {name} must be an integer, got {value!r}")
                object.__setattr__(self, name, normalized)
                value = normalized
            if not 0 <= value <= 255:
                raise ValueError(f"Channel {name}={value} outside 0-255")

    def __iter__(self):
        return iter((self.r, self.g, self.b))

    def __getitem__(self, index: int) -> int:
        return (self.r, self.g, self.b)[index]

    def __len__(self) -> int:
        return 3

    @classmethod
    def from_hex(cls, hex_str: str) -> 'Color':
        return cls(*hex_to_rgb(hex_str))

    @property
    def rgb(self) -> tuple:
        return (self.r, self.g, self.b)

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.r, self.g, self.b)

    @property
    def hsl(self) -> tuple:
        return rgb_to_hsl(self.r, self.g, self.b)

    @property
    def hsv(self) -> tuple:
        return rgb_to_hsv(self.r, self.g, self.b)

    @property
    def saturation(self) -> float:
        """HSV saturation: (max - min) / max."""
        return self.hsv[1]

    @property
    def brightness(self) -> float:
        """Max channel / 255."""
        return max(self.r, self.g, self.b) / 255

    def distance(self, other) -> float:
        return color_distance(self, other)

    def __str__(self) -> str:
        return self.hex
