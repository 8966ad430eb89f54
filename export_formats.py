#!/usr/bin/env python3
"""
Text exports of a finished palette: CSS, SCSS, JSON, ASE summary.

Also builds the plain history record and rebuilds palettes from shared
hex lists.
"""

import json
import time
from datetime import datetime, timezone
from typing import Optional

from accessibility import accessibility_profile
from color_math import Color, contrast_color, round_half_up
from palette_types import ExtractionOptions, PaletteEntry


PALETTE_NAME = 'Extracted Palette'


# =============================================================================
# Single colors
# =============================================================================

def format_color(color, fmt: str = 'hex') -> str:
    """Format a color as 'hex', 'rgb', 'hsl' or 'hsv' text."""
    color = Color(*color[:3])
    if fmt == 'hex':
        return color.hex
    if fmt == 'rgb':
        return f"rgb({color.r}, {color.g}, {color.b})"
    if fmt == 'hsl':
        h, s, l = color.hsl
        return f"hsl({h}, {round_half_up(s * 100)}%, {round_half_up(l * 100)}%)"
    if fmt == 'hsv':
        h, s, v = color.hsv
        return f"hsv({h}, {round_half_up(s * 100)}%, {round_half_up(v * 100)}%)"
    raise ValueError(f"Unknown color format: {fmt!r}")


# =============================================================================
# Code exports
# =============================================================================

def generate_css(palette: list[PaletteEntry]) -> str:
    lines = [f"/* {PALETTE_NAME} */", ":root {"]
    for i, entry in enumerate(palette, 1):
        lines.append(f"  --color-{i}: {entry.hex}; /* {entry.percentage}% */")
    lines.append("}")
    lines.append("")

    for i, entry in enumerate(palette, 1):
        lines.append(f".color-{i} {{")
        lines.append(f"  background-color: {entry.hex};")
        lines.append(f"  color: {contrast_color(entry.hex)};")
        lines.append("}")
        lines.append("")

    return "\n".join(lines)


def generate_scss(palette: list[PaletteEntry]) -> str:
    lines = [f"// {PALETTE_NAME}"]
    for i, entry in enumerate(palette, 1):
        lines.append(f"$color-{i}: {entry.hex}; // {entry.percentage}%")
    lines.append("")

    lines.append("$palette: (")
    for i, entry in enumerate(palette, 1):
        lines.append(f"  'color-{i}': {entry.hex},")
    lines.append(");")
    lines.append("")

    lines.append("@function get-color($name) {")
    lines.append("  @return map-get($palette, $name);")
    lines.append("}")
    lines.append("")

    for i, entry in enumerate(palette, 1):
        lines.append(f".color-{i} {{")
        lines.append(f"  background-color: $color-{i};")
        lines.append(f"  color: {contrast_color(entry.hex)};")
        lines.append("}")
        lines.append("")

    return "\n".join(lines)


def palette_document(palette: list[PaletteEntry], source: str = 'sample',
                     generated: Optional[datetime] = None) -> dict:
    """JSON-ready palette description."""
    generated = generated or datetime.now(timezone.utc)
    return {
        'name': PALETTE_NAME,
        'generated': generated.isoformat(),
        'source': source,
        'colors': [
            {
                'id': i,
                'name': f"color-{i}",
                'hex': entry.hex,
                'rgb': list(entry.rgb),
                'hsl': list(entry.color.hsl),
                'percentage': entry.percentage,
                'accessibility': entry.accessibility.to_dict(),
            }
            for i, entry in enumerate(palette, 1)
        ],
    }


def generate_json(palette: list[PaletteEntry], source: str = 'sample',
                  generated: Optional[datetime] = None) -> str:
    return json.dumps(palette_document(palette, source, generated), indent=2)


def generate_ase_text(palette: list[PaletteEntry]) -> str:
    """Readable swatch listing in place of the binary ASE format."""
    header = f"Adobe Swatch Exchange (text)\n{PALETTE_NAME}\n\n"
    blocks = []
    for i, entry in enumerate(palette, 1):
        r, g, b = entry.rgb
        blocks.append(
            f"Color {i}\nName: color-{i}\nHex: {entry.hex}\n"
            f"RGB: {r}, {g}, {b}\nPercentage: {entry.percentage}%\n"
        )
    return header + "\n".join(blocks)


EXPORTERS = {
    'css': generate_css,
    'scss': generate_scss,
    'json': generate_json,
    'ase': generate_ase_text,
}


def export_palette(palette: list[PaletteEntry], fmt: str) -> str:
    try:
        exporter = EXPORTERS[fmt]
    except KeyError:
        raise ValueError(f"Unknown export format {fmt!r}; expected one of {', '.join(EXPORTERS)}")
    return exporter(palette)


# =============================================================================
# History and sharing
# =============================================================================

def palette_record(palette: list[PaletteEntry], options: ExtractionOptions,
                   image_name: str = 'sample', timestamp: Optional[datetime] = None) -> dict:
    """Plain serializable history entry. Storage is up to the caller."""
    timestamp = timestamp or datetime.now(timezone.utc)
    return {
        'id': int(time.time() * 1000),
        'colors': [entry.to_dict() for entry in palette],
        'image': image_name,
        'timestamp': timestamp.isoformat(),
        'settings': options.to_dict(),
    }


def palette_from_hexes(hexes: list[str], accessibility_enabled: bool = False) -> list[PaletteEntry]:
    """
    Rebuild a shared palette from hex strings with equal percentages.

    Raises:
        ValueError: If any hex string is malformed
    """
    if not hexes:
        return []
    share = round_half_up(100 / len(hexes), 1)
    palette = []
    for hex_str in hexes:
        color = Color.from_hex(hex_str)
        palette.append(PaletteEntry(
            color=color,
            percentage=share,
            accessibility=accessibility_profile(color, enabled=accessibility_enabled),
        ))
    return palette
