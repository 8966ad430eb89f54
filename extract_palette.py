#!/usr/bin/env python3
"""
Palette extraction pipeline.

Turns quantizer swatches (and optionally the image's pixels) into a
ranked, percentage-weighted palette with accessibility flags, then derives
harmony colors from the leading entries.
Stages: Candidates → Pixel Classification → Region Filter → Percentages → Harmonies
"""

import logging
from functools import partial
from typing import Optional

import numpy as np
from PIL import Image

from accessibility import accessibility_profile
from candidates import build_candidate_palette, swatches_from_quantizer
from color_math import contrast_color
from export_formats import format_color
from harmony import describe_hue_family, generate_harmonies
from palette_types import (
    CandidateSwatch, ExtractionOptions, HarmonySet, InvalidInputError, PaletteEntry,
)
from percentages import measured_percentages, synthetic_percentages
from pixel_classifier import ALPHA_CUTOFF, as_pixel_array, classify_pixels
from region_filter import remove_background


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Image size limits (security: prevent decompression bombs)
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 10_000  # 10k pixels per side

MAX_RESOLUTION = (1920, 1080)  # images are downscaled to fit before quantizing


# =============================================================================
# Engine
# =============================================================================

def extract_palette(candidates: list[CandidateSwatch], options: ExtractionOptions,
                    pixels=None, rng: Optional[np.random.Generator] = None) -> list[PaletteEntry]:
    """
    Build the final palette from quantizer candidates.

    Pixel classification runs when smart filter or portrait mode is on and
    a pixel buffer is given; percentages then reflect measured pixel
    populations with the background removed. Otherwise percentages are
    synthesized.

    Args:
        candidates: Dominant color first, then quantizer swatches
        options: Extraction settings
        pixels: Optional pixel buffer (see pixel_classifier.as_pixel_array)
        rng: Random source for synthetic percentages. Defaults to one
            seeded from options.seed.

    Returns:
        Palette entries, highest percentage first. Empty when every
        candidate was filtered out.

    Raises:
        InvalidInputError: If options are invalid or candidates is empty
    """
    options.validate()
    swatches = build_candidate_palette(candidates, options.mode, options.color_count)
    profile = partial(accessibility_profile, enabled=options.accessibility_enabled)

    if options.classify_pixels and pixels is not None:
        classification = classify_pixels(pixels, swatches, exclude_skin=options.use_portrait_mode)
        filtered = remove_background(classification.colors, population=classification.sampled)
        palette = measured_percentages(filtered, profile)
    else:
        if options.classify_pixels:
            logger.info("No pixel buffer supplied; using synthetic percentages")
        if rng is None:
            rng = np.random.default_rng(options.seed)
        palette = synthetic_percentages(swatches, rng, profile)

    if not palette:
        logger.info("All candidate colors were filtered out")
    return palette


# =============================================================================
# Image Helpers
# =============================================================================

def load_image(image_path: str) -> Image.Image:
    """
    Open an image as RGBA.

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If file is not a valid image or exceeds size limits
    """
    try:
        img = Image.open(image_path)
    except FileNotFoundError:
        raise FileNotFoundError(f"Image not found: {image_path}")
    except Exception as e:
        raise ValueError(f"Could not open image: {e}")

    width, height = img.size
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ValueError(
            f"Image dimensions {width}x{height} exceed maximum "
            f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
        )
    if width * height > MAX_IMAGE_PIXELS:
        raise ValueError(
            f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
        )

    return img.convert('RGBA')


def fit_to_resolution(width: int, height: int, max_size: tuple = MAX_RESOLUTION) -> tuple:
    """Largest size within max_size keeping the aspect ratio. Never upscales."""
    max_width, max_height = max_size
    if width <= max_width and height <= max_height:
        return width, height

    if width * max_height >= height * max_width:
        return max_width, max(1, height * max_width // width)
    return max(1, width * max_height // height), max_height


def downscale_image(img: Image.Image, max_size: tuple = MAX_RESOLUTION) -> Image.Image:
    size = fit_to_resolution(*img.size, max_size=max_size)
    if size == img.size:
        return img
    return img.resize(size, Image.Resampling.LANCZOS)


def quantize_swatches(img: Image.Image, color_count: int, advanced: bool = False) -> tuple:
    """
    Median-cut quantization via Pillow over the opaque pixels only.

    Args:
        img: Source image
        color_count: Number of swatches wanted
        advanced: Ask for twice as many swatches for finer candidates

    Returns:
        Tuple of (dominant_rgb, palette_rgbs), palette ordered by population
        and dominant being its most populous color.

    Raises:
        ValueError: If the image has no opaque pixels
    """
    n_colors = color_count * 2 if advanced else color_count

    rgba = as_pixel_array(img)
    opaque = rgba[rgba[:, 3] >= ALPHA_CUTOFF, :3]
    if not len(opaque):
        raise ValueError("Image has no opaque pixels")

    # One-row strip; median cut only looks at the color histogram
    strip = Image.fromarray(np.ascontiguousarray(opaque.reshape(1, -1, 3)))
    quantized = strip.quantize(colors=n_colors, method=Image.Quantize.MEDIANCUT)

    flat_palette = quantized.getpalette()
    counts = sorted(quantized.getcolors(), key=lambda item: -item[0])
    palette = [tuple(flat_palette[index * 3:index * 3 + 3]) for _, index in counts]

    return palette[0], palette


def pixels_from_image(img: Image.Image) -> np.ndarray:
    """Flat (N, 4) RGBA pixel buffer."""
    return as_pixel_array(img)


# =============================================================================
# Main Pipeline
# =============================================================================

def run_pipeline(image_path: str, options: ExtractionOptions,
                 downscale: bool = True) -> tuple[list[PaletteEntry], list[HarmonySet]]:
    """Load, quantize and extract.

    Returns:
        Tuple of (palette, harmonies) for rendering.
    """
    options.validate()
    img = load_image(image_path)
    if downscale:
        img = downscale_image(img)

    dominant, swatches = quantize_swatches(img, options.color_count, options.advanced_mode)
    candidates = swatches_from_quantizer(dominant, swatches)

    pixels = pixels_from_image(img) if options.classify_pixels else None
    palette = extract_palette(candidates, options, pixels)
    harmonies = generate_harmonies(palette)

    return palette, harmonies


# =============================================================================
# Render
# =============================================================================

def _accessibility_notes(entry: PaletteEntry) -> list[str]:
    flags = entry.accessibility
    return [name for name in ('protanopia', 'deuteranopia', 'tritanopia') if getattr(flags, name)]


def render(palette: list[PaletteEntry], harmonies: list[HarmonySet],
           options: Optional[ExtractionOptions] = None) -> str:
    """Render the palette and harmonies as prose."""
    if not palette:
        return "No colors survived filtering. Try disabling the smart filter or using balanced mode."

    lines = [f"PALETTE: {len(palette)} colors", ""]

    for i, entry in enumerate(palette, 1):
        lines.append(f"{i}. {entry.hex} | {format_color(entry.color, 'rgb')} | {format_color(entry.color, 'hsl')}")
        lines.append(f"   Share: {entry.percentage}%")
        notes = _accessibility_notes(entry)
        if notes:
            lines.append(f"   Stays close under: {', '.join(notes)}")

    if options is not None and options.use_portrait_mode:
        family = describe_hue_family(palette[0].rgb)
        lines.append("")
        lines.append(f"HUE FAMILY: {family.name}")
        lines.append(f"  Traits: {', '.join(family.traits)}")
        lines.append(f"  Pairs well with {family.pairs_with}")

    if harmonies:
        lines.append("")
        lines.append("HARMONIES:")
        for harmony in harmonies:
            hexes = ' '.join(c.hex for c in harmony.colors)
            lines.append(f"  {harmony.kind:<14} {harmony.base.hex} → {hexes}")

    return "\n".join(lines)


def render_html(palette: list[PaletteEntry], harmonies: list[HarmonySet], image_path: str) -> str:
    """Render the palette as a standalone HTML page."""
    from html import escape

    safe_path = escape(image_path)

    css = """
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body {
            font-family: system-ui, -apple-system, sans-serif;
            background: #f5f5f5;
            color: #333;
            line-height: 1.5;
            padding: 2rem;
            max-width: 900px;
            margin: 0 auto;
        }
        h1 { font-size: 1.5rem; margin-bottom: 0.5rem; }
        h2 { font-size: 1.2rem; margin: 2rem 0 1rem; border-bottom: 1px solid #ddd; padding-bottom: 0.5rem; }
        .meta { color: #666; font-size: 0.9rem; margin-bottom: 1rem; }
        .palette-strip {
            display: flex;
            height: 80px;
            border-radius: 8px;
            overflow: hidden;
            box-shadow: 0 2px 8px rgba(0,0,0,0.1);
            margin: 1.5rem 0;
        }
        .palette-strip .swatch {
            display: flex;
            align-items: flex-end;
            justify-content: center;
            padding: 0.5rem;
            font-size: 0.7rem;
            font-weight: 500;
        }
        .harmony { display: flex; align-items: center; gap: 0.5rem; margin-bottom: 0.5rem; }
        .harmony .chip { width: 32px; height: 32px; border-radius: 4px; }
        .harmony .label { font-size: 0.85rem; color: #555; min-width: 220px; }
    """

    lines = [
        '<!DOCTYPE html>',
        '<html lang="en">',
        '<head>',
        '<meta charset="utf-8">',
        f'<title>Palette - {safe_path}</title>',
        f'<style>{css}</style>',
        '</head>',
        '<body>',
        '<h1>Color Palette</h1>',
        f'<p class="meta">{safe_path}</p>',
    ]

    if not palette:
        lines.append('<p>No colors survived filtering.</p>')
        lines.append('</body>')
        lines.append('</html>')
        return '\n'.join(lines)

    lines.append('<div class="palette-strip">')
    for entry in palette:
        width_pct = max(5, entry.percentage)  # min 5% for visibility
        lines.append(f'  <div class="swatch" style="background:{entry.hex}; color:{contrast_color(entry.hex)}; '
                     f'flex:{width_pct:.1f}">{entry.hex} · {entry.percentage}%</div>')
    lines.append('</div>')

    if harmonies:
        lines.append('<h2>Harmonies</h2>')
        for harmony in harmonies:
            lines.append('<div class="harmony">')
            lines.append(f'  <span class="label">{harmony.kind} of {harmony.base.hex}</span>')
            for color in harmony.colors:
                lines.append(f'  <div class="chip" style="background:{color.hex}" title="{color.hex}"></div>')
            lines.append('</div>')

    lines.append('</body>')
    lines.append('</html>')

    return '\n'.join(lines)


# =============================================================================
# CLI
# =============================================================================

def build_parser():
    import argparse

    from export_formats import EXPORTERS
    from palette_types import DEFAULT_COLOR_COUNT, EXTRACTION_MODES

    parser = argparse.ArgumentParser(
        description='Extract a color palette and its harmonies from an image.'
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--input', '-i', help='Path to the image file')
    source.add_argument(
        '--hexes',
        help='Comma-separated hex colors of a shared palette, e.g. "#FF0000,#00FF00"'
    )
    parser.add_argument(
        '--output', '-o',
        nargs='?',
        const=True,
        default=None,
        help='Write HTML report. Optionally specify path, otherwise auto-names from input.'
    )
    parser.add_argument('--mode', choices=EXTRACTION_MODES, default='balanced')
    parser.add_argument('--colors', type=int, default=DEFAULT_COLOR_COUNT, help='Number of colors (3-15)')
    parser.add_argument('--smart-filter', action='store_true', help='Weight by pixels and drop the background')
    parser.add_argument('--portrait', action='store_true', help='Ignore skin tones')
    parser.add_argument('--accessibility', action='store_true', help='Flag colors for color-blind viewers')
    parser.add_argument('--advanced', action='store_true', help='Quantize with twice as many swatches')
    parser.add_argument('--seed', type=int, default=None, help='Seed for synthetic percentages')
    parser.add_argument('--export', choices=sorted(EXPORTERS), help='Print the palette as code')
    parser.add_argument('--history', help='Append a JSON history record (one per line) to this file')
    parser.add_argument('--no-downscale', action='store_true',
                        help='Process at full resolution instead of fitting to 1920x1080')
    parser.add_argument('--verbose', '-v', action='store_true')
    return parser


def main(argv=None) -> int:
    import json
    import sys
    from pathlib import Path

    from export_formats import export_palette, palette_from_hexes, palette_record

    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    options = ExtractionOptions(
        mode=args.mode,
        color_count=args.colors,
        use_smart_filter=args.smart_filter,
        use_portrait_mode=args.portrait,
        accessibility_enabled=args.accessibility,
        advanced_mode=args.advanced,
        seed=args.seed,
    )

    if args.hexes:
        source_name = 'shared palette'
        default_output = Path('shared-palette.html')
        try:
            hexes = [h.strip() for h in args.hexes.split(',') if h.strip()]
            palette = palette_from_hexes(hexes, accessibility_enabled=args.accessibility)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        harmonies = generate_harmonies(palette)
    else:
        image_path = Path(args.input)
        source_name = image_path.name
        default_output = image_path.with_name(f"{image_path.stem}-palette.html")
        try:
            palette, harmonies = run_pipeline(str(image_path), options, downscale=not args.no_downscale)
        except InvalidInputError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except Exception as e:
            print(f"Error analyzing image: {e}", file=sys.stderr)
            return 1

    print(render(palette, harmonies, options))

    if args.export:
        print()
        print(export_palette(palette, args.export))

    if args.output:
        output_path = default_output if args.output is True else Path(args.output)
        try:
            output_path.write_text(render_html(palette, harmonies, args.input or source_name))
            print(f"\nWrote: {output_path}")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1

    if args.history:
        record = palette_record(palette, options, image_name=source_name)
        try:
            with open(args.history, 'a') as f:
                f.write(json.dumps(record) + '\n')
        except OSError as e:
            print(f"Error writing history: {e}", file=sys.stderr)
            return 1

    return 0


if __name__ == '__main__':
    raise SystemExit(main())
