#!/usr/bin/env python3
"""Batch extract palettes and write HTML reports plus a JSON export per image."""

import argparse
import sys
import time
from pathlib import Path

from export_formats import generate_json
from extract_palette import render_html, run_pipeline
from palette_types import DEFAULT_COLOR_COUNT, EXTRACTION_MODES, ExtractionOptions


def find_images(directory: Path) -> list[Path]:
    """Find all image files in directory."""
    extensions = {'.jpg', '.jpeg', '.png', '.webp', '.gif', '.bmp'}
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in extensions)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Batch extract palettes and generate HTML reports.'
    )
    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Directory containing images to analyze'
    )
    parser.add_argument(
        '--output', '-o',
        required=True,
        help='Directory for HTML and JSON output files'
    )
    parser.add_argument('--mode', choices=EXTRACTION_MODES, default='balanced')
    parser.add_argument('--colors', type=int, default=DEFAULT_COLOR_COUNT)
    parser.add_argument('--smart-filter', action='store_true')
    parser.add_argument('--portrait', action='store_true')
    parser.add_argument('--accessibility', action='store_true')
    parser.add_argument('--advanced', action='store_true', help='Quantize with twice as many swatches')
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument(
        '--no-downscale',
        action='store_true',
        help='Process at full resolution instead of fitting to 1920x1080'
    )

    args = parser.parse_args(argv)

    input_dir = Path(args.input)
    output_dir = Path(args.output)

    if not input_dir.is_dir():
        print(f"Error: Input directory not found: {input_dir}", file=sys.stderr)
        return 2

    output_dir.mkdir(parents=True, exist_ok=True)

    images = find_images(input_dir)
    if not images:
        print(f"No images found in {input_dir}", file=sys.stderr)
        return 2

    options = ExtractionOptions(
        mode=args.mode,
        color_count=args.colors,
        use_smart_filter=args.smart_filter,
        use_portrait_mode=args.portrait,
        accessibility_enabled=args.accessibility,
        advanced_mode=args.advanced,
        seed=args.seed,
    )

    total = len(images)
    succeeded = 0
    failed = []
    downscale = not args.no_downscale

    batch_start = time.perf_counter()

    for i, image_path in enumerate(images, 1):
        try:
            img_start = time.perf_counter()
            palette, harmonies = run_pipeline(str(image_path), options, downscale=downscale)
            img_elapsed = time.perf_counter() - img_start

            html_file = output_dir / f"{image_path.stem}-palette.html"
            if html_file.exists():
                print(f"  Warning: Overwriting {html_file.name}", file=sys.stderr)
            html_file.write_text(render_html(palette, harmonies, str(image_path)))
            (output_dir / f"{image_path.stem}-palette.json").write_text(
                generate_json(palette, source=image_path.name)
            )

            summary = ' '.join(entry.hex for entry in palette) or 'no colors'
            print(f"[{i}/{total}] {image_path.name} → {summary} ({img_elapsed:.2f}s)")
            succeeded += 1

        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            print(f"[{i}/{total}] {image_path.name} → ERROR: {error_msg}", file=sys.stderr)
            failed.append((image_path.name, error_msg))

    batch_elapsed = time.perf_counter() - batch_start

    # Summary
    print()
    print(f"Completed: {succeeded}/{total} succeeded in {batch_elapsed:.2f}s")
    if succeeded > 0:
        print(f"Average: {batch_elapsed / succeeded:.2f}s per image")
    if failed:
        print(f"Failed ({len(failed)}):")
        for name, error in failed:
            print(f"  - {name}: {error}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
