"""Tests for the extraction pipeline, image helpers and CLI."""

import json

import numpy as np
import pytest
from PIL import Image

from candidates import swatches_from_quantizer
from color_math import color_distance
from conftest import BLUE, GREEN, RED, SKIN, WHITE, entry, pixel_block
from extract_palette import (
    extract_palette, fit_to_resolution, load_image, main, quantize_swatches, render,
    render_html, run_pipeline,
)
from harmony import generate_harmonies
from palette_types import ExtractionOptions, InvalidInputError


def transparent_logo(tmp_path):
    """40x40 RGBA image: 24 rows of transparent black above red and blue bands."""
    arr = np.zeros((40, 40, 4), dtype=np.uint8)
    arr[24:34] = (*RED, 255)
    arr[34:] = (*BLUE, 255)
    path = tmp_path / 'logo.png'
    Image.fromarray(arr).save(path)
    return path


class TestSyntheticMode:

    def test_three_primaries(self, primary_candidates):
        palette = extract_palette(primary_candidates, ExtractionOptions(mode='balanced', color_count=3))
        assert len(palette) == 3
        assert sum(e.percentage for e in palette) == pytest.approx(100.0)
        assert {e.hex for e in palette} == {'#FF0000', '#00FF00', '#0000FF'}

    def test_seed_makes_output_reproducible(self, primary_candidates):
        options = ExtractionOptions(color_count=3, seed=7)
        assert extract_palette(primary_candidates, options) == extract_palette(primary_candidates, options)

    def test_injected_rng_wins(self, primary_candidates):
        options = ExtractionOptions(color_count=3, seed=7)
        first = extract_palette(primary_candidates, options, rng=np.random.default_rng(1))
        second = extract_palette(primary_candidates, options, rng=np.random.default_rng(1))
        assert first == second

    def test_classification_without_pixels_falls_back(self, primary_candidates, caplog):
        options = ExtractionOptions(color_count=3, use_smart_filter=True, seed=0)
        with caplog.at_level('INFO', logger='extract_palette'):
            palette = extract_palette(primary_candidates, options)
        assert sum(e.percentage for e in palette) == pytest.approx(100.0)
        assert 'synthetic' in caplog.text

    def test_mode_filter_can_empty_the_palette(self):
        candidates = swatches_from_quantizer((120, 120, 120), [(200, 200, 200)])
        assert extract_palette(candidates, ExtractionOptions(mode='vibrant', color_count=5)) == []

    def test_accessibility_flags(self):
        candidates = swatches_from_quantizer((128, 128, 128), [RED, BLUE])
        palette = extract_palette(candidates, ExtractionOptions(color_count=3, accessibility_enabled=True, seed=1))
        gray = next(e for e in palette if e.hex == '#808080')
        assert gray.accessibility.protanopia and gray.accessibility.tritanopia


class TestInvalidInput:

    @pytest.mark.parametrize('count', [2, 16, 0])
    def test_color_count_range(self, primary_candidates, count):
        with pytest.raises(InvalidInputError):
            extract_palette(primary_candidates, ExtractionOptions(color_count=count))

    def test_unknown_mode(self, primary_candidates):
        with pytest.raises(InvalidInputError):
            extract_palette(primary_candidates, ExtractionOptions(mode='pastel'))

    def test_empty_candidates(self):
        with pytest.raises(InvalidInputError):
            extract_palette([], ExtractionOptions())

    def test_is_a_value_error(self):
        assert issubclass(InvalidInputError, ValueError)


class TestMeasuredMode:

    def test_background_removed(self):
        pixels = np.vstack([pixel_block(WHITE, 70), pixel_block(RED, 20), pixel_block(BLUE, 10)])
        candidates = swatches_from_quantizer(WHITE, [RED, BLUE])
        palette = extract_palette(candidates, ExtractionOptions(color_count=3, use_smart_filter=True), pixels)

        assert [e.hex for e in palette] == ['#FF0000', '#0000FF']
        assert [e.percentage for e in palette] == [pytest.approx(66.7), pytest.approx(33.3)]

    def test_percentages_sum_to_100(self):
        pixels = np.vstack([pixel_block(RED, 23), pixel_block(GREEN, 19), pixel_block(BLUE, 17),
                            pixel_block((255, 255, 0), 13), pixel_block((0, 255, 255), 11)])
        candidates = swatches_from_quantizer(RED, [GREEN, BLUE, (255, 255, 0), (0, 255, 255)])
        palette = extract_palette(candidates, ExtractionOptions(color_count=5, use_smart_filter=True), pixels)
        assert len(palette) == 4  # red holds over a quarter of the pixels, so it is the background
        assert 99.5 <= sum(e.percentage for e in palette) <= 100.5

    def test_portrait_mode_skips_skin(self):
        pixels = np.vstack([pixel_block(SKIN, 60), pixel_block(BLUE, 20),
                            pixel_block((0, 200, 0), 10), pixel_block((255, 255, 0), 10)])
        candidates = swatches_from_quantizer(SKIN, [BLUE, (0, 200, 0), (255, 255, 0)])
        palette = extract_palette(candidates, ExtractionOptions(color_count=5, use_portrait_mode=True), pixels)

        assert [e.hex for e in palette] == ['#0000FF', '#00C800', '#FFFF00']
        assert [e.percentage for e in palette] == [50.0, 25.0, 25.0]

    def test_all_background_is_empty(self):
        pixels = pixel_block(WHITE, 100)
        candidates = swatches_from_quantizer(WHITE, [RED])
        assert extract_palette(candidates, ExtractionOptions(color_count=3, use_smart_filter=True), pixels) == []


class TestImageHelpers:

    @pytest.mark.parametrize('size, expected', [
        ((3840, 2160), (1920, 1080)),
        ((1000, 500), (1000, 500)),
        ((4000, 1000), (1920, 480)),
        ((1080, 1920), (607, 1080)),
    ])
    def test_fit_to_resolution(self, size, expected):
        assert fit_to_resolution(*size) == expected

    def test_load_missing_image(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_image(str(tmp_path / 'missing.png'))

    def test_load_non_image(self, tmp_path):
        path = tmp_path / 'notes.png'
        path.write_text('not an image')
        with pytest.raises(ValueError):
            load_image(str(path))

    def test_load_converts_to_rgba(self, make_image):
        img = load_image(str(make_image([(RED, 4)])))
        assert img.mode == 'RGBA'

    def test_quantize_dominant_first(self, make_image):
        img = Image.open(make_image([(RED, 30), (BLUE, 10)]))
        dominant, palette = quantize_swatches(img, 3)
        assert color_distance(dominant, RED) < 5
        assert palette[0] == dominant
        assert any(color_distance(rgb, BLUE) < 5 for rgb in palette)

    def test_advanced_mode_allows_more_swatches(self, make_image):
        bands = [((i * 20, 255 - i * 20, (i * 50) % 256), 2) for i in range(12)]
        img = Image.open(make_image(bands))
        _, normal = quantize_swatches(img, 4)
        _, advanced = quantize_swatches(img, 4, advanced=True)
        assert len(normal) <= 4
        assert len(normal) < len(advanced) <= 8

    def test_quantize_ignores_transparent_pixels(self, tmp_path):
        dominant, palette = quantize_swatches(load_image(str(transparent_logo(tmp_path))), 3)
        assert color_distance(dominant, RED) < 5
        assert all(color_distance(rgb, (0, 0, 0)) > 5 for rgb in palette)

    def test_quantize_fully_transparent(self):
        with pytest.raises(ValueError):
            quantize_swatches(Image.new('RGBA', (4, 4), (0, 0, 0, 0)), 3)


class TestPipeline:

    def test_run_pipeline_with_smart_filter(self, make_image):
        path = make_image([(WHITE, 24), (RED, 10), (BLUE, 6)])
        palette, harmonies = run_pipeline(str(path), ExtractionOptions(color_count=5, use_smart_filter=True))

        hexes = [e.hex for e in palette]
        assert '#FFFFFF' not in hexes
        assert '#FF0000' in hexes
        assert 99.5 <= sum(e.percentage for e in palette) <= 100.5
        assert len(harmonies) == 5 * min(3, len(palette))

    def test_run_pipeline_synthetic(self, make_image):
        path = make_image([(RED, 20), (GREEN, 20)])
        palette, _ = run_pipeline(str(path), ExtractionOptions(color_count=3, seed=3))
        assert sum(e.percentage for e in palette) == pytest.approx(100.0)

    def test_transparent_background_never_reaches_palette(self, tmp_path):
        palette, _ = run_pipeline(str(transparent_logo(tmp_path)), ExtractionOptions(color_count=3, seed=1))
        hexes = {e.hex for e in palette}
        assert '#000000' not in hexes
        assert {'#FF0000', '#0000FF'} <= hexes


class TestRender:

    def test_prose(self, rgb_palette):
        text = render(rgb_palette, generate_harmonies(rgb_palette))
        assert text.startswith('PALETTE: 3 colors')
        assert '#FF0000 | rgb(255, 0, 0) | hsl(0, 100%, 50%)' in text
        assert 'complementary' in text and '#00FFFF' in text

    def test_prose_portrait_hue_family(self, rgb_palette):
        text = render(rgb_palette, [], ExtractionOptions(use_portrait_mode=True))
        assert 'HUE FAMILY: Passionate Red' in text

    def test_prose_empty(self):
        assert 'No colors survived filtering' in render([], [])

    def test_html_escapes_path(self):
        palette = [entry(RED, 100.0)]
        html = render_html(palette, generate_harmonies(palette), '<img>.png')
        assert '&lt;img&gt;.png' in html
        assert 'background:#FF0000' in html
        assert html.rstrip().endswith('</html>')


class TestCli:

    def test_prints_palette_and_export(self, make_image, capsys):
        path = make_image([(RED, 20), (BLUE, 20)])
        assert main(['-i', str(path), '--colors', '3', '--seed', '1', '--export', 'css']) == 0
        out = capsys.readouterr().out
        assert 'PALETTE:' in out
        assert ':root {' in out

    def test_writes_html(self, make_image, tmp_path):
        path = make_image([(RED, 20), (BLUE, 20)])
        output = tmp_path / 'report.html'
        assert main(['-i', str(path), '-o', str(output), '--seed', '1']) == 0
        assert output.read_text().startswith('<!DOCTYPE html>')

    def test_missing_file(self, tmp_path, capsys):
        assert main(['-i', str(tmp_path / 'nope.png')]) == 1
        assert 'Image not found' in capsys.readouterr().err

    def test_invalid_color_count(self, make_image, capsys):
        path = make_image([(RED, 4)])
        assert main(['-i', str(path), '--colors', '20']) == 2
        assert 'color_count' in capsys.readouterr().err

    def test_shared_palette_from_hexes(self, capsys):
        assert main(['--hexes', '#FF0000, 00ff00,#0000FF']) == 0
        out = capsys.readouterr().out
        assert 'PALETTE: 3 colors' in out
        assert 'Share: 33.3%' in out
        assert '#00FF00' in out

    def test_malformed_hexes(self, capsys):
        assert main(['--hexes', '#FF0000,nope']) == 2
        assert 'Error' in capsys.readouterr().err

    def test_input_and_hexes_are_exclusive(self):
        with pytest.raises(SystemExit):
            main(['-i', 'a.png', '--hexes', '#FF0000'])

    def test_history_records_appended(self, make_image, tmp_path):
        path = make_image([(RED, 20), (BLUE, 20)])
        history = tmp_path / 'history.jsonl'
        for _ in range(2):
            assert main(['-i', str(path), '--seed', '1', '--history', str(history)]) == 0

        records = [json.loads(line) for line in history.read_text().splitlines()]
        assert len(records) == 2
        assert records[0]['image'] == path.name
        assert records[0]['settings']['seed'] == 1
        assert '#FF0000' in [color['hex'] for color in records[0]['colors']]
