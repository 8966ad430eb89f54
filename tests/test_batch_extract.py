"""Tests for the batch extraction CLI."""

import json

import batch_extract
from batch_extract import find_images, main
from conftest import BLUE, RED


def test_find_images_filters_by_extension(tmp_path):
    for name in ('b.PNG', 'a.jpg', 'notes.txt', 'c.webp'):
        (tmp_path / name).write_bytes(b'')
    (tmp_path / 'nested.png').mkdir()

    assert [p.name for p in find_images(tmp_path)] == ['a.jpg', 'b.PNG', 'c.webp']


def test_missing_input_directory(tmp_path, capsys):
    assert main(['-i', str(tmp_path / 'nope'), '-o', str(tmp_path / 'out')]) == 2
    assert 'not found' in capsys.readouterr().err


def test_no_images(tmp_path, capsys):
    assert main(['-i', str(tmp_path), '-o', str(tmp_path / 'out')]) == 2
    assert 'No images found' in capsys.readouterr().err


def test_writes_reports(make_image, tmp_path, capsys):
    path = make_image([(RED, 20), (BLUE, 10)], name='flag.png')
    output = tmp_path / 'out'

    assert main(['-i', str(path.parent), '-o', str(output), '--colors', '3', '--seed', '5']) == 0

    assert (output / 'flag-palette.html').read_text().startswith('<!DOCTYPE html>')
    document = json.loads((output / 'flag-palette.json').read_text())
    assert document['source'] == 'flag.png'
    assert '#FF0000' in [color['hex'] for color in document['colors']]
    assert 'Completed: 1/1 succeeded' in capsys.readouterr().out


def test_failures_are_reported(tmp_path, capsys):
    images = tmp_path / 'images'
    images.mkdir()
    (images / 'broken.png').write_text('not an image')

    assert main(['-i', str(images), '-o', str(tmp_path / 'out')]) == 1
    captured = capsys.readouterr()
    assert 'broken.png → ERROR: ValueError' in captured.err
    assert 'Failed (1):' in captured.out


def test_advanced_flag_reaches_options(make_image, tmp_path, monkeypatch):
    seen = []

    def fake_pipeline(image_path, options, downscale=True):
        seen.append(options)
        return [], []

    monkeypatch.setattr(batch_extract, 'run_pipeline', fake_pipeline)
    path = make_image([(RED, 4)])

    assert main(['-i', str(path.parent), '-o', str(tmp_path / 'out'), '--advanced']) == 0
    assert [options.advanced_mode for options in seen] == [True]
