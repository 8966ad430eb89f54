"""Shared fixtures for palette extraction tests."""

import numpy as np
import pytest
from PIL import Image

from candidates import swatches_from_quantizer
from color_math import Color
from palette_types import CandidateSwatch, ClassifiedColor, PaletteEntry


RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)
SKIN = (224, 172, 105)


def pixel_block(rgb, count: int, alpha: int = 255) -> np.ndarray:
    """count identical RGBA pixels."""
    return np.tile(np.array([*rgb, alpha], dtype=np.uint8), (count, 1))


def classified(rgb, count: int) -> ClassifiedColor:
    return ClassifiedColor(swatch=CandidateSwatch(Color(*rgb)), count=count)


def entry(rgb, percentage: float) -> PaletteEntry:
    return PaletteEntry(color=Color(*rgb), percentage=percentage)


@pytest.fixture
def primary_candidates() -> list[CandidateSwatch]:
    """Red as dominant, then green and blue swatches."""
    return swatches_from_quantizer(RED, [GREEN, BLUE])


@pytest.fixture
def rgb_palette() -> list[PaletteEntry]:
    return [entry(RED, 50.0), entry(GREEN, 30.0), entry(BLUE, 20.0)]


@pytest.fixture
def make_image(tmp_path):
    """Write a PNG made of horizontal color bands: [(rgb, rows), ...]."""
    def _make(bands, width: int = 40, name: str = 'bands.png'):
        rows = [np.tile(np.array(rgb, dtype=np.uint8), (n_rows, width, 1)) for rgb, n_rows in bands]
        path = tmp_path / name
        Image.fromarray(np.concatenate(rows, axis=0), 'RGB').save(path)
        return path
    return _make
