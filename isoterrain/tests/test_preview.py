"""Tests for the 2D noise preview image."""
from __future__ import annotations

import numpy as np
import pytest

from isoterrain.config import NoiseConfig, NoiseType
from isoterrain.noise_field import NoiseField
from isoterrain.preview import render_preview

NOISE = NoiseConfig(noise_type=NoiseType.PERLIN, seed=2, frequency=0.2)


def test_preview_shape_and_type():
    image = render_preview(NOISE, width=16, height=8)
    assert image.shape == (8, 16)
    assert image.dtype == np.uint8


def test_preview_is_deterministic():
    assert np.array_equal(render_preview(NOISE, 12, 12), render_preview(NOISE, 12, 12))


def test_preview_maps_noise_to_grayscale():
    image = render_preview(NOISE, width=4, height=4)
    field = NoiseField(NOISE)
    # Pixel (row, column) samples x = column / 4 * 32, z = row / 4 * 32 at zoom 1.
    expected = int(np.floor((field.sample2(8.0, 16.0) + 1.0) * 0.5 * 255.0))
    assert image[2, 1] == expected


def test_zoom_scales_around_window_center():
    zoomed = render_preview(NOISE, width=4, height=4, zoom=2.0)
    field = NoiseField(NOISE)
    expected = int(np.floor((field.sample2(12.0, 12.0) + 1.0) * 0.5 * 255.0))
    assert zoomed[1, 1] == expected


def test_invalid_dimensions():
    assert render_preview(NOISE, width=0, height=5).shape == (5, 0)
    with pytest.raises(ValueError):
        render_preview(NOISE, zoom=0.0)
