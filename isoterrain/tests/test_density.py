"""Tests for the height-mode and volumetric density field."""
from __future__ import annotations

import logging

import pytest

from isoterrain.config import GridSpec, NoiseConfig, NoiseType
from isoterrain.density import CARVE_SEED_OFFSET, DensityFunction
from isoterrain.errors import ParseError
from isoterrain.noise_field import NoiseField

NOISE = NoiseConfig(noise_type=NoiseType.VALUE, seed=5, frequency=0.13)


def test_height_mode_density_is_signed_distance_to_column_top():
    grid = GridSpec(size_x=8, size_y=8, size_z=8, amplitude=4.0, vertical_offset=3.0)
    density = DensityFunction(NOISE, grid)
    field = NoiseField(NOISE)
    for x, z in ((0, 0), (3, 5), (7, 2)):
        height = 3.0 + field.sample2(x, z) * 4.0
        assert density.column_height(x, z) == pytest.approx(height)
        assert density(x, 1.5, z) == pytest.approx(1.5 - height)


def test_height_mode_applies_expression_and_offsets():
    grid = GridSpec(size_x=8, size_y=8, size_z=8, amplitude=2.0, vertical_offset=0.0, offset_x=10.0, offset_z=-4.0)
    density = DensityFunction(NOISE, grid, expression="N * 3")
    raw = NoiseField(NOISE).sample2(12.0, -1.0)
    assert density.column_height(2, 3) == pytest.approx(raw * 3 * 2.0)


def test_volumetric_mode_negates_noise_before_the_expression():
    grid = GridSpec(size_x=4, size_y=4, size_z=4, use_3d=True)
    density = DensityFunction(NOISE, grid, expression="N^2 + N")
    raw = NoiseField(NOISE).sample3(1.0, 2.0, 3.0)
    assert density(1, 2, 3) == pytest.approx(raw * raw - raw)


def test_carve_field_uses_offset_seed():
    grid = GridSpec(size_x=4, size_y=4, size_z=4)
    density = DensityFunction(NOISE, grid)
    carve = NoiseField(NOISE.with_seed(NOISE.seed + CARVE_SEED_OFFSET))
    assert density.carve(1.0, 2.0, 3.0) == carve.sample3(1.0, 2.0, 3.0)


def test_invalid_expression_uses_raw_noise(caplog):
    grid = GridSpec(size_x=4, size_y=4, size_z=4, use_3d=True)
    with caplog.at_level(logging.WARNING, logger="isoterrain.density"):
        density = DensityFunction(NOISE, grid, expression="N +")
    raw = NoiseField(NOISE).sample3(2.0, 1.0, 0.0)
    assert density(2, 1, 0) == pytest.approx(-raw)
    assert isinstance(density.last_error, ParseError)
    assert "Invalid terrain expression" in caplog.text


def test_runtime_failures_are_counted_and_logged_once(caplog):
    grid = GridSpec(size_x=4, size_y=4, size_z=4, use_3d=True)
    density = DensityFunction(NOISE, grid, expression="sqrt(N - 5)")
    with caplog.at_level(logging.WARNING, logger="isoterrain.density"):
        values = [density(x, 0, 0) for x in range(4)]
    raw = [-NoiseField(NOISE).sample3(x, 0.0, 0.0) for x in range(4)]
    assert values == pytest.approx(raw)
    assert density.error_count == 4
    assert density.last_error is not None
    assert caplog.text.count("failed for N") == 1
