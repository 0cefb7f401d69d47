"""Tests for base noise, fractal compositing and domain warping."""
from __future__ import annotations

import math

import pytest

from isoterrain.config import (
    CellularConfig,
    CellularReturnType,
    DomainWarpType,
    FractalConfig,
    FractalType,
    NoiseConfig,
    NoiseType,
    RotationType3D,
    WarpConfig,
    WarpFractalType,
)
from isoterrain.noise import cellular2, perlin2, simplex3, value2, value3
from isoterrain.noise_field import NoiseField, amplitude_bounding, rotate3

POINTS_2D = [(0.0, 0.0), (1.25, -3.5), (17.3, 4.1), (-250.75, 99.125), (0.001, 0.999)]
POINTS_3D = [(0.0, 0.0, 0.0), (1.5, -2.25, 3.75), (-12.1, 7.7, 0.3), (40.0, 40.5, -40.25)]


@pytest.mark.parametrize("noise_type", list(NoiseType))
def test_equal_configs_sample_identically(noise_type):
    config = NoiseConfig(noise_type=noise_type, seed=42, frequency=0.17)
    field_a = NoiseField(config)
    field_b = NoiseField(NoiseConfig(noise_type=noise_type, seed=42, frequency=0.17))
    for x, y in POINTS_2D:
        assert field_a.sample(x, y) == field_b.sample(x, y)
    for x, y, z in POINTS_3D:
        assert field_a.sample(x, y, z) == field_b.sample(x, y, z)


@pytest.mark.parametrize("noise_type", list(NoiseType))
def test_samples_are_finite(noise_type):
    field = NoiseField(NoiseConfig(noise_type=noise_type, seed=7, frequency=0.3))
    for x, y, z in POINTS_3D:
        assert math.isfinite(field.sample2(x, z))
        assert math.isfinite(field.sample3(x, y, z))


def test_value_noise_stays_in_unit_range():
    for ix in range(-20, 20):
        for iy in range(-20, 20):
            x = ix * 0.37
            y = iy * 0.53
            assert -1.0 <= value2(3, x, y) <= 1.0
            assert -1.0 <= value3(3, x, y, x - y) <= 1.0


def test_seed_changes_output():
    samples_a = [simplex3(1, x, y, z) for x, y, z in POINTS_3D[1:]]
    samples_b = [simplex3(2, x, y, z) for x, y, z in POINTS_3D[1:]]
    assert samples_a != samples_b


def test_perlin_vanishes_on_lattice_points():
    for x in range(-3, 4):
        for y in range(-3, 4):
            assert perlin2(99, float(x), float(y)) == pytest.approx(0.0, abs=1e-12)


def test_cellular_cell_value_is_constant_near_feature_point():
    config = CellularConfig(return_type=CellularReturnType.CELL_VALUE, jitter=0.0)
    # With no jitter every feature point sits at a cell center.
    assert cellular2(5, 3.5, 3.5, config) == cellular2(5, 3.45, 3.55, config)


def test_amplitude_bounding_normalises_octave_sum():
    assert amplitude_bounding(0.5, 1) == pytest.approx(1.0)
    assert amplitude_bounding(0.5, 3) == pytest.approx(1.0 / 1.75)


def test_single_octave_fbm_matches_plain_noise():
    plain = NoiseField(NoiseConfig(noise_type=NoiseType.PERLIN, seed=9, frequency=0.2))
    fbm = NoiseField(
        NoiseConfig(
            noise_type=NoiseType.PERLIN,
            seed=9,
            frequency=0.2,
            fractal=FractalConfig(kind=FractalType.FBM, octaves=1),
        )
    )
    for x, y in POINTS_2D:
        assert fbm.sample2(x, y) == pytest.approx(plain.sample2(x, y))


def test_fractal_octaves_change_output():
    base = NoiseConfig(noise_type=NoiseType.VALUE, seed=11, frequency=0.2)
    plain = NoiseField(base)
    layered = NoiseField(
        NoiseConfig(
            noise_type=NoiseType.VALUE,
            seed=11,
            frequency=0.2,
            fractal=FractalConfig(kind=FractalType.RIDGED, octaves=4),
        )
    )
    assert [plain.sample2(x, y) for x, y in POINTS_2D] != [layered.sample2(x, y) for x, y in POINTS_2D]


def test_zero_amplitude_warp_is_ignored():
    config = NoiseConfig(seed=3, frequency=0.1, warp=WarpConfig(amplitude=0.0))
    field = NoiseField(config)
    assert field.warp is None
    plain = NoiseField(NoiseConfig(seed=3, frequency=0.1))
    for x, y in POINTS_2D:
        assert field.sample2(x, y) == plain.sample2(x, y)


@pytest.mark.parametrize("warp_type", list(DomainWarpType))
def test_warp_displaces_coordinates(warp_type):
    field = NoiseField(
        NoiseConfig(seed=3, frequency=0.1, warp=WarpConfig(type=warp_type, amplitude=30.0, frequency=0.05))
    )
    moved = [field.warp.warp2(x, y) != (x, y) for x, y in POINTS_2D]
    assert any(moved)


def test_progressive_and_independent_warps_differ():
    def warped(fractal):
        warp = NoiseField(
            NoiseConfig(
                seed=3,
                warp=WarpConfig(amplitude=25.0, frequency=0.05, fractal=fractal, octaves=3),
            )
        ).warp
        return [warp.warp3(x, y, z) for x, y, z in POINTS_3D]

    assert warped(WarpFractalType.PROGRESSIVE) != warped(WarpFractalType.INDEPENDENT)


def test_rotation_preserves_length():
    for rotation in (RotationType3D.IMPROVE_XY_PLANES, RotationType3D.IMPROVE_XZ_PLANES):
        x, y, z = rotate3(rotation, 1.0, 2.0, 3.0)
        assert math.sqrt(x * x + y * y + z * z) == pytest.approx(math.sqrt(14.0))
    assert rotate3(RotationType3D.NONE, 1.0, 2.0, 3.0) == (1.0, 2.0, 3.0)
