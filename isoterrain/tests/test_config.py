"""Tests for configuration records built from loose control records."""
from __future__ import annotations

import logging

import pytest

from isoterrain.config import (
    DomainWarpType,
    FractalType,
    GridSpec,
    NoiseConfig,
    NoiseType,
    WarpFractalType,
)


def test_unknown_enum_names_fall_back_to_defaults(caplog):
    with caplog.at_level(logging.WARNING, logger="isoterrain.config"):
        config = NoiseConfig.from_mapping(
            {"noiseType": "Bogus", "fractalType": "Zig", "domainWarpType": "?", "domainWarpAmp": 2.0}
        )
    assert config.noise_type is NoiseType.OPEN_SIMPLEX_2
    assert config.fractal.kind is FractalType.NONE
    assert config.warp.type is DomainWarpType.OPEN_SIMPLEX_2
    assert "Unknown NoiseType 'Bogus'" in caplog.text
    assert "Unknown FractalType 'Zig'" in caplog.text
    assert "Unknown DomainWarpType '?'" in caplog.text


def test_enum_names_ignore_case_and_separators():
    config = NoiseConfig.from_mapping(
        {"noiseType": "open_simplex_2S", "fractalType": "Ping Pong", "domainWarpFractalType": "progressive"}
    )
    assert config.noise_type is NoiseType.OPEN_SIMPLEX_2S
    assert config.fractal.kind is FractalType.PING_PONG
    assert config.warp.fractal is WarpFractalType.PROGRESSIVE


def test_warp_defaults_follow_base_settings():
    config = NoiseConfig.from_mapping({"seed": 10, "frequency": 0.2, "domainWarpAmp": 3.0})
    assert config.warp.seed == 10 + 9999
    assert config.warp.frequency == pytest.approx(0.2)
    assert NoiseConfig.from_mapping({"seed": 10}).warp is None


def test_octaves_below_one_are_clamped():
    config = NoiseConfig.from_mapping({"fractalType": "FBm", "fractalOctaves": 0})
    assert config.fractal.octaves == 1


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"sizeX": "abc"}, (32, 32, 32)),
        ({"size": float("nan")}, (32, 32, 32)),
        ({"size": "12", "sizeY": None}, (12, 12, 12)),
        ({"size": 10, "sizeZ": float("inf")}, (10, 10, 10)),
        ({"size": 8.0, "sizeY": "4"}, (8, 4, 8)),
        ({"size": 0}, (0, 0, 0)),
    ],
)
def test_malformed_grid_sizes_fall_back(payload, expected):
    assert GridSpec.from_mapping(payload).shape == expected


def test_direct_construction_coerces_sizes(caplog):
    with caplog.at_level(logging.WARNING, logger="isoterrain.config"):
        grid = GridSpec(size_x="7", size_y="tall", size_z=5.0)
    assert grid.shape == (7, 32, 5)
    assert "Invalid grid size 'tall'" in caplog.text


@pytest.mark.parametrize(
    "value, expected",
    [("false", False), ("0", False), ("No", False), ("true", True), ("1", True), (1, True), (0, False), (True, True)],
)
def test_flags_parse_string_values(value, expected):
    grid = GridSpec.from_mapping({"use3D": value, "isSmooth": value})
    assert grid.use_3d is expected
    assert grid.smooth is expected


def test_unknown_flag_string_uses_default(caplog):
    with caplog.at_level(logging.WARNING, logger="isoterrain.config"):
        grid = GridSpec.from_mapping({"isSmooth": "maybe"})
    assert grid.smooth is False
    assert "Invalid flag 'maybe'" in caplog.text
