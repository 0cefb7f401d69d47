from pathlib import Path
import sys

import numpy as np

# Ensure the isoterrain package is importable when running tests from repo root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from isoterrain import (  # noqa: E402
    GridSpec,
    NoiseConfig,
    NoiseType,
    TerrainGenerator,
    TerrainSnapshot,
    load_generation_config,
)


def _volumetric_snapshot() -> TerrainSnapshot:
    grid = GridSpec(size_x=8, size_y=8, size_z=8, isolevel=0.0, use_3d=True)
    noise = NoiseConfig(noise_type=NoiseType.VALUE, seed=1, frequency=0.1)
    return TerrainSnapshot.capture(noise, grid, "N")


def test_independent_runs_produce_identical_voxels() -> None:
    first = TerrainGenerator().regenerate(_volumetric_snapshot())
    second = TerrainGenerator().regenerate(_volumetric_snapshot())
    assert first is not second
    assert first.count > 0
    assert np.array_equal(first.indices, second.indices)


def test_smooth_terrain_from_control_record() -> None:
    record = {
        "noiseType": "OpenSimplex2",
        "seed": 1337,
        "frequency": 0.05,
        "fractalType": "FBm",
        "fractalOctaves": 3,
        "domainWarpAmp": 4.0,
        "size": 12,
        "isSmooth": True,
        "expression": "N * 0.5 + 0.25",
    }
    snapshot = load_generation_config(record, env={})
    generator = TerrainGenerator()
    mesh = generator.regenerate(snapshot)
    again = TerrainGenerator().regenerate(load_generation_config(record, env={}))
    assert not mesh.is_empty
    assert np.array_equal(mesh.indices, again.indices)
    assert np.array_equal(mesh.vertices, again.vertices)
    low, high = mesh.bounds
    # Centered positions stay within the half extent of the grid.
    assert (low >= -6.0).all() and (high <= 6.0).all()


def test_blocky_height_terrain_is_bounded_by_grid() -> None:
    snapshot = load_generation_config({"size": 10, "noiseType": "Perlin", "seed": 4}, env={})
    voxels = TerrainGenerator().regenerate(snapshot)
    heights = voxels.column_heights()
    assert heights.shape == (10, 10)
    assert heights.max() <= 10
