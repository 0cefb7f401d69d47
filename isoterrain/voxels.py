"""Blocky terrain: classify integer grid cells as solid or air."""
from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

import numpy as np

from .config import GridSpec
from .density import DensityFunction
from .errors import raise_if_cancelled
from .geometry import VoxelSet

LOGGER = logging.getLogger(__name__)


def _column_top(height: float, size_y: int) -> int:
    """Number of cells below ``height``, clamped to the grid."""

    if math.isnan(height):
        return 0
    if math.isinf(height):
        return size_y if height > 0 else 0
    return min(max(math.ceil(height), 0), size_y)


def enumerate_voxels(
    grid: GridSpec,
    density: DensityFunction,
    *,
    max_cubes: Optional[int] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> VoxelSet:
    """Enumerate solid cells of ``grid``.

    Height mode fills each ``(x, z)`` column from ``y = 0`` up to the terrain
    height, stopping at the first cell whose carve value is ``<= isolevel``.
    Volumetric mode keeps every cell whose density exceeds the isolevel.
    Output storage is preallocated to ``max_cubes`` (the full grid volume by
    default) and enumeration ends once that budget is used up.
    """

    if grid.is_empty:
        return VoxelSet.empty((max(0, grid.size_x), max(0, grid.size_y), max(0, grid.size_z)))

    budget = grid.cube_budget
    if max_cubes is not None:
        budget = max(0, min(int(max_cubes), budget))
    buffer = np.empty((budget, 3), dtype=np.int32)
    count = 0
    isolevel = grid.isolevel
    started = time.perf_counter()

    for x in range(grid.size_x):
        # //1.- Cancellation is checked once per x slab.
        raise_if_cancelled(should_cancel)
        if count >= budget:
            break
        if grid.use_3d:
            for y in range(grid.size_y):
                for z in range(grid.size_z):
                    if density.density(x, y, z) > isolevel:
                        if count >= budget:
                            break
                        buffer[count] = (x, y, z)
                        count += 1
        else:
            for z in range(grid.size_z):
                top = _column_top(density.column_height(x, z), grid.size_y)
                for y in range(top):
                    # //2.- Carving ends the column; nothing above the first carved cell stays solid.
                    if density.carve(x, y, z) <= isolevel or count >= budget:
                        break
                    buffer[count] = (x, y, z)
                    count += 1

    if count >= budget and budget < grid.cube_budget:
        LOGGER.warning("Voxel budget of %d cubes exhausted, output truncated", budget)
    LOGGER.debug(
        "Enumerated %d solid cells on %dx%dx%d grid in %.3fs",
        count,
        grid.size_x,
        grid.size_y,
        grid.size_z,
        time.perf_counter() - started,
    )
    return VoxelSet(indices=buffer[:count], shape=grid.shape)
