"""Smooth terrain: marching-cubes isosurface extraction.

Corner and edge numbering::

          7 ---6----- 6
         /|          /|
        7 11        5 10          y
       /  |        /  |           |
      4 ---4----- 5   |           +-- x
      |   3 ---2--|-- 2          /
      8  /        9  /          z
      | 3         | 1
      |/          |/
      0 ---0----- 1

The 256-entry edge and triangle tables are derived once at import from this
cube topology. On a face whose corners alternate between below and above the
isolevel, the below corners are always kept apart; the choice only depends on
the face itself, so the two cells sharing a face always agree and the welded
mesh has no cracks.
"""
from __future__ import annotations

import logging
import math
import time
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import GridSpec
from .density import DensityFunction
from .errors import raise_if_cancelled
from .geometry import Mesh

LOGGER = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]
DensitySampler = Callable[[float, float, float], float]

CORNERS: Tuple[Tuple[int, int, int], ...] = (
    (0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0),
    (0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1),
)
EDGES: Tuple[Tuple[int, int], ...] = (
    (0, 1), (1, 2), (2, 3), (3, 0),
    (4, 5), (5, 6), (6, 7), (7, 4),
    (0, 4), (1, 5), (2, 6), (3, 7),
)
FACES: Tuple[Tuple[int, int, int, int], ...] = (
    (0, 1, 2, 3), (4, 5, 6, 7),
    (0, 1, 5, 4), (3, 2, 6, 7),
    (0, 3, 7, 4), (1, 2, 6, 5),
)

INTERPOLATION_EPSILON = 1e-9
NORMAL_EPSILON = 1e-2

_EDGE_BY_CORNERS = {frozenset(pair): index for index, pair in enumerate(EDGES)}


# -- Table construction ---------------------------------------------------

def _face_segments(face: Sequence[int], below: Sequence[bool]) -> List[Tuple[int, int]]:
    edges = [_EDGE_BY_CORNERS[frozenset((face[k], face[(k + 1) % 4]))] for k in range(4)]
    crossing = [k for k in range(4) if below[face[k]] != below[face[(k + 1) % 4]]]
    if not crossing:
        return []
    if len(crossing) == 2:
        return [(edges[crossing[0]], edges[crossing[1]])]
    # //1.- Ambiguous face: cut a corner off around each below corner.
    return [(edges[(k - 1) % 4], edges[k]) for k in range(4) if below[face[k]]]


def _edge_midpoint(edge: int) -> Vector3:
    a, b = EDGES[edge]
    return tuple((CORNERS[a][axis] + CORNERS[b][axis]) * 0.5 for axis in range(3))


def _orient(loop: List[int], below: Sequence[bool]) -> List[int]:
    """Order ``loop`` counter-clockwise as seen from the side above the isolevel."""

    points = [_edge_midpoint(edge) for edge in loop]
    nx = ny = nz = 0.0
    for index, (x0, y0, z0) in enumerate(points):
        x1, y1, z1 = points[(index + 1) % len(points)]
        nx += (y0 - y1) * (z0 + z1)
        ny += (z0 - z1) * (x0 + x1)
        nz += (x0 - x1) * (y0 + y1)
    rx = ry = rz = 0.0
    for edge in loop:
        a, b = EDGES[edge]
        low, high = (a, b) if below[a] else (b, a)
        rx += CORNERS[high][0] - CORNERS[low][0]
        ry += CORNERS[high][1] - CORNERS[low][1]
        rz += CORNERS[high][2] - CORNERS[low][2]
    if nx * rx + ny * ry + nz * rz < 0.0:
        return list(reversed(loop))
    return loop


def _polygons(config: int) -> List[List[int]]:
    below = [bool(config >> corner & 1) for corner in range(8)]
    neighbours: Dict[int, List[int]] = defaultdict(list)
    for face in FACES:
        for a, b in _face_segments(face, below):
            neighbours[a].append(b)
            neighbours[b].append(a)

    loops: List[List[int]] = []
    visited = set()
    for start in sorted(neighbours):
        if start in visited:
            continue
        loop = [start]
        visited.add(start)
        previous, current = None, start
        while True:
            first, second = neighbours[current]
            following = second if first == previous else first
            if following == start:
                break
            loop.append(following)
            visited.add(following)
            previous, current = current, following
        loops.append(_orient(loop, below))
    return loops


def _build_tables() -> Tuple[Tuple[int, ...], Tuple[Tuple[Tuple[int, int, int], ...], ...]]:
    edge_table = []
    tri_table = []
    for config in range(256):
        mask = 0
        for edge, (a, b) in enumerate(EDGES):
            if (config >> a & 1) != (config >> b & 1):
                mask |= 1 << edge
        edge_table.append(mask)
        triangles = []
        for loop in _polygons(config):
            for index in range(1, len(loop) - 1):
                triangles.append((loop[0], loop[index], loop[index + 1]))
        tri_table.append(tuple(triangles))
    return tuple(edge_table), tuple(tri_table)


EDGE_TABLE, TRI_TABLE = _build_tables()


# -- Extraction -----------------------------------------------------------

def _sample_grid(
    grid: GridSpec,
    density: DensitySampler,
    should_cancel: Optional[Callable[[], bool]],
) -> np.ndarray:
    values = np.empty(grid.shape, dtype=np.float64)
    if isinstance(density, DensityFunction) and not density.use_3d:
        # //2.- Height mode only needs one noise sample per column.
        rows = np.arange(grid.size_y, dtype=np.float64)
        for x in range(grid.size_x):
            raise_if_cancelled(should_cancel)
            for z in range(grid.size_z):
                values[x, :, z] = rows - density.column_height(x, z)
        return values
    for x in range(grid.size_x):
        raise_if_cancelled(should_cancel)
        for y in range(grid.size_y):
            for z in range(grid.size_z):
                values[x, y, z] = density(x, y, z)
    return values


def _cube_indices(below: np.ndarray) -> np.ndarray:
    sx, sy, sz = (size - 1 for size in below.shape)
    cubes = np.zeros((sx, sy, sz), dtype=np.int32)
    for corner, (cx, cy, cz) in enumerate(CORNERS):
        cubes |= below[cx:cx + sx, cy:cy + sy, cz:cz + sz].astype(np.int32) << corner
    return cubes


def surface_normal(density: DensitySampler, point: Vector3, epsilon: float = NORMAL_EPSILON) -> Vector3:
    """Unit density gradient at ``point`` via central differences."""

    x, y, z = point
    gx = density(x + epsilon, y, z) - density(x - epsilon, y, z)
    gy = density(x, y + epsilon, z) - density(x, y - epsilon, z)
    gz = density(x, y, z + epsilon) - density(x, y, z - epsilon)
    magnitude = math.sqrt(gx * gx + gy * gy + gz * gz)
    if magnitude == 0.0 or not math.isfinite(magnitude):
        return (0.0, 1.0, 0.0)
    return (gx / magnitude, gy / magnitude, gz / magnitude)


def extract(
    grid: GridSpec,
    density: DensitySampler,
    isolevel: Optional[float] = None,
    *,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> Mesh:
    """Triangulate the ``density == isolevel`` surface over ``grid``.

    ``density`` is sampled at every grid point ``0 .. size - 1`` per axis and
    cells span neighbouring samples, so no ghost layer outside the grid is
    read; a grid thinner than two samples on any axis yields an empty mesh.
    Vertex positions are centered on the origin, normals follow the density
    gradient and triangles are wound counter-clockwise around them.
    """

    level = grid.isolevel if isolevel is None else float(isolevel)
    if grid.size_x < 2 or grid.size_y < 2 or grid.size_z < 2:
        return Mesh.empty()

    started = time.perf_counter()
    values = _sample_grid(grid, density, should_cancel)
    cubes = _cube_indices(values < level)
    active = np.argwhere((cubes != 0) & (cubes != 255))

    vertices: List[Vector3] = []
    grid_points: List[Vector3] = []
    triangles: List[Tuple[int, int, int]] = []
    welded: Dict[Tuple[int, int, int, int], int] = {}
    half = (grid.size_x / 2 - 0.5, grid.size_y / 2 - 0.5, grid.size_z / 2 - 0.5)

    def edge_vertex(x: int, y: int, z: int, edge: int) -> int:
        a, b = EDGES[edge]
        pa = (x + CORNERS[a][0], y + CORNERS[a][1], z + CORNERS[a][2])
        pb = (x + CORNERS[b][0], y + CORNERS[b][1], z + CORNERS[b][2])
        if pb < pa:
            pa, pb = pb, pa
        axis = 0 if pa[0] != pb[0] else (1 if pa[1] != pb[1] else 2)
        key = (pa[0], pa[1], pa[2], axis)
        index = welded.get(key)
        if index is not None:
            return index
        d0 = values[pa]
        d1 = values[pb]
        delta = d1 - d0
        # //3.- The corner signs still differ on a near-flat edge, so the case table
        # expects a vertex here; dropping it would leave the cell's polygon open.
        # The midpoint is used instead of an ill-conditioned interpolation.
        if abs(delta) < INTERPOLATION_EPSILON:
            t = 0.5
        else:
            t = min(max((level - d0) / delta, 0.0), 1.0)
        point = (
            pa[0] + (pb[0] - pa[0]) * t,
            pa[1] + (pb[1] - pa[1]) * t,
            pa[2] + (pb[2] - pa[2]) * t,
        )
        index = len(vertices)
        welded[key] = index
        grid_points.append(point)
        vertices.append((point[0] - half[0], point[1] - half[1], point[2] - half[2]))
        return index

    last_x = -1
    for x, y, z in active.tolist():
        if x != last_x:
            raise_if_cancelled(should_cancel)
            last_x = x
        for e0, e1, e2 in TRI_TABLE[cubes[x, y, z]]:
            triangles.append(
                (edge_vertex(x, y, z, e0), edge_vertex(x, y, z, e1), edge_vertex(x, y, z, e2))
            )

    if not triangles:
        LOGGER.debug("No isosurface crossing at level %s", level)
        return Mesh.empty()

    normals = [surface_normal(density, point) for point in grid_points]
    mesh = Mesh(
        vertices=np.asarray(vertices, dtype=np.float32),
        normals=np.asarray(normals, dtype=np.float32),
        indices=np.asarray(triangles, dtype=np.int32),
    )
    LOGGER.debug(
        "Extracted %d vertices / %d triangles in %.3fs",
        mesh.n_vertices,
        mesh.n_triangles,
        time.perf_counter() - started,
    )
    return mesh
