"""Data structures describing generated terrain geometry."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


def _centered(indices: np.ndarray, shape: Tuple[int, int, int]) -> np.ndarray:
    half = np.asarray(shape, dtype=np.float32) / 2.0
    return indices.astype(np.float32) - half + 0.5


def _frozen(values: np.ndarray, dtype: type) -> np.ndarray:
    """Read-only ``(N, 3)`` copy of ``values``."""

    array = np.array(values, dtype=dtype).reshape(-1, 3)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class VoxelSet:
    """Solid grid cells in enumeration order.

    ``indices`` holds integer grid coordinates, one row per solid cell;
    ``positions`` re-centers them around the origin for instanced rendering.
    """

    indices: np.ndarray
    shape: Tuple[int, int, int]

    def __post_init__(self) -> None:
        object.__setattr__(self, "indices", _frozen(self.indices, np.int32))
        object.__setattr__(self, "shape", tuple(int(s) for s in self.shape))

    @classmethod
    def empty(cls, shape: Tuple[int, int, int] = (0, 0, 0)) -> "VoxelSet":
        return cls(indices=np.zeros((0, 3), dtype=np.int32), shape=tuple(shape))

    @property
    def count(self) -> int:
        return int(self.indices.shape[0])

    @property
    def positions(self) -> np.ndarray:
        return _centered(self.indices, self.shape)

    def __len__(self) -> int:
        return self.count

    def as_set(self) -> set:
        return {tuple(int(v) for v in row) for row in self.indices}

    def column_heights(self) -> np.ndarray:
        """Number of solid cells in each ``(x, z)`` column."""

        size_x, _, size_z = (max(0, s) for s in self.shape)
        heights = np.zeros((size_x, size_z), dtype=np.int32)
        if self.count:
            np.add.at(heights, (self.indices[:, 0], self.indices[:, 2]), 1)
        return heights

    def summary(self) -> str:
        return f"VoxelSet: cubes={self.count}, grid={self.shape[0]}x{self.shape[1]}x{self.shape[2]}"


@dataclass(frozen=True, eq=False)
class Mesh:
    """Indexed triangle mesh ready for GPU buffer upload."""

    vertices: np.ndarray
    normals: np.ndarray
    indices: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", _frozen(self.vertices, np.float32))
        object.__setattr__(self, "normals", _frozen(self.normals, np.float32))
        object.__setattr__(self, "indices", _frozen(self.indices, np.int32))

    @classmethod
    def empty(cls) -> "Mesh":
        return cls(
            vertices=np.zeros((0, 3), dtype=np.float32),
            normals=np.zeros((0, 3), dtype=np.float32),
            indices=np.zeros((0, 3), dtype=np.int32),
        )

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_triangles(self) -> int:
        return int(self.indices.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.n_triangles == 0

    @property
    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        if self.n_vertices == 0:
            zero = np.zeros(3, dtype=np.float32)
            return zero, zero
        return self.vertices.min(axis=0), self.vertices.max(axis=0)

    def summary(self) -> str:
        return f"Mesh: vertices={self.n_vertices}, triangles={self.n_triangles}"
