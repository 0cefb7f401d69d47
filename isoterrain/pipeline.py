"""Regeneration pipeline: snapshot the parameters, build geometry, cache it."""
from __future__ import annotations

import logging
import os
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from .config import GridSpec, NoiseConfig
from .density import DensityFunction
from .errors import ConfigurationError, EvaluationError, GenerationCancelled
from .geometry import Mesh, VoxelSet
from .marching_cubes import extract
from .voxels import enumerate_voxels

LOGGER = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 8

Geometry = Union[VoxelSet, Mesh]


@dataclass(frozen=True)
class ExpressionDiagnostics:
    """Expression failures seen while building one result."""

    error: Optional[EvaluationError] = None
    error_count: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and self.error_count == 0


@dataclass(frozen=True)
class TerrainSnapshot:
    """Immutable parameter set one regeneration runs against."""

    noise: NoiseConfig
    grid: GridSpec
    expression: str = "N"

    @classmethod
    def capture(cls, noise: NoiseConfig, grid: GridSpec, expression: str = "N") -> "TerrainSnapshot":
        return cls(noise=noise, grid=grid, expression=str(expression))

    @classmethod
    def from_mapping(cls, payload: Optional[Mapping[str, Any]] = None) -> "TerrainSnapshot":
        payload = payload or {}
        return cls.capture(
            NoiseConfig.from_mapping(payload),
            GridSpec.from_mapping(payload),
            payload.get("expression", "N"),
        )


class TerrainGenerator:
    """Turns snapshots into voxel sets or meshes, reusing recent results."""

    def __init__(self, cache_size: int = DEFAULT_CACHE_SIZE) -> None:
        if cache_size < 0:
            raise ValueError("cache_size must be non-negative")
        self._cache_size = cache_size
        self._cache: "OrderedDict[TerrainSnapshot, Tuple[Geometry, ExpressionDiagnostics]]" = OrderedDict()
        self.cache_hits = 0
        self.cache_misses = 0
        self.last_diagnostics = ExpressionDiagnostics()

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    @property
    def last_error(self) -> Optional[EvaluationError]:
        """Expression error behind the most recent result, if any."""

        return self.last_diagnostics.error

    def density_for(self, snapshot: TerrainSnapshot) -> DensityFunction:
        return DensityFunction(snapshot.noise, snapshot.grid, snapshot.expression)

    def regenerate(
        self,
        snapshot: TerrainSnapshot,
        *,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> Geometry:
        """Return the geometry for ``snapshot``.

        Smooth grids produce a :class:`Mesh`, blocky grids a :class:`VoxelSet`.
        Expression failures fall back to raw noise and are reported through
        :attr:`last_diagnostics`, cached together with the result. A cancelled
        run raises :class:`GenerationCancelled` and leaves the cache untouched.
        """

        cached = self._cache.get(snapshot)
        if cached is not None:
            self._cache.move_to_end(snapshot)
            self.cache_hits += 1
            result, self.last_diagnostics = cached
            return result
        self.cache_misses += 1

        started = time.perf_counter()
        density = self.density_for(snapshot)
        try:
            if snapshot.grid.smooth:
                result: Geometry = extract(snapshot.grid, density, should_cancel=should_cancel)
            else:
                result = enumerate_voxels(snapshot.grid, density, should_cancel=should_cancel)
        except GenerationCancelled:
            LOGGER.info("Regeneration cancelled after %.3fs", time.perf_counter() - started)
            raise
        LOGGER.info("%s in %.3fs", result.summary(), time.perf_counter() - started)
        diagnostics = ExpressionDiagnostics(density.last_error, density.error_count)
        self.last_diagnostics = diagnostics

        if self._cache_size:
            self._cache[snapshot] = (result, diagnostics)
            while len(self._cache) > self._cache_size:
                self._cache.popitem(last=False)
        return result


def _apply_environment(payload: Dict[str, Any], env: Mapping[str, str], prefix: str) -> Dict[str, Any]:
    seed = env.get(f"{prefix}_SEED")
    if seed is not None:
        try:
            payload["seed"] = int(seed)
        except ValueError as exc:
            raise ConfigurationError(f"{prefix}_SEED must be an integer, got {seed!r}") from exc
    expression = env.get(f"{prefix}_EXPRESSION")
    if expression is not None:
        payload["expression"] = expression
    return payload


def load_generation_config(
    mapping: Optional[Mapping[str, Any]] = None,
    *,
    env_prefix: str = "ISOTERRAIN",
    env: Optional[Mapping[str, str]] = None,
) -> TerrainSnapshot:
    """Build a snapshot from ``mapping`` with environment overrides applied on top."""

    source = env if env is not None else os.environ
    payload = _apply_environment(dict(mapping or {}), source, env_prefix)
    return TerrainSnapshot.from_mapping(payload)
