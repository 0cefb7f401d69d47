"""Signed density field built from a noise field and a scalar expression."""
from __future__ import annotations

import logging
from typing import Optional

from .config import GridSpec, NoiseConfig
from .errors import EvaluationError, ParseError
from .expression import CompiledExpression, compile_expression
from .noise_field import NoiseField

LOGGER = logging.getLogger(__name__)

CARVE_SEED_OFFSET = 1000


class DensityFunction:
    """Scalar field over grid coordinates; negative inside solid, positive outside.

    In height mode the 2D noise value is transformed by the expression and
    mapped to a terrain height ``h``; the density is ``y - h``. In volumetric
    mode the 3D noise value is negated and then transformed.
    Coordinates are grid indices; fractional values are allowed.
    """

    def __init__(self, noise: NoiseConfig, grid: GridSpec, expression: str = "N") -> None:
        self._noise_config = noise
        self._grid = grid
        self._field = NoiseField(noise)
        self._carve_field = NoiseField(noise.with_seed(noise.seed + CARVE_SEED_OFFSET))
        self._expression_source = expression
        self._expression: Optional[CompiledExpression]
        self._error_count = 0
        self._last_error: Optional[EvaluationError] = None
        try:
            self._expression = compile_expression(expression)
        except ParseError as exc:
            # //1.- Keep rendering with the raw noise; the parse error stays inspectable.
            LOGGER.warning("Invalid terrain expression %r, using raw noise: %s", expression, exc)
            self._expression = None
            self._last_error = exc

    @property
    def grid(self) -> GridSpec:
        return self._grid

    @property
    def noise_config(self) -> NoiseConfig:
        return self._noise_config

    @property
    def expression(self) -> str:
        return self._expression_source

    @property
    def use_3d(self) -> bool:
        return self._grid.use_3d

    @property
    def last_error(self) -> Optional[EvaluationError]:
        """Most recent expression failure, or ``None`` when every value was clean."""

        return self._last_error

    @property
    def error_count(self) -> int:
        return self._error_count

    def transform(self, n: float) -> float:
        """Apply the expression to ``n``, falling back to ``n`` on failure."""

        if self._expression is None:
            self._error_count += 1
            return n
        if self._expression.is_identity:
            return n
        result = self._expression.evaluate(n)
        if result.error is not None:
            if self._error_count == 0:
                LOGGER.warning(
                    "Terrain expression %r failed for N=%r, using raw noise: %s",
                    self._expression_source,
                    n,
                    result.error,
                )
            self._error_count += 1
            self._last_error = result.error
        return result.value

    def column_height(self, x: float, z: float) -> float:
        """Terrain height of the ``(x, z)`` column in height mode."""

        grid = self._grid
        raw = self._field.sample2(x + grid.offset_x, z + grid.offset_z)
        return grid.vertical_offset + self.transform(raw) * grid.amplitude

    def density(self, x: float, y: float, z: float) -> float:
        grid = self._grid
        if grid.use_3d:
            raw = self._field.sample3(x + grid.offset_x, y, z + grid.offset_z)
            return self.transform(-raw)
        return y - self.column_height(x, z)

    def carve(self, x: float, y: float, z: float) -> float:
        """Secondary noise used by blocky height mode to cut columns short."""

        grid = self._grid
        return self._carve_field.sample3(x + grid.offset_x, y, z + grid.offset_z)

    __call__ = density
