"""Configured noise fields: fractal octave compositing and domain warping."""
from __future__ import annotations

from typing import Callable, Optional, Tuple

from .config import (
    CellularConfig,
    DomainWarpType,
    FractalConfig,
    FractalType,
    NoiseConfig,
    NoiseType,
    RotationType3D,
    WarpConfig,
    WarpFractalType,
)
from .noise import base_sampler2, base_sampler3

# //1.- Fixed per-axis offsets keep warp displacements decorrelated between axes.
WARP_AXIS_OFFSETS: Tuple[Tuple[float, float, float], ...] = (
    (0.0, 0.0, 0.0),
    (123.45, -987.65, 0.0),
    (-456.78, 321.09, 55.5),
)
WARP_AXIS_SEED_STEP = 1337

_WARP_NOISE = {
    DomainWarpType.OPEN_SIMPLEX_2: NoiseType.OPEN_SIMPLEX_2,
    DomainWarpType.OPEN_SIMPLEX_2_REDUCED: NoiseType.OPEN_SIMPLEX_2,
    DomainWarpType.BASIC_GRID: NoiseType.VALUE_CUBIC,
}

_ROOT3 = 0.577350269189626
_SKEW = -0.211324865405187


def _lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)


def _ping_pong(t: float) -> float:
    t -= int(t * 0.5) * 2
    return t if t < 1.0 else 2.0 - t


def amplitude_bounding(gain: float, octaves: int) -> float:
    """Reciprocal of the summed octave amplitudes ``gain**i``."""

    gain = abs(gain)
    amplitude = gain
    total = 1.0
    for _ in range(1, octaves):
        total += amplitude
        amplitude *= gain
    return 1.0 / total


def composite_octaves(
    fractal: FractalConfig,
    seed: int,
    evaluate: Callable[[int, float], float],
) -> float:
    """Combine octaves of ``evaluate(seed, scale)`` according to ``fractal``.

    ``scale`` is the lacunarity multiplier applied to the coordinates of the
    octave. FBm is a plain weighted sum; Ridged and PingPong fold each octave
    before weighting. The weighted strength lets a strong octave damp or boost
    the amplitude of the next one.
    """

    if not fractal.active:
        return evaluate(seed, 1.0)

    kind = fractal.kind
    strength = fractal.weighted_strength
    amplitude = amplitude_bounding(fractal.gain, fractal.octaves)
    scale = 1.0
    total = 0.0
    for _ in range(fractal.octaves):
        noise = evaluate(seed, scale)
        if kind is FractalType.RIDGED:
            noise = abs(noise)
            total += (noise * -2.0 + 1.0) * amplitude
            amplitude *= _lerp(1.0, 1.0 - noise, strength)
        elif kind is FractalType.PING_PONG:
            noise = _ping_pong((noise + 1.0) * fractal.ping_pong_strength)
            total += (noise - 0.5) * 2.0 * amplitude
            amplitude *= _lerp(1.0, noise, strength)
        else:
            total += noise * amplitude
            amplitude *= _lerp(1.0, min(noise + 1.0, 2.0) * 0.5, strength)
        seed += 1
        scale *= fractal.lacunarity
        amplitude *= fractal.gain
    return total


def rotate3(rotation: RotationType3D, x: float, y: float, z: float) -> Tuple[float, float, float]:
    """Reorient the lattice so one plane avoids axis-aligned artefacts."""

    if rotation is RotationType3D.IMPROVE_XY_PLANES:
        xy = x + y
        s2 = xy * _SKEW
        z *= _ROOT3
        return x + s2 - z, y + s2 - z, z + xy * _ROOT3
    if rotation is RotationType3D.IMPROVE_XZ_PLANES:
        xz = x + z
        s2 = xz * _SKEW
        y *= _ROOT3
        return x + s2 - y, y + xz * _ROOT3, z + s2 - y
    return x, y, z


class DomainWarp:
    """Displaces sample coordinates with independently seeded warp noise."""

    def __init__(self, config: WarpConfig) -> None:
        self._config = config
        noise_type = _WARP_NOISE.get(config.type, NoiseType.OPEN_SIMPLEX_2)
        self._sample2 = base_sampler2(noise_type, CellularConfig())
        self._sample3 = base_sampler3(noise_type, CellularConfig())
        if config.type is DomainWarpType.OPEN_SIMPLEX_2_REDUCED:
            # //1.- The reduced variant shares one generator and relies on the offsets alone.
            self._axis_seeds = (config.seed, config.seed, config.seed)
        else:
            self._axis_seeds = tuple(config.seed + axis * WARP_AXIS_SEED_STEP for axis in range(3))
        self._octaves = config.effective_octaves
        if config.fractal is WarpFractalType.NONE:
            self._bounding = 1.0
        else:
            self._bounding = amplitude_bounding(config.gain, self._octaves)

    @property
    def config(self) -> WarpConfig:
        return self._config

    def warp2(self, x: float, y: float) -> Tuple[float, float]:
        config = self._config
        progressive = config.fractal is WarpFractalType.PROGRESSIVE
        amplitude = config.amplitude * self._bounding
        frequency = config.frequency
        dx_total = 0.0
        dy_total = 0.0
        wx, wy = x, y
        for octave in range(self._octaves):
            # //2.- Progressive octaves read the already warped point, independent ones the unwarped point.
            sx, sy = (wx, wy) if progressive else (x, y)
            ox, oy, _ = WARP_AXIS_OFFSETS[0]
            dx = self._sample2(self._axis_seeds[0] + octave, (sx + ox) * frequency, (sy + oy) * frequency)
            ox, oy, _ = WARP_AXIS_OFFSETS[1]
            dy = self._sample2(self._axis_seeds[1] + octave, (sx + ox) * frequency, (sy + oy) * frequency)
            if progressive:
                wx += dx * amplitude
                wy += dy * amplitude
            else:
                dx_total += dx * amplitude
                dy_total += dy * amplitude
            amplitude *= config.gain
            frequency *= config.lacunarity
        if progressive:
            return wx, wy
        return x + dx_total, y + dy_total

    def warp3(self, x: float, y: float, z: float) -> Tuple[float, float, float]:
        config = self._config
        progressive = config.fractal is WarpFractalType.PROGRESSIVE
        amplitude = config.amplitude * self._bounding
        frequency = config.frequency
        totals = [0.0, 0.0, 0.0]
        warped = [x, y, z]
        for octave in range(self._octaves):
            sx, sy, sz = warped if progressive else (x, y, z)
            displacement = []
            for axis in range(3):
                ox, oy, oz = WARP_AXIS_OFFSETS[axis]
                displacement.append(
                    self._sample3(
                        self._axis_seeds[axis] + octave,
                        (sx + ox) * frequency,
                        (sy + oy) * frequency,
                        (sz + oz) * frequency,
                    )
                )
            for axis in range(3):
                if progressive:
                    warped[axis] += displacement[axis] * amplitude
                else:
                    totals[axis] += displacement[axis] * amplitude
            amplitude *= config.gain
            frequency *= config.lacunarity
        if progressive:
            return warped[0], warped[1], warped[2]
        return x + totals[0], y + totals[1], z + totals[2]


class NoiseField:
    """Deterministic scalar sampler built from one :class:`NoiseConfig`.

    Instances own their configuration and hold no mutable state, so two
    fields built from equal configs return identical values for identical
    coordinates.
    """

    def __init__(self, config: NoiseConfig) -> None:
        self._config = config
        self._sample2 = base_sampler2(config.noise_type, config.cellular)
        self._sample3 = base_sampler3(config.noise_type, config.cellular)
        self._warp: Optional[DomainWarp] = None
        if config.warp is not None and config.warp.enabled:
            self._warp = DomainWarp(config.warp)

    @property
    def config(self) -> NoiseConfig:
        return self._config

    @property
    def warp(self) -> Optional[DomainWarp]:
        return self._warp

    def sample(self, x: float, y: float, z: Optional[float] = None) -> float:
        """Sample the 2D field at ``(x, y)`` or the 3D field at ``(x, y, z)``."""

        if z is None:
            return self.sample2(x, y)
        return self.sample3(x, y, z)

    def sample2(self, x: float, y: float) -> float:
        if self._warp is not None:
            x, y = self._warp.warp2(x, y)
        frequency = self._config.frequency
        fx = x * frequency
        fy = y * frequency
        sampler = self._sample2
        return composite_octaves(
            self._config.fractal,
            self._config.seed,
            lambda seed, scale: sampler(seed, fx * scale, fy * scale),
        )

    def sample3(self, x: float, y: float, z: float) -> float:
        if self._warp is not None:
            x, y, z = self._warp.warp3(x, y, z)
        frequency = self._config.frequency
        fx, fy, fz = rotate3(self._config.rotation_3d, x * frequency, y * frequency, z * frequency)
        sampler = self._sample3
        return composite_octaves(
            self._config.fractal,
            self._config.seed,
            lambda seed, scale: sampler(seed, fx * scale, fy * scale, fz * scale),
        )
