"""Configuration records for noise sampling and grid extraction.

Every record is a frozen dataclass so that a full parameter set can be
hashed and used as a regeneration cache key. Loose records coming from a
control surface (flat dictionaries with string enum names) are coerced via
the ``from_mapping`` helpers; unknown enum names fall back to documented
defaults instead of failing.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

LOGGER = logging.getLogger(__name__)

E = TypeVar("E", bound="_NamedEnum")


class _NamedEnum(Enum):
    """Enum whose members are addressed by the names the control surface uses."""

    @classmethod
    def default(cls: Type[E]) -> E:
        raise NotImplementedError

    @classmethod
    def coerce(cls: Type[E], value: Any) -> E:
        # //1.- Accept members, canonical names, and case/underscore variants alike.
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.replace("_", "").replace(" ", "").lower()
            for member in cls:
                if member.value.lower() == key:
                    return member
        # //2.- Anything else degrades to the documented default so terrain stays renderable.
        fallback = cls.default()
        if value is not None:
            LOGGER.warning("Unknown %s %r, using %s", cls.__name__, value, fallback.name)
        return fallback


class NoiseType(_NamedEnum):
    PERLIN = "perlin"
    OPEN_SIMPLEX_2 = "opensimplex2"
    OPEN_SIMPLEX_2S = "opensimplex2s"
    CELLULAR = "cellular"
    VALUE_CUBIC = "valuecubic"
    VALUE = "value"

    @classmethod
    def default(cls) -> "NoiseType":
        return cls.OPEN_SIMPLEX_2


class RotationType3D(_NamedEnum):
    NONE = "none"
    IMPROVE_XY_PLANES = "improvexyplanes"
    IMPROVE_XZ_PLANES = "improvexzplanes"

    @classmethod
    def default(cls) -> "RotationType3D":
        return cls.NONE


class FractalType(_NamedEnum):
    NONE = "none"
    FBM = "fbm"
    RIDGED = "ridged"
    PING_PONG = "pingpong"

    @classmethod
    def default(cls) -> "FractalType":
        return cls.NONE


class CellularDistanceFunction(_NamedEnum):
    EUCLIDEAN = "euclidean"
    EUCLIDEAN_SQ = "euclideansq"
    MANHATTAN = "manhattan"
    HYBRID = "hybrid"

    @classmethod
    def default(cls) -> "CellularDistanceFunction":
        return cls.EUCLIDEAN_SQ


class CellularReturnType(_NamedEnum):
    CELL_VALUE = "cellvalue"
    DISTANCE = "distance"
    DISTANCE_2 = "distance2"
    DISTANCE_2_ADD = "distance2add"
    DISTANCE_2_SUB = "distance2sub"
    DISTANCE_2_MUL = "distance2mul"
    DISTANCE_2_DIV = "distance2div"

    @classmethod
    def default(cls) -> "CellularReturnType":
        return cls.DISTANCE


class DomainWarpType(_NamedEnum):
    OPEN_SIMPLEX_2 = "opensimplex2"
    OPEN_SIMPLEX_2_REDUCED = "opensimplex2reduced"
    BASIC_GRID = "basicgrid"

    @classmethod
    def default(cls) -> "DomainWarpType":
        return cls.OPEN_SIMPLEX_2


class WarpFractalType(_NamedEnum):
    NONE = "none"
    PROGRESSIVE = "progressive"
    INDEPENDENT = "independent"

    @classmethod
    def default(cls) -> "WarpFractalType":
        return cls.NONE


def _finite(value: Any, default: float, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        LOGGER.warning("Invalid %s %r, using %s", name, value, default)
        return default
    if not math.isfinite(number):
        LOGGER.warning("Non-finite %s %r, using %s", name, value, default)
        return default
    return number


def _octaves(value: Any, default: int = 3) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        LOGGER.warning("Invalid octave count %r, using %d", value, default)
        return default
    if count < 1:
        LOGGER.warning("Octave count %d below 1, clamping", count)
        return 1
    return count


def _size(value: Any, default: int = 32) -> int:
    """Grid dimension from a loose value; non-positive sizes are kept and mean an empty grid."""

    if isinstance(value, bool):
        value = int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        LOGGER.warning("Invalid grid size %r, using %d", value, default)
        return default
    if not math.isfinite(number):
        LOGGER.warning("Non-finite grid size %r, using %d", value, default)
        return default
    return int(number)


_TRUE_NAMES = frozenset({"true", "1", "yes", "on"})
_FALSE_NAMES = frozenset({"false", "0", "no", "off", ""})


def _flag(value: Any, default: bool = False) -> bool:
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _TRUE_NAMES:
            return True
        if key in _FALSE_NAMES:
            return False
        LOGGER.warning("Invalid flag %r, using %s", value, default)
        return default
    if value is None:
        return default
    return bool(value)


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


@dataclass(frozen=True)
class FractalConfig:
    """Octave compositing settings; ignored entirely when ``kind`` is NONE."""

    kind: FractalType = FractalType.NONE
    octaves: int = 3
    lacunarity: float = 2.0
    gain: float = 0.5
    weighted_strength: float = 0.0
    ping_pong_strength: float = 2.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", FractalType.coerce(self.kind))
        object.__setattr__(self, "octaves", _octaves(self.octaves))

    @property
    def active(self) -> bool:
        return self.kind is not FractalType.NONE

    @property
    def effective_octaves(self) -> int:
        return self.octaves if self.active else 1


@dataclass(frozen=True)
class CellularConfig:
    distance_function: CellularDistanceFunction = CellularDistanceFunction.EUCLIDEAN_SQ
    return_type: CellularReturnType = CellularReturnType.DISTANCE
    jitter: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "distance_function", CellularDistanceFunction.coerce(self.distance_function)
        )
        object.__setattr__(self, "return_type", CellularReturnType.coerce(self.return_type))


@dataclass(frozen=True)
class WarpConfig:
    """Domain warp settings; a zero amplitude leaves coordinates untouched."""

    type: DomainWarpType = DomainWarpType.OPEN_SIMPLEX_2
    amplitude: float = 1.0
    seed: int = 9999
    frequency: float = 0.01
    fractal: WarpFractalType = WarpFractalType.NONE
    octaves: int = 3
    lacunarity: float = 2.0
    gain: float = 0.5

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", DomainWarpType.coerce(self.type))
        object.__setattr__(self, "fractal", WarpFractalType.coerce(self.fractal))
        object.__setattr__(self, "octaves", _octaves(self.octaves))

    @property
    def enabled(self) -> bool:
        return self.amplitude != 0.0 or self.fractal is not WarpFractalType.NONE

    @property
    def effective_octaves(self) -> int:
        return self.octaves if self.fractal is not WarpFractalType.NONE else 1


@dataclass(frozen=True)
class NoiseConfig:
    """Complete description of one noise field."""

    noise_type: NoiseType = NoiseType.OPEN_SIMPLEX_2
    seed: int = 1337
    frequency: float = 0.01
    fractal: FractalConfig = field(default_factory=FractalConfig)
    cellular: CellularConfig = field(default_factory=CellularConfig)
    rotation_3d: RotationType3D = RotationType3D.NONE
    warp: Optional[WarpConfig] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "noise_type", NoiseType.coerce(self.noise_type))
        object.__setattr__(self, "rotation_3d", RotationType3D.coerce(self.rotation_3d))
        object.__setattr__(self, "seed", int(self.seed))

    def with_seed(self, seed: int) -> "NoiseConfig":
        """Return a copy that differs only in its base seed."""

        return NoiseConfig(
            noise_type=self.noise_type,
            seed=seed,
            frequency=self.frequency,
            fractal=self.fractal,
            cellular=self.cellular,
            rotation_3d=self.rotation_3d,
            warp=self.warp,
        )

    @classmethod
    def from_mapping(cls, payload: Optional[Mapping[str, Any]] = None) -> "NoiseConfig":
        """Build a config from the flat record the control surface produces.

        Keys follow the control surface naming (``noiseType``,
        ``fractalOctaves``, ``domainWarpAmp`` ...); snake_case aliases are
        accepted too. Missing keys take the dataclass defaults.
        """

        if not payload:
            return cls()
        seed = int(_finite(_pick(payload, "seed", default=1337), 1337, "seed"))
        frequency = _finite(_pick(payload, "frequency", default=0.01), 0.01, "frequency")
        fractal = FractalConfig(
            kind=_pick(payload, "fractalType", "fractal_type", default="None"),
            octaves=_pick(payload, "fractalOctaves", "fractal_octaves", default=3),
            lacunarity=_finite(
                _pick(payload, "fractalLacunarity", "fractal_lacunarity", default=2.0),
                2.0,
                "fractal lacunarity",
            ),
            gain=_finite(_pick(payload, "fractalGain", "fractal_gain", default=0.5), 0.5, "fractal gain"),
            weighted_strength=_finite(
                _pick(payload, "fractalWeightedStrength", "fractal_weighted_strength", default=0.0),
                0.0,
                "weighted strength",
            ),
            ping_pong_strength=_finite(
                _pick(payload, "fractalPingPongStrength", "fractal_ping_pong_strength", default=2.0),
                2.0,
                "ping-pong strength",
            ),
        )
        cellular = CellularConfig(
            distance_function=_pick(
                payload, "cellularDistanceFunction", "cellular_distance_function", default="EuclideanSq"
            ),
            return_type=_pick(payload, "cellularReturnType", "cellular_return_type", default="Distance"),
            jitter=_finite(_pick(payload, "cellularJitter", "cellular_jitter", default=1.0), 1.0, "jitter"),
        )
        warp = None
        amplitude = _finite(_pick(payload, "domainWarpAmp", "warp_amplitude", default=0.0), 0.0, "warp amplitude")
        warp_fractal = WarpFractalType.coerce(
            _pick(payload, "domainWarpFractalType", "warp_fractal_type", default="None")
        )
        if amplitude != 0.0 or warp_fractal is not WarpFractalType.NONE:
            warp = WarpConfig(
                type=_pick(payload, "domainWarpType", "warp_type", default="OpenSimplex2"),
                amplitude=amplitude,
                seed=int(_finite(_pick(payload, "domainWarpSeed", "warp_seed", default=seed + 9999), seed + 9999, "warp seed")),
                frequency=_finite(
                    _pick(payload, "domainWarpFrequency", "warp_frequency", default=frequency),
                    frequency,
                    "warp frequency",
                ),
                fractal=warp_fractal,
                octaves=_pick(payload, "domainWarpFractalOctaves", "warp_octaves", default=3),
                lacunarity=_finite(
                    _pick(payload, "domainWarpFractalLacunarity", "warp_lacunarity", default=2.0),
                    2.0,
                    "warp lacunarity",
                ),
                gain=_finite(_pick(payload, "domainWarpFractalGain", "warp_gain", default=0.5), 0.5, "warp gain"),
            )
        return cls(
            noise_type=_pick(payload, "noiseType", "noise_type", default="OpenSimplex2"),
            seed=seed,
            frequency=frequency,
            fractal=fractal,
            cellular=cellular,
            rotation_3d=_pick(payload, "rotationType3D", "rotation_3d", default="None"),
            warp=warp,
        )


@dataclass(frozen=True)
class GridSpec:
    """Sampling domain and terrain shaping parameters for one regeneration."""

    size_x: int = 32
    size_y: int = 32
    size_z: int = 32
    isolevel: float = -1.0
    amplitude: float = 8.0
    vertical_offset: float = 8.0
    offset_x: float = 0.0
    offset_z: float = 0.0
    use_3d: bool = False
    smooth: bool = False

    def __post_init__(self) -> None:
        for name in ("size_x", "size_y", "size_z"):
            object.__setattr__(self, name, _size(getattr(self, name)))
        object.__setattr__(self, "use_3d", _flag(self.use_3d))
        object.__setattr__(self, "smooth", _flag(self.smooth))

    @property
    def shape(self) -> tuple:
        return (self.size_x, self.size_y, self.size_z)

    @property
    def is_empty(self) -> bool:
        return self.size_x <= 0 or self.size_y <= 0 or self.size_z <= 0

    @property
    def cube_budget(self) -> int:
        if self.is_empty:
            return 0
        return self.size_x * self.size_y * self.size_z

    def center(self, ix: float, iy: float, iz: float) -> tuple:
        """Map grid indices to positions centered on the origin."""

        return (
            ix - self.size_x / 2 + 0.5,
            iy - self.size_y / 2 + 0.5,
            iz - self.size_z / 2 + 0.5,
        )

    @classmethod
    def from_mapping(cls, payload: Optional[Mapping[str, Any]] = None) -> "GridSpec":
        if not payload:
            return cls()
        size = _size(_pick(payload, "size", default=32))
        return cls(
            size_x=_size(_pick(payload, "sizeX", "size_x", default=size), size),
            size_y=_size(_pick(payload, "sizeY", "size_y", default=size), size),
            size_z=_size(_pick(payload, "sizeZ", "size_z", default=size), size),
            isolevel=_finite(_pick(payload, "isolevel", default=-1.0), -1.0, "isolevel"),
            amplitude=_finite(_pick(payload, "amplitude", default=8.0), 8.0, "amplitude"),
            vertical_offset=_finite(
                _pick(payload, "verticalOffset", "vertical_offset", default=8.0), 8.0, "vertical offset"
            ),
            offset_x=_finite(_pick(payload, "offsetX", "offset_x", default=0.0), 0.0, "offset x"),
            offset_z=_finite(_pick(payload, "offsetZ", "offset_z", default=0.0), 0.0, "offset z"),
            use_3d=_flag(_pick(payload, "use3D", "is3D", "use_3d", default=False)),
            smooth=_flag(_pick(payload, "isSmooth", "smooth", default=False)),
        )
