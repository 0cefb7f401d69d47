"""Deterministic lattice noise primitives.

Each function evaluates one base algorithm at already frequency-scaled
coordinates. Hashing is pure 32-bit integer arithmetic on the seed and the
lattice coordinates, so results never depend on interpreter state.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, Tuple

from .config import CellularConfig, CellularDistanceFunction, CellularReturnType, NoiseType

PRIME_X = 501125321
PRIME_Y = 1136930381
PRIME_Z = 1720413743

_MASK = 0xFFFFFFFF
_HASH_MUL = 0x27D4EB2D
_INV_INT = 1.0 / 2147483648.0

_SQRT3 = math.sqrt(3.0)
_F2 = 0.5 * (_SQRT3 - 1.0)
_G2 = (3.0 - _SQRT3) / 6.0
_F3 = 1.0 / 3.0
_G3 = 1.0 / 6.0

_DIAG = math.sqrt(0.5)
_GRAD2: Tuple[Tuple[float, float], ...] = (
    (1.0, 0.0), (-1.0, 0.0), (0.0, 1.0), (0.0, -1.0),
    (_DIAG, _DIAG), (-_DIAG, _DIAG), (_DIAG, -_DIAG), (-_DIAG, -_DIAG),
)
_GRAD3: Tuple[Tuple[float, float, float], ...] = (
    (1.0, 1.0, 0.0), (-1.0, 1.0, 0.0), (1.0, -1.0, 0.0), (-1.0, -1.0, 0.0),
    (1.0, 0.0, 1.0), (-1.0, 0.0, 1.0), (1.0, 0.0, -1.0), (-1.0, 0.0, -1.0),
    (0.0, 1.0, 1.0), (0.0, -1.0, 1.0), (0.0, 1.0, -1.0), (0.0, -1.0, -1.0),
)

_PERLIN_SCALE_2D = math.sqrt(2.0)
_PERLIN_SCALE_3D = 0.964921414852142
_SIMPLEX_SCALE_2D = 99.83685446303647
_SIMPLEX_SCALE_3D = 32.0
_SMOOTH_SCALE_2D = 18.24196194486065
_SMOOTH_SCALE_3D = 9.046026385208288
_CUBIC_SCALE_2D = 1.0 / (1.5 * 1.5)
_CUBIC_SCALE_3D = 1.0 / (1.5 * 1.5 * 1.5)


# -- Hash helpers ---------------------------------------------------------

def _signed(value: int) -> int:
    return value - 0x100000000 if value & 0x80000000 else value


def _prime(coordinate: int, prime: int) -> int:
    return (coordinate * prime) & _MASK


def _hash2(seed: int, xp: int, yp: int) -> int:
    h = ((seed & _MASK) ^ xp ^ yp) * _HASH_MUL & _MASK
    return h ^ (h >> 15)


def _hash3(seed: int, xp: int, yp: int, zp: int) -> int:
    h = ((seed & _MASK) ^ xp ^ yp ^ zp) * _HASH_MUL & _MASK
    return h ^ (h >> 15)


def _value_coord2(seed: int, xp: int, yp: int) -> float:
    h = (seed & _MASK) ^ xp ^ yp
    h = (h * h) & _MASK
    h ^= (h << 19) & _MASK
    return _signed(h) * _INV_INT


def _value_coord3(seed: int, xp: int, yp: int, zp: int) -> float:
    h = (seed & _MASK) ^ xp ^ yp ^ zp
    h = (h * h) & _MASK
    h ^= (h << 19) & _MASK
    return _signed(h) * _INV_INT


def _grad_coord2(seed: int, xp: int, yp: int, xd: float, yd: float) -> float:
    gx, gy = _GRAD2[_hash2(seed, xp, yp) & 7]
    return xd * gx + yd * gy


def _grad_coord3(seed: int, xp: int, yp: int, zp: int, xd: float, yd: float, zd: float) -> float:
    gx, gy, gz = _GRAD3[_hash3(seed, xp, yp, zp) % 12]
    return xd * gx + yd * gy + zd * gz


# -- Interpolation --------------------------------------------------------

def _lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)


def _hermite(t: float) -> float:
    return t * t * (3.0 - 2.0 * t)


def _quintic(t: float) -> float:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _cubic_lerp(a: float, b: float, c: float, d: float, t: float) -> float:
    p = (d - c) - (a - b)
    return t * t * t * p + t * t * ((a - b) - p) + t * (c - a) + b


# -- Perlin ---------------------------------------------------------------

def perlin2(seed: int, x: float, y: float) -> float:
    """Gradient noise on the square lattice."""

    x0 = math.floor(x)
    y0 = math.floor(y)
    xd0 = x - x0
    yd0 = y - y0
    xd1 = xd0 - 1.0
    yd1 = yd0 - 1.0
    xs = _quintic(xd0)
    ys = _quintic(yd0)

    x0p = _prime(x0, PRIME_X)
    y0p = _prime(y0, PRIME_Y)
    x1p = (x0p + PRIME_X) & _MASK
    y1p = (y0p + PRIME_Y) & _MASK

    xf0 = _lerp(_grad_coord2(seed, x0p, y0p, xd0, yd0), _grad_coord2(seed, x1p, y0p, xd1, yd0), xs)
    xf1 = _lerp(_grad_coord2(seed, x0p, y1p, xd0, yd1), _grad_coord2(seed, x1p, y1p, xd1, yd1), xs)
    return _lerp(xf0, xf1, ys) * _PERLIN_SCALE_2D


def perlin3(seed: int, x: float, y: float, z: float) -> float:
    """Classic Perlin-style gradient noise in 3D."""

    x0 = math.floor(x)
    y0 = math.floor(y)
    z0 = math.floor(z)
    xd0 = x - x0
    yd0 = y - y0
    zd0 = z - z0
    xd1 = xd0 - 1.0
    yd1 = yd0 - 1.0
    zd1 = zd0 - 1.0
    xs = _quintic(xd0)
    ys = _quintic(yd0)
    zs = _quintic(zd0)

    x0p = _prime(x0, PRIME_X)
    y0p = _prime(y0, PRIME_Y)
    z0p = _prime(z0, PRIME_Z)
    x1p = (x0p + PRIME_X) & _MASK
    y1p = (y0p + PRIME_Y) & _MASK
    z1p = (z0p + PRIME_Z) & _MASK

    xf00 = _lerp(
        _grad_coord3(seed, x0p, y0p, z0p, xd0, yd0, zd0),
        _grad_coord3(seed, x1p, y0p, z0p, xd1, yd0, zd0),
        xs,
    )
    xf10 = _lerp(
        _grad_coord3(seed, x0p, y1p, z0p, xd0, yd1, zd0),
        _grad_coord3(seed, x1p, y1p, z0p, xd1, yd1, zd0),
        xs,
    )
    xf01 = _lerp(
        _grad_coord3(seed, x0p, y0p, z1p, xd0, yd0, zd1),
        _grad_coord3(seed, x1p, y0p, z1p, xd1, yd0, zd1),
        xs,
    )
    xf11 = _lerp(
        _grad_coord3(seed, x0p, y1p, z1p, xd0, yd1, zd1),
        _grad_coord3(seed, x1p, y1p, z1p, xd1, yd1, zd1),
        xs,
    )
    yf0 = _lerp(xf00, xf10, ys)
    yf1 = _lerp(xf01, xf11, ys)
    return _lerp(yf0, yf1, zs) * _PERLIN_SCALE_3D


# -- OpenSimplex2 ---------------------------------------------------------

def simplex2(seed: int, x: float, y: float) -> float:
    """Simplex-lattice gradient noise summed over the three triangle corners."""

    s = (x + y) * _F2
    i = math.floor(x + s)
    j = math.floor(y + s)
    t = (i + j) * _G2
    x0 = x - (i - t)
    y0 = y - (j - t)
    if x0 > y0:
        i1, j1 = 1, 0
    else:
        i1, j1 = 0, 1

    corners = (
        (0, 0, x0, y0),
        (i1, j1, x0 - i1 + _G2, y0 - j1 + _G2),
        (1, 1, x0 - 1.0 + 2.0 * _G2, y0 - 1.0 + 2.0 * _G2),
    )
    total = 0.0
    for di, dj, xd, yd in corners:
        a = 0.5 - xd * xd - yd * yd
        if a <= 0.0:
            continue
        a2 = a * a
        total += a2 * a2 * _grad_coord2(seed, _prime(i + di, PRIME_X), _prime(j + dj, PRIME_Y), xd, yd)
    return total * _SIMPLEX_SCALE_2D


def simplex3(seed: int, x: float, y: float, z: float) -> float:
    """Simplex-lattice gradient noise summed over the four tetrahedron corners."""

    s = (x + y + z) * _F3
    i = math.floor(x + s)
    j = math.floor(y + s)
    k = math.floor(z + s)
    t = (i + j + k) * _G3
    x0 = x - (i - t)
    y0 = y - (j - t)
    z0 = z - (k - t)

    # //1.- Rank the offsets to find which tetrahedron of the skewed cube holds the point.
    if x0 >= y0:
        if y0 >= z0:
            i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 1, 0
        elif x0 >= z0:
            i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 0, 1
        else:
            i1, j1, k1, i2, j2, k2 = 0, 0, 1, 1, 0, 1
    else:
        if y0 < z0:
            i1, j1, k1, i2, j2, k2 = 0, 0, 1, 0, 1, 1
        elif x0 < z0:
            i1, j1, k1, i2, j2, k2 = 0, 1, 0, 0, 1, 1
        else:
            i1, j1, k1, i2, j2, k2 = 0, 1, 0, 1, 1, 0

    corners = (
        (0, 0, 0, x0, y0, z0),
        (i1, j1, k1, x0 - i1 + _G3, y0 - j1 + _G3, z0 - k1 + _G3),
        (i2, j2, k2, x0 - i2 + 2.0 * _G3, y0 - j2 + 2.0 * _G3, z0 - k2 + 2.0 * _G3),
        (1, 1, 1, x0 - 1.0 + 3.0 * _G3, y0 - 1.0 + 3.0 * _G3, z0 - 1.0 + 3.0 * _G3),
    )
    # //2.- Accumulate the radially attenuated gradient contribution of each corner.
    total = 0.0
    for di, dj, dk, xd, yd, zd in corners:
        a = 0.6 - xd * xd - yd * yd - zd * zd
        if a <= 0.0:
            continue
        a2 = a * a
        total += a2 * a2 * _grad_coord3(
            seed,
            _prime(i + di, PRIME_X),
            _prime(j + dj, PRIME_Y),
            _prime(k + dk, PRIME_Z),
            xd,
            yd,
            zd,
        )
    return total * _SIMPLEX_SCALE_3D


# -- OpenSimplex2S --------------------------------------------------------

def simplex_smooth2(seed: int, x: float, y: float) -> float:
    """Smoother simplex variant: wider kernel over the surrounding lattice points."""

    s = (x + y) * _F2
    i = math.floor(x + s)
    j = math.floor(y + s)
    total = 0.0
    for di in (-1, 0, 1, 2):
        for dj in (-1, 0, 1, 2):
            li = i + di
            lj = j + dj
            t = (li + lj) * _G2
            xd = x - (li - t)
            yd = y - (lj - t)
            a = 2.0 / 3.0 - xd * xd - yd * yd
            if a <= 0.0:
                continue
            a2 = a * a
            total += a2 * a2 * _grad_coord2(seed, _prime(li, PRIME_X), _prime(lj, PRIME_Y), xd, yd)
    return total * _SMOOTH_SCALE_2D


def simplex_smooth3(seed: int, x: float, y: float, z: float) -> float:
    s = (x + y + z) * _F3
    i = math.floor(x + s)
    j = math.floor(y + s)
    k = math.floor(z + s)
    total = 0.0
    for di in (-1, 0, 1, 2):
        li = i + di
        for dj in (-1, 0, 1, 2):
            lj = j + dj
            for dk in (-1, 0, 1, 2):
                lk = k + dk
                t = (li + lj + lk) * _G3
                xd = x - (li - t)
                yd = y - (lj - t)
                zd = z - (lk - t)
                a = 0.75 - xd * xd - yd * yd - zd * zd
                if a <= 0.0:
                    continue
                a2 = a * a
                total += a2 * a2 * _grad_coord3(
                    seed,
                    _prime(li, PRIME_X),
                    _prime(lj, PRIME_Y),
                    _prime(lk, PRIME_Z),
                    xd,
                    yd,
                    zd,
                )
    return total * _SMOOTH_SCALE_3D


# -- Cellular -------------------------------------------------------------

def _cell_distance(
    function: CellularDistanceFunction, dx: float, dy: float, dz: float = 0.0
) -> float:
    if function is CellularDistanceFunction.MANHATTAN:
        return abs(dx) + abs(dy) + abs(dz)
    if function is CellularDistanceFunction.HYBRID:
        return abs(dx) + abs(dy) + abs(dz) + (dx * dx + dy * dy + dz * dz)
    return dx * dx + dy * dy + dz * dz


def _cell_result(config: CellularConfig, distance0: float, distance1: float, closest_hash: int) -> float:
    return_type = config.return_type
    if return_type is CellularReturnType.CELL_VALUE:
        return _signed(closest_hash) * _INV_INT
    if config.distance_function is CellularDistanceFunction.EUCLIDEAN:
        distance0 = math.sqrt(distance0)
        distance1 = math.sqrt(distance1)
    if return_type is CellularReturnType.DISTANCE:
        return distance0 - 1.0
    if return_type is CellularReturnType.DISTANCE_2:
        return distance1 - 1.0
    if return_type is CellularReturnType.DISTANCE_2_ADD:
        return (distance1 + distance0) * 0.5 - 1.0
    if return_type is CellularReturnType.DISTANCE_2_SUB:
        return distance1 - distance0 - 1.0
    if return_type is CellularReturnType.DISTANCE_2_MUL:
        return distance1 * distance0 * 0.5 - 1.0
    if distance1 == 0.0:
        return -1.0
    return distance0 / distance1 - 1.0


def cellular2(seed: int, x: float, y: float, config: CellularConfig) -> float:
    """Worley noise over jittered feature points, one per lattice cell."""

    cx = math.floor(x)
    cy = math.floor(y)
    jitter = 0.5 * config.jitter
    distance0 = float("inf")
    distance1 = float("inf")
    closest_hash = 0
    for ox in (-1, 0, 1):
        xi = cx + ox
        xp = _prime(xi, PRIME_X)
        for oy in (-1, 0, 1):
            yi = cy + oy
            h = _hash2(seed, xp, _prime(yi, PRIME_Y))
            rx = (h & 0xFFFF) / 65535.0 * 2.0 - 1.0
            ry = ((h >> 16) & 0xFFFF) / 65535.0 * 2.0 - 1.0
            dx = xi + 0.5 + rx * jitter - x
            dy = yi + 0.5 + ry * jitter - y
            distance = _cell_distance(config.distance_function, dx, dy)
            if distance < distance0:
                distance1 = distance0
                distance0 = distance
                closest_hash = h
            elif distance < distance1:
                distance1 = distance
    return _cell_result(config, distance0, distance1, closest_hash)


def cellular3(seed: int, x: float, y: float, z: float, config: CellularConfig) -> float:
    cx = math.floor(x)
    cy = math.floor(y)
    cz = math.floor(z)
    jitter = 0.5 * config.jitter
    distance0 = float("inf")
    distance1 = float("inf")
    closest_hash = 0
    for ox in (-1, 0, 1):
        xi = cx + ox
        xp = _prime(xi, PRIME_X)
        for oy in (-1, 0, 1):
            yi = cy + oy
            yp = _prime(yi, PRIME_Y)
            for oz in (-1, 0, 1):
                zi = cz + oz
                h = _hash3(seed, xp, yp, _prime(zi, PRIME_Z))
                rx = (h & 0x3FF) / 1023.0 * 2.0 - 1.0
                ry = ((h >> 10) & 0x3FF) / 1023.0 * 2.0 - 1.0
                rz = ((h >> 20) & 0x3FF) / 1023.0 * 2.0 - 1.0
                dx = xi + 0.5 + rx * jitter - x
                dy = yi + 0.5 + ry * jitter - y
                dz = zi + 0.5 + rz * jitter - z
                distance = _cell_distance(config.distance_function, dx, dy, dz)
                if distance < distance0:
                    distance1 = distance0
                    distance0 = distance
                    closest_hash = h
                elif distance < distance1:
                    distance1 = distance
    return _cell_result(config, distance0, distance1, closest_hash)


# -- Value ----------------------------------------------------------------

def value2(seed: int, x: float, y: float) -> float:
    """Hermite-interpolated random lattice values; always within [-1, 1]."""

    x0 = math.floor(x)
    y0 = math.floor(y)
    xs = _hermite(x - x0)
    ys = _hermite(y - y0)
    x0p = _prime(x0, PRIME_X)
    y0p = _prime(y0, PRIME_Y)
    x1p = (x0p + PRIME_X) & _MASK
    y1p = (y0p + PRIME_Y) & _MASK
    xf0 = _lerp(_value_coord2(seed, x0p, y0p), _value_coord2(seed, x1p, y0p), xs)
    xf1 = _lerp(_value_coord2(seed, x0p, y1p), _value_coord2(seed, x1p, y1p), xs)
    return _lerp(xf0, xf1, ys)


def value3(seed: int, x: float, y: float, z: float) -> float:
    x0 = math.floor(x)
    y0 = math.floor(y)
    z0 = math.floor(z)
    xs = _hermite(x - x0)
    ys = _hermite(y - y0)
    zs = _hermite(z - z0)
    x0p = _prime(x0, PRIME_X)
    y0p = _prime(y0, PRIME_Y)
    z0p = _prime(z0, PRIME_Z)
    x1p = (x0p + PRIME_X) & _MASK
    y1p = (y0p + PRIME_Y) & _MASK
    z1p = (z0p + PRIME_Z) & _MASK
    xf00 = _lerp(_value_coord3(seed, x0p, y0p, z0p), _value_coord3(seed, x1p, y0p, z0p), xs)
    xf10 = _lerp(_value_coord3(seed, x0p, y1p, z0p), _value_coord3(seed, x1p, y1p, z0p), xs)
    xf01 = _lerp(_value_coord3(seed, x0p, y0p, z1p), _value_coord3(seed, x1p, y0p, z1p), xs)
    xf11 = _lerp(_value_coord3(seed, x0p, y1p, z1p), _value_coord3(seed, x1p, y1p, z1p), xs)
    yf0 = _lerp(xf00, xf10, ys)
    yf1 = _lerp(xf01, xf11, ys)
    return _lerp(yf0, yf1, zs)


def value_cubic2(seed: int, x: float, y: float) -> float:
    """Catmull-Rom interpolation over the surrounding 4x4 lattice values."""

    x1 = math.floor(x)
    y1 = math.floor(y)
    xs = x - x1
    ys = y - y1
    xps = [_prime(x1 + offset, PRIME_X) for offset in (-1, 0, 1, 2)]
    rows = []
    for offset in (-1, 0, 1, 2):
        yp = _prime(y1 + offset, PRIME_Y)
        a, b, c, d = (_value_coord2(seed, xp, yp) for xp in xps)
        rows.append(_cubic_lerp(a, b, c, d, xs))
    return _cubic_lerp(rows[0], rows[1], rows[2], rows[3], ys) * _CUBIC_SCALE_2D


def value_cubic3(seed: int, x: float, y: float, z: float) -> float:
    x1 = math.floor(x)
    y1 = math.floor(y)
    z1 = math.floor(z)
    xs = x - x1
    ys = y - y1
    zs = z - z1
    xps = [_prime(x1 + offset, PRIME_X) for offset in (-1, 0, 1, 2)]
    yps = [_prime(y1 + offset, PRIME_Y) for offset in (-1, 0, 1, 2)]
    slabs = []
    for offset in (-1, 0, 1, 2):
        zp = _prime(z1 + offset, PRIME_Z)
        rows = []
        for yp in yps:
            a, b, c, d = (_value_coord3(seed, xp, yp, zp) for xp in xps)
            rows.append(_cubic_lerp(a, b, c, d, xs))
        slabs.append(_cubic_lerp(rows[0], rows[1], rows[2], rows[3], ys))
    return _cubic_lerp(slabs[0], slabs[1], slabs[2], slabs[3], zs) * _CUBIC_SCALE_3D


# -- Dispatch -------------------------------------------------------------

Sampler2 = Callable[[int, float, float], float]
Sampler3 = Callable[[int, float, float, float], float]

_SAMPLERS_2D: Dict[NoiseType, Sampler2] = {
    NoiseType.PERLIN: perlin2,
    NoiseType.OPEN_SIMPLEX_2: simplex2,
    NoiseType.OPEN_SIMPLEX_2S: simplex_smooth2,
    NoiseType.VALUE_CUBIC: value_cubic2,
    NoiseType.VALUE: value2,
}

_SAMPLERS_3D: Dict[NoiseType, Sampler3] = {
    NoiseType.PERLIN: perlin3,
    NoiseType.OPEN_SIMPLEX_2: simplex3,
    NoiseType.OPEN_SIMPLEX_2S: simplex_smooth3,
    NoiseType.VALUE_CUBIC: value_cubic3,
    NoiseType.VALUE: value3,
}


def base_sampler2(noise_type: NoiseType, cellular: CellularConfig) -> Sampler2:
    """Resolve the 2D evaluator for ``noise_type``; unknown types use OpenSimplex2."""

    if noise_type is NoiseType.CELLULAR:
        return lambda seed, x, y: cellular2(seed, x, y, cellular)
    return _SAMPLERS_2D.get(noise_type, simplex2)


def base_sampler3(noise_type: NoiseType, cellular: CellularConfig) -> Sampler3:
    if noise_type is NoiseType.CELLULAR:
        return lambda seed, x, y, z: cellular3(seed, x, y, z, cellular)
    return _SAMPLERS_3D.get(noise_type, simplex3)
