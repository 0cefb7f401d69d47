"""Grayscale preview of the 2D noise field."""
from __future__ import annotations

import numpy as np

from .config import NoiseConfig
from .noise_field import NoiseField


def render_preview(
    noise: NoiseConfig,
    width: int = 128,
    height: int = 128,
    zoom: float = 1.0,
    offset_x: float = 0.0,
    offset_z: float = 0.0,
    extent: float = 32.0,
) -> np.ndarray:
    """Render ``noise`` over an ``extent``-unit window as a ``(height, width)`` uint8 image.

    Zoom scales around the window center; noise in ``[-1, 1]`` maps to
    ``[0, 255]`` and anything outside is clipped.
    """

    if width <= 0 or height <= 0:
        return np.zeros((max(0, height), max(0, width)), dtype=np.uint8)
    if zoom <= 0:
        raise ValueError("zoom must be positive")

    field = NoiseField(noise)
    half = extent / 2.0
    values = np.empty((height, width), dtype=np.float64)
    for row in range(height):
        nz = ((row / height * extent) - half) / zoom + half + offset_z
        for column in range(width):
            nx = ((column / width * extent) - half) / zoom + half + offset_x
            values[row, column] = field.sample2(nx, nz)
    intensity = np.floor((values + 1.0) * 0.5 * 255.0)
    return np.clip(np.nan_to_num(intensity), 0, 255).astype(np.uint8)
