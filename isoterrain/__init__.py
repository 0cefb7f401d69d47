"""Procedural voxel terrain.

Samples configurable noise into a density field and turns it into either
blocky voxel cells or a smooth marching-cubes mesh.
"""

from .config import (
    CellularConfig,
    CellularDistanceFunction,
    CellularReturnType,
    DomainWarpType,
    FractalConfig,
    FractalType,
    GridSpec,
    NoiseConfig,
    NoiseType,
    RotationType3D,
    WarpConfig,
    WarpFractalType,
)
from .density import DensityFunction
from .errors import ConfigurationError, EvaluationError, GenerationCancelled, ParseError, TerrainError
from .expression import EvaluationResult, compile_expression, evaluate
from .geometry import Mesh, VoxelSet
from .logging_config import configure_logging
from .marching_cubes import extract
from .noise_field import NoiseField
from .pipeline import ExpressionDiagnostics, TerrainGenerator, TerrainSnapshot, load_generation_config
from .preview import render_preview
from .voxels import enumerate_voxels

__all__ = [
    "CellularConfig",
    "CellularDistanceFunction",
    "CellularReturnType",
    "DomainWarpType",
    "FractalConfig",
    "FractalType",
    "GridSpec",
    "NoiseConfig",
    "NoiseType",
    "RotationType3D",
    "WarpConfig",
    "WarpFractalType",
    "DensityFunction",
    "ConfigurationError",
    "EvaluationError",
    "GenerationCancelled",
    "ParseError",
    "TerrainError",
    "EvaluationResult",
    "compile_expression",
    "evaluate",
    "Mesh",
    "VoxelSet",
    "configure_logging",
    "extract",
    "NoiseField",
    "ExpressionDiagnostics",
    "TerrainGenerator",
    "TerrainSnapshot",
    "load_generation_config",
    "render_preview",
    "enumerate_voxels",
]
