"""Exception types shared by the terrain pipeline."""
from __future__ import annotations


class TerrainError(Exception):
    """Base class for every error raised by :mod:`isoterrain`."""


class ConfigurationError(TerrainError, ValueError):
    """A configuration record carries a value that cannot be used."""


class EvaluationError(TerrainError):
    """A scalar expression could not be evaluated to a finite number."""

    def __init__(self, message: str, expression: str = "") -> None:
        super().__init__(message)
        self.expression = expression


class ParseError(EvaluationError):
    """A scalar expression does not match the supported grammar."""

    def __init__(self, message: str, expression: str = "", position: int = -1) -> None:
        super().__init__(message, expression)
        self.position = position


class GenerationCancelled(TerrainError):
    """Raised when a caller asks a running regeneration to stop."""


def raise_if_cancelled(should_cancel) -> None:
    """Raise :class:`GenerationCancelled` when the caller's predicate asks to stop."""

    if should_cancel is not None and should_cancel():
        raise GenerationCancelled("regeneration cancelled by caller")
