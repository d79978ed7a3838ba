"""Exceptions raised by the realpha pipeline."""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class RealphaError(Exception):
    """Base class for every failure reported to the user."""


class ImageIOError(RealphaError, OSError):
    """Raised when an input cannot be read or the output cannot be written."""

    def __init__(self, message: str, path: Optional[Path | str] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ImageDecodeError(RealphaError, ValueError):
    """Raised when a file is not a decodable raster."""

    def __init__(self, message: str, path: Optional[Path | str] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class RasterValidationError(RealphaError, ValueError):
    """Raised when two rasters cannot be combined."""


class DimensionMismatchError(RasterValidationError):
    """Both input images must be the same size."""


class EncodingMismatchError(RasterValidationError):
    """Both input images must use the same color format."""


class UnsupportedPrecisionError(RasterValidationError):
    """32-bit floating point inputs are not supported."""


__all__ = [
    "RealphaError",
    "ImageIOError",
    "ImageDecodeError",
    "RasterValidationError",
    "DimensionMismatchError",
    "EncodingMismatchError",
    "UnsupportedPrecisionError",
]
