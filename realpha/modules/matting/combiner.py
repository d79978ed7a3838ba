"""Apply the alpha recovery transform over whole rasters."""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from ...core.config import HIGH_PRECISION_MAX
from ...core.utils_parallel import SequentialStrategy, ThreadedStrategy
from .transform import recover
from .types import HIGH_PRECISION_ENCODING, BlendMode, Raster

LOGGER = logging.getLogger("realpha.matting.combiner")

# Bands handed to each worker; more than one per worker evens out the load.
BANDS_PER_WORKER = 4


def normalize_samples(pixels: np.ndarray, max_value: float) -> np.ndarray:
    """Return float64 RGB samples in [0, 1] for a block of raster pixels.

    Luminance is broadcast to three channels and any alpha channel is dropped.
    """

    channels = pixels.shape[-1]
    if channels in (1, 2):
        color = np.repeat(pixels[..., :1], 3, axis=-1)
    else:
        color = pixels[..., :3]
    return color.astype(np.float64) / max_value


def quantize_to_16bit(values: np.ndarray) -> np.ndarray:
    """Scale [0, 1] floats to uint16, saturating out-of-range values."""

    scaled = np.rint(np.asarray(values, dtype=np.float64) * HIGH_PRECISION_MAX)
    return np.clip(scaled, 0, HIGH_PRECISION_MAX).astype(np.uint16)


def split_rows(height: int, rows_per_task: int) -> List[Tuple[int, int]]:
    """Split ``range(height)`` into contiguous ``(start, stop)`` bands."""

    if rows_per_task < 1:
        raise ValueError(f"rows_per_task must be positive, got {rows_per_task}")
    return [(start, min(start + rows_per_task, height)) for start in range(0, height, rows_per_task)]


def _default_rows_per_task(height: int, workers: int) -> int:
    return max(1, math.ceil(height / max(1, workers * BANDS_PER_WORKER)))


def combine(
    black: Raster,
    white: Raster,
    blend: BlendMode = BlendMode.BLACK,
    *,
    strategy: Optional[SequentialStrategy | ThreadedStrategy] = None,
    rows_per_task: Optional[int] = None,
) -> Raster:
    """Recover alpha for every pixel and return an ``RGBA16`` raster.

    The inputs must already have passed
    :func:`~realpha.modules.matting.format_classifier.validate_and_plan`.
    Each band of rows is written by exactly one task into its own slice of
    the output, so the result does not depend on the strategy or band size.
    """

    if black.dimensions != white.dimensions:
        raise ValueError(f"Cannot combine rasters of size {black.dimensions} and {white.dimensions}")

    blend = BlendMode.parse(blend)
    strategy = strategy or SequentialStrategy()
    height, width = black.height, black.width
    output = np.zeros((height, width, 4), dtype=np.uint16)

    black_max = black.encoding.depth.max_value
    white_max = white.encoding.depth.max_value

    def _process_band(band: Tuple[int, int]) -> int:
        start, stop = band
        black_samples = normalize_samples(black.pixels[start:stop], black_max)
        white_samples = normalize_samples(white.pixels[start:stop], white_max)
        output[start:stop] = quantize_to_16bit(recover(black_samples, white_samples, blend))
        return stop - start

    bands = split_rows(height, rows_per_task or _default_rows_per_task(height, strategy.max_workers))
    LOGGER.debug(
        "Combining %sx%s pixels in %s bands with %r (blend=%s)",
        width,
        height,
        len(bands),
        strategy,
        blend.value,
    )
    rows_done = sum(strategy.map(_process_band, bands))
    LOGGER.debug("Combined %s rows", rows_done)

    return Raster(output, HIGH_PRECISION_ENCODING)


__all__ = ["combine", "normalize_samples", "quantize_to_16bit", "split_rows"]
