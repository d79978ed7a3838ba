"""Reformat the high precision combiner output into the planned encoding."""
from __future__ import annotations

import numpy as np

from .types import HIGH_PRECISION_ENCODING, OutputPlan, Raster


def narrow_to_8bit(values: np.ndarray) -> np.ndarray:
    """Rescale uint16 values to uint8, rounding to the nearest level.

    ``(v + 128) // 257`` maps ``257 * k`` exactly onto ``k`` and 65535 onto
    255.
    """

    widened = np.asarray(values, dtype=np.uint32)
    return ((widened + 128) // 257).astype(np.uint8)


def materialize(high_precision: Raster, plan: OutputPlan) -> Raster:
    """Produce the final raster described by *plan*.

    Grayscale plans keep the red channel as luminance next to alpha, color
    plans keep all four channels.
    """

    if high_precision.encoding != HIGH_PRECISION_ENCODING:
        raise ValueError(f"Expected an {HIGH_PRECISION_ENCODING} raster, got {high_precision.encoding}")

    pixels = high_precision.pixels
    if not plan.is_color:
        pixels = pixels[..., [0, 3]]

    if plan.output_bit_depth == 8:
        pixels = narrow_to_8bit(pixels)

    return Raster(np.array(pixels, dtype=plan.output_encoding.depth.dtype, order="C"), plan.output_encoding)


__all__ = ["materialize", "narrow_to_8bit"]
