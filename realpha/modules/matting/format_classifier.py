"""Decide whether two rasters can be combined and what to produce."""
from __future__ import annotations

import logging

from ...core.errors import DimensionMismatchError, EncodingMismatchError, UnsupportedPrecisionError
from .types import OutputPlan, Raster

LOGGER = logging.getLogger("realpha.matting.format_classifier")


def validate_and_plan(black: Raster, white: Raster) -> OutputPlan:
    """Validate the black/white pair and return the output plan.

    Raises :class:`DimensionMismatchError`, :class:`UnsupportedPrecisionError`
    or :class:`EncodingMismatchError`, checked in that order.
    """

    if black.dimensions != white.dimensions:
        raise DimensionMismatchError(
            "Both input images must be the same size "
            f"(black is {black.width}x{black.height}, white is {white.width}x{white.height})"
        )

    if black.encoding.depth.is_float or white.encoding.depth.is_float:
        raise UnsupportedPrecisionError("32-bit color is not supported")

    if black.encoding != white.encoding:
        raise EncodingMismatchError(
            "Both input images must use the same color format "
            f"(black is {black.encoding}, white is {white.encoding})"
        )

    encoding = black.encoding
    plan = OutputPlan(is_color=encoding.layout.has_color, output_bit_depth=encoding.depth.bits)
    LOGGER.debug("Input encoding %s planned as %s", encoding, plan.output_encoding)
    return plan


__all__ = ["validate_and_plan"]
