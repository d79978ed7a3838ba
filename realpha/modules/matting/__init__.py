"""Difference matting: alpha recovery from black and white background renders."""
from __future__ import annotations

from .combiner import combine
from .format_classifier import validate_and_plan
from .materializer import materialize
from .transform import recover, recover_pixel
from .types import BitDepth, BlendMode, ChannelLayout, ColorEncoding, OutputPlan, Raster

__all__ = [
    "BitDepth",
    "BlendMode",
    "ChannelLayout",
    "ColorEncoding",
    "OutputPlan",
    "Raster",
    "combine",
    "materialize",
    "recover",
    "recover_pixel",
    "validate_and_plan",
]
