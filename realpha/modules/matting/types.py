"""Shared type definitions for difference matting."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np


class ChannelLayout(Enum):
    """Channel arrangement of a raster."""

    L = "L"
    LA = "LA"
    RGB = "RGB"
    RGBA = "RGBA"

    @property
    def channel_count(self) -> int:
        return len(self.value)

    @property
    def has_color(self) -> bool:
        return self in (ChannelLayout.RGB, ChannelLayout.RGBA)

    @property
    def has_alpha(self) -> bool:
        return self in (ChannelLayout.LA, ChannelLayout.RGBA)


class BitDepth(Enum):
    """Per-channel precision class of a raster."""

    EIGHT = 8
    SIXTEEN = 16
    FLOAT32 = 32

    @property
    def bits(self) -> int:
        return self.value

    @property
    def is_float(self) -> bool:
        return self is BitDepth.FLOAT32

    @property
    def dtype(self) -> np.dtype:
        return np.dtype({8: np.uint8, 16: np.uint16, 32: np.float32}[self.value])

    @property
    def max_value(self) -> float:
        """Value that maps to 1.0 once normalized."""

        if self.is_float:
            return 1.0
        return float(np.iinfo(self.dtype).max)


@dataclass(frozen=True)
class ColorEncoding:
    """Channel layout plus bit depth, e.g. ``RGBA16`` or ``LA8``."""

    layout: ChannelLayout
    depth: BitDepth

    @property
    def name(self) -> str:
        suffix = "32F" if self.depth.is_float else str(self.depth.bits)
        return f"{self.layout.value}{suffix}"

    @classmethod
    def from_name(cls, name: str) -> "ColorEncoding":
        normalized = name.strip().upper()
        for depth_suffix, depth in (("32F", BitDepth.FLOAT32), ("16", BitDepth.SIXTEEN), ("8", BitDepth.EIGHT)):
            if normalized.endswith(depth_suffix):
                layout_name = normalized[: -len(depth_suffix)]
                try:
                    return cls(ChannelLayout(layout_name), depth)
                except ValueError:
                    break
        raise ValueError(f"Unknown color encoding: {name!r}")

    def __str__(self) -> str:
        return self.name


class BlendMode(Enum):
    """Which input supplies the recovered color once alpha is known."""

    WHITE = "white"
    BLACK = "black"
    # Not photometrically accurate, kept as an experiment.
    MIX = "mix"

    @classmethod
    def parse(cls, value: "BlendMode | str") -> "BlendMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Invalid blend mode {value!r}; expected one of: {choices}") from None


@dataclass(frozen=True, eq=False)
class Raster:
    """A decoded image: ``pixels`` is always ``(height, width, channels)``."""

    pixels: np.ndarray
    encoding: ColorEncoding

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3:
            raise ValueError(f"Raster pixels must be 3-dimensional, got shape {self.pixels.shape}")
        expected_channels = self.encoding.layout.channel_count
        if self.pixels.shape[2] != expected_channels:
            raise ValueError(
                f"{self.encoding} raster needs {expected_channels} channels, got {self.pixels.shape[2]}"
            )
        if self.pixels.dtype != self.encoding.depth.dtype:
            raise ValueError(f"{self.encoding} raster needs dtype {self.encoding.depth.dtype}, got {self.pixels.dtype}")

    @classmethod
    def from_array(cls, pixels: np.ndarray, encoding: ColorEncoding | str) -> "Raster":
        """Build a raster, promoting 2D luminance arrays to one channel."""

        if isinstance(encoding, str):
            encoding = ColorEncoding.from_name(encoding)
        array = np.asarray(pixels)
        if array.ndim == 2:
            array = array[..., None]
        return cls(np.ascontiguousarray(array), encoding)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def channel_count(self) -> int:
        return int(self.pixels.shape[2])


@dataclass(frozen=True)
class OutputPlan:
    """Shape of the final raster decided before any pixel is computed."""

    is_color: bool
    output_bit_depth: int
    has_alpha_channel: bool = True

    def __post_init__(self) -> None:
        if self.output_bit_depth not in (8, 16):
            raise ValueError(f"Output bit depth must be 8 or 16, got {self.output_bit_depth}")

    @property
    def output_encoding(self) -> ColorEncoding:
        layout = ChannelLayout.RGBA if self.is_color else ChannelLayout.LA
        return ColorEncoding(layout, BitDepth(self.output_bit_depth))


HIGH_PRECISION_ENCODING = ColorEncoding(ChannelLayout.RGBA, BitDepth.SIXTEEN)


__all__ = [
    "BitDepth",
    "BlendMode",
    "ChannelLayout",
    "ColorEncoding",
    "HIGH_PRECISION_ENCODING",
    "OutputPlan",
    "Raster",
]
