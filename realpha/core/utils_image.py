"""Decoding and encoding of rasters for the realpha pipeline.

The PNG header (or Pillow's header mode for other containers) tells grayscale
from color, OpenCV decodes the pixels at their native bit depth (Pillow
narrows 16-bit color to 8 bits). Output is PNG, or TIFF when the destination
ends in ``.tif``/``.tiff``.
"""
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Dict

import cv2
import numpy as np
import png
import tifffile
from PIL import Image

from ..modules.matting.types import BitDepth, ChannelLayout, ColorEncoding, Raster
from .config import TIFF_SUFFIXES
from .errors import ImageDecodeError, ImageIOError
from .utils_io import atomic_write

LOGGER = logging.getLogger("realpha.image")

_GRAYSCALE_MODES = frozenset({"1", "L", "LA", "La", "I", "F"})

_DEPTHS: Dict[np.dtype, BitDepth] = {
    np.dtype(np.uint8): BitDepth.EIGHT,
    np.dtype(np.uint16): BitDepth.SIXTEEN,
    np.dtype(np.float32): BitDepth.FLOAT32,
    np.dtype(np.float64): BitDepth.FLOAT32,
}


def _is_grayscale_mode(mode: str) -> bool:
    return mode in _GRAYSCALE_MODES or mode.startswith("I;16")


def _probe_png(data: bytes, path: Path) -> tuple[bool, str]:
    # Pillow reports 16-bit grey+alpha PNGs as RGBA, so read IHDR directly.
    reader = png.Reader(bytes=data)
    try:
        reader.preamble()
    except png.Error as exc:
        raise ImageDecodeError(f"Can't decode image {path}: {exc}", path) from exc
    return bool(reader.greyscale), f"PNG color type {reader.color_type}"


def _probe_mode(data: bytes, path: Path) -> tuple[bool, str]:
    """Return ``(grayscale, description)`` read from the file header."""

    if data.startswith(png.signature):
        return _probe_png(data, path)
    try:
        with Image.open(io.BytesIO(data)) as probe:
            return _is_grayscale_mode(probe.mode), f"mode {probe.mode}"
    except Image.DecompressionBombError as exc:
        raise ImageDecodeError(f"Image {path} is too large to decode: {exc}", path) from exc
    except (OSError, SyntaxError, ValueError) as exc:
        raise ImageDecodeError(f"Can't decode image {path}: {exc}", path) from exc


def _arrange_channels(array: np.ndarray, grayscale: bool) -> tuple[np.ndarray, ChannelLayout]:
    """Turn OpenCV's BGR(A) output into ``(pixels, layout)``."""

    if array.ndim == 2:
        return array[..., None], ChannelLayout.L
    channels = array.shape[2]
    if channels == 1:
        return array, ChannelLayout.L
    if channels == 2:
        return array, ChannelLayout.LA
    if grayscale:
        # OpenCV expands grey+alpha PNGs to BGRA with equal color channels.
        if channels == 3:
            return array[..., :1], ChannelLayout.L
        return array[..., [0, 3]], ChannelLayout.LA
    if channels == 3:
        return array[..., ::-1], ChannelLayout.RGB
    return array[..., [2, 1, 0, 3]], ChannelLayout.RGBA


def decode_raster(data: bytes, path: Path | str = "<memory>") -> Raster:
    """Decode encoded image bytes into a :class:`Raster`."""

    path = Path(path)
    grayscale, header = _probe_mode(data, path)
    array = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if array is None:
        raise ImageDecodeError(f"Can't decode image {path}", path)

    depth = _DEPTHS.get(array.dtype)
    if depth is None:
        raise ImageDecodeError(f"Unsupported sample type {array.dtype} in {path}", path)

    pixels, layout = _arrange_channels(array, grayscale)
    pixels = np.ascontiguousarray(pixels, dtype=depth.dtype)
    raster = Raster(pixels, ColorEncoding(layout, depth))
    LOGGER.debug("Decoded %s as %s (%sx%s, %s)", path, raster.encoding, raster.width, raster.height, header)
    return raster


def load_raster(path: Path | str) -> Raster:
    """Read and decode the image at *path*."""

    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ImageIOError(f"Can't open file {path}: {exc.strerror or exc}", path) from exc
    return decode_raster(data, path)


def _write_png(raster: Raster, destination: Path) -> None:
    pixels = raster.pixels
    if raster.encoding.depth is BitDepth.EIGHT:
        Image.fromarray(pixels).save(destination, format="PNG")
        return

    # Pillow has no 16-bit grey+alpha mode and OpenCV cannot write two channels.
    height, width, channels = pixels.shape
    writer = png.Writer(
        width=width,
        height=height,
        greyscale=not raster.encoding.layout.has_color,
        alpha=raster.encoding.layout.has_alpha,
        bitdepth=16,
    )
    rows = pixels.reshape(height, width * channels)
    with open(destination, "wb") as handle:
        writer.write(handle, rows)


def _write_tiff(raster: Raster, destination: Path) -> None:
    layout = raster.encoding.layout
    tifffile.imwrite(
        destination,
        raster.pixels,
        photometric="rgb" if layout.has_color else "minisblack",
        planarconfig="contig",
        extrasamples=(tifffile.EXTRASAMPLE.UNASSALPHA,) if layout.has_alpha else None,
    )


def writer_for(path: Path | str) -> Callable[[Raster, Path], None]:
    """Pick the encoder for a destination path based on its suffix."""

    if Path(path).suffix.lower() in TIFF_SUFFIXES:
        return _write_tiff
    return _write_png


def save_raster(raster: Raster, path: Path | str) -> Path:
    """Encode *raster* and atomically write it to *path*."""

    encoding = raster.encoding
    if not encoding.layout.has_alpha or encoding.depth.is_float:
        raise ValueError(f"Only LA/RGBA rasters with 8 or 16 bits can be saved, got {encoding}")

    destination = Path(path)
    encoder = writer_for(destination)
    try:
        return atomic_write(destination, lambda temp_path: encoder(raster, temp_path))
    except OSError as exc:
        raise ImageIOError(f"Can't write {destination}: {exc}", destination) from exc


__all__ = ["decode_raster", "load_raster", "save_raster", "writer_for"]
