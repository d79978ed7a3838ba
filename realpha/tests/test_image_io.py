"""Tests for decoding inputs and encoding outputs."""
from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("cv2")
pytest.importorskip("png")
pytest.importorskip("tifffile")

import cv2
import numpy as np
import png
import tifffile
from PIL import Image

from realpha.core.errors import ImageDecodeError, ImageIOError
from realpha.core.utils_image import load_raster, save_raster
from realpha.core.utils_io import temporary_path_for
from realpha.modules.matting.types import BitDepth, ChannelLayout, Raster


def _gradient(height: int, width: int, channels: int, dtype) -> np.ndarray:
    top = np.iinfo(dtype).max
    values = np.arange(height * width * channels, dtype=np.int64) * 7919 % (top + 1)
    return values.reshape(height, width, channels).astype(dtype)


def test_loads_eight_bit_grey_alpha_png(tmp_path: Path) -> None:
    pixels = _gradient(4, 6, 2, np.uint8)
    path = tmp_path / "la.png"
    Image.fromarray(pixels).save(path)

    raster = load_raster(path)

    assert raster.encoding.name == "LA8"
    np.testing.assert_array_equal(raster.pixels, pixels)


def test_loads_eight_bit_grayscale_and_rgb(tmp_path: Path) -> None:
    gray = _gradient(3, 5, 1, np.uint8)[..., 0]
    rgb = _gradient(3, 5, 3, np.uint8)
    Image.fromarray(gray).save(tmp_path / "l.png")
    Image.fromarray(rgb).save(tmp_path / "rgb.png")

    gray_raster = load_raster(tmp_path / "l.png")
    rgb_raster = load_raster(tmp_path / "rgb.png")

    assert gray_raster.encoding.name == "L8"
    np.testing.assert_array_equal(gray_raster.pixels[..., 0], gray)
    assert rgb_raster.encoding.name == "RGB8"
    np.testing.assert_array_equal(rgb_raster.pixels, rgb)


def test_loads_sixteen_bit_rgb_png_without_narrowing(tmp_path: Path) -> None:
    rgb = _gradient(5, 4, 3, np.uint16)
    path = tmp_path / "rgb16.png"
    ok, encoded = cv2.imencode(".png", np.ascontiguousarray(rgb[..., ::-1]))
    assert ok
    path.write_bytes(encoded.tobytes())

    raster = load_raster(path)

    assert raster.encoding.layout is ChannelLayout.RGB
    assert raster.encoding.depth is BitDepth.SIXTEEN
    np.testing.assert_array_equal(raster.pixels, rgb)


def test_loads_sixteen_bit_grey_alpha_png_as_grey(tmp_path: Path) -> None:
    pixels = np.array([[[1000, 60000], [65535, 0]]], dtype=np.uint16)
    path = tmp_path / "la16.png"
    writer = png.Writer(width=2, height=1, greyscale=True, alpha=True, bitdepth=16)
    with open(path, "wb") as handle:
        writer.write(handle, pixels.reshape(1, 4).tolist())

    raster = load_raster(path)

    assert raster.encoding.name == "LA16"
    np.testing.assert_array_equal(raster.pixels, pixels)


def test_png_layout_ignores_pillow_pixel_limit(tmp_path: Path, monkeypatch) -> None:
    rgb = _gradient(8, 8, 3, np.uint8)
    path = tmp_path / "rgb.png"
    Image.fromarray(rgb).save(path)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

    raster = load_raster(path)

    assert raster.encoding.name == "RGB8"
    np.testing.assert_array_equal(raster.pixels, rgb)


def test_oversized_non_png_is_a_decode_error(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "big.tif"
    Image.fromarray(_gradient(8, 8, 3, np.uint8)).save(path)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

    with pytest.raises(ImageDecodeError, match="too large") as info:
        load_raster(path)
    assert info.value.path == path


def test_truncated_png_is_a_decode_error(tmp_path: Path) -> None:
    path = tmp_path / "truncated.png"
    path.write_bytes(png.signature + b"\x00\x00")

    with pytest.raises(ImageDecodeError):
        load_raster(path)


def test_loads_float_tiff_as_float_precision(tmp_path: Path) -> None:
    path = tmp_path / "float.tif"
    tifffile.imwrite(path, np.linspace(0.0, 1.0, 12, dtype=np.float32).reshape(3, 4))

    raster = load_raster(path)

    assert raster.encoding.depth is BitDepth.FLOAT32
    assert raster.dimensions == (4, 3)


def test_missing_file_is_an_io_error(tmp_path: Path) -> None:
    missing = tmp_path / "nope.png"
    with pytest.raises(ImageIOError) as info:
        load_raster(missing)
    assert info.value.path == missing


def test_garbage_file_is_a_decode_error(tmp_path: Path) -> None:
    path = tmp_path / "garbage.png"
    path.write_bytes(b"definitely not an image")
    with pytest.raises(ImageDecodeError) as info:
        load_raster(path)
    assert info.value.path == path


@pytest.mark.parametrize(
    ("encoding", "channels", "dtype"),
    [("LA8", 2, np.uint8), ("RGBA8", 4, np.uint8), ("LA16", 2, np.uint16), ("RGBA16", 4, np.uint16)],
)
def test_png_output_keeps_layout_and_depth(tmp_path: Path, encoding: str, channels: int, dtype) -> None:
    raster = Raster.from_array(_gradient(6, 5, channels, dtype), encoding)
    destination = tmp_path / "nested" / "out.png"

    saved = save_raster(raster, destination)

    assert saved == destination
    assert not temporary_path_for(destination).exists()
    width, height, _, info = png.Reader(filename=str(destination)).read()
    assert (width, height) == (5, 6)
    assert info["bitdepth"] == np.dtype(dtype).itemsize * 8
    assert info["alpha"]
    assert info["greyscale"] == (channels == 2)

    reloaded = load_raster(destination)
    assert reloaded.encoding == raster.encoding
    np.testing.assert_array_equal(reloaded.pixels, raster.pixels)


@pytest.mark.parametrize(
    ("encoding", "channels", "dtype"),
    [("LA8", 2, np.uint8), ("RGBA16", 4, np.uint16), ("LA16", 2, np.uint16)],
)
def test_tiff_output_keeps_samples(tmp_path: Path, encoding: str, channels: int, dtype) -> None:
    raster = Raster.from_array(_gradient(3, 7, channels, dtype), encoding)
    destination = tmp_path / "out.TIFF"

    save_raster(raster, destination)

    written = tifffile.imread(destination)
    assert written.dtype == np.dtype(dtype)
    np.testing.assert_array_equal(written, raster.pixels)


def test_save_rejects_layouts_without_alpha(tmp_path: Path) -> None:
    raster = Raster.from_array(np.zeros((2, 2, 3), dtype=np.uint8), "RGB8")
    with pytest.raises(ValueError):
        save_raster(raster, tmp_path / "rgb.png")
    assert not (tmp_path / "rgb.png").exists()


def test_unwritable_destination_is_an_io_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("occupied")
    raster = Raster.from_array(np.zeros((2, 2, 2), dtype=np.uint8), "LA8")

    with pytest.raises(ImageIOError):
        save_raster(raster, blocker / "out.png")
