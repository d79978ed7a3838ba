"""Alpha recovery from a black-background and a white-background sample.

Rendering the same content over black (0, 0, 0) and white (1, 1, 1) gives,
per channel, ``black = a * c`` and ``white = a * c + (1 - a)``. Subtracting
the two yields ``a = black - white + 1`` and the unpremultiplied color follows
as ``c = black / a``. See
https://www.interact-sw.co.uk/iangblog/2007/01/30/recoveralpha
"""
from __future__ import annotations

from typing import Sequence

import numpy as np

from .types import BlendMode


def _as_samples(sample: np.ndarray | Sequence[float]) -> np.ndarray:
    array = np.asarray(sample, dtype=np.float64)
    if array.shape[-1:] != (3,):
        raise ValueError(f"Expected samples with 3 color channels, got shape {array.shape}")
    return array


def recover(
    black_sample: np.ndarray | Sequence[float],
    white_sample: np.ndarray | Sequence[float],
    blend: BlendMode = BlendMode.BLACK,
) -> np.ndarray:
    """Return unpremultiplied ``(R, G, B, A)`` for normalized RGB samples.

    Works on a single pixel or on any array of shape ``(..., 3)``; the result
    has shape ``(..., 4)`` in float64. Alpha comes from the red channel only
    and is clamped to [0, 1]. Fully transparent pixels get a color of 0.
    Colors are not clamped and may exceed 1.0 where alpha is small.
    """

    black = _as_samples(black_sample)
    white = _as_samples(white_sample)
    blend = BlendMode.parse(blend)

    alpha = np.clip(black[..., 0] - white[..., 0] + 1.0, 0.0, 1.0)

    if blend is BlendMode.WHITE:
        source = white
    elif blend is BlendMode.BLACK:
        source = black
    else:
        source = (black + white) / 2.0

    alpha_b = alpha[..., None]
    color = np.zeros(np.broadcast_shapes(source.shape, alpha_b.shape), dtype=np.float64)
    np.divide(source, alpha_b, out=color, where=alpha_b > 0.0)

    return np.concatenate([color, alpha_b], axis=-1)


def recover_pixel(
    black_sample: Sequence[float],
    white_sample: Sequence[float],
    blend: BlendMode = BlendMode.BLACK,
) -> tuple[float, float, float, float]:
    """Scalar convenience wrapper around :func:`recover`."""

    red, green, blue, alpha = recover(black_sample, white_sample, blend).tolist()
    return red, green, blue, alpha


__all__ = ["recover", "recover_pixel"]
