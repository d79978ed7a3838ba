"""Primary orchestration for difference matting."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from ...core.utils_image import load_raster, save_raster
from ...core.utils_parallel import SequentialStrategy, ThreadedStrategy, resolve_strategy
from .combiner import combine
from .format_classifier import validate_and_plan
from .materializer import materialize
from .types import BlendMode, OutputPlan, Raster

LOGGER = logging.getLogger("realpha.matting.pipeline")


@dataclass
class RealphaResult:
    """Summary of a completed run."""

    output_path: Path
    plan: OutputPlan
    dimensions: Tuple[int, int]
    elapsed: float


def process_rasters(
    black: Raster,
    white: Raster,
    *,
    blend: BlendMode | str = BlendMode.BLACK,
    strategy: Optional[SequentialStrategy | ThreadedStrategy] = None,
) -> Tuple[OutputPlan, Raster]:
    """Validate, combine and materialize two decoded rasters."""

    plan = validate_and_plan(black, white)
    high_precision = combine(black, white, BlendMode.parse(blend), strategy=strategy)
    return plan, materialize(high_precision, plan)


def run_realpha(
    black_path: Path | str,
    white_path: Path | str,
    out_path: Path | str,
    *,
    blend: BlendMode | str = BlendMode.BLACK,
    threads: Optional[int] = None,
) -> RealphaResult:
    """Derive an image with alpha from a black and a white background render.

    Nothing is written to *out_path* unless every step succeeded.
    """

    blend = BlendMode.parse(blend)
    strategy = resolve_strategy(threads)
    out_path = Path(out_path)

    LOGGER.info("Loading images…")
    start = time.perf_counter()
    black = load_raster(black_path)
    white = load_raster(white_path)

    plan = validate_and_plan(black, white)
    format_name = "RGB" if plan.is_color else "grayscale"
    LOGGER.info(
        "Generating %s output at %s×%s with %s bits per channel…",
        format_name,
        black.width,
        black.height,
        plan.output_bit_depth,
    )

    high_precision = combine(black, white, blend, strategy=strategy)
    final = materialize(high_precision, plan)
    saved = save_raster(final, out_path)

    elapsed = time.perf_counter() - start
    LOGGER.info("%s saved in %.2fs!", saved.name, elapsed)
    return RealphaResult(output_path=saved, plan=plan, dimensions=black.dimensions, elapsed=elapsed)


__all__ = ["RealphaResult", "process_rasters", "run_realpha"]
