"""Command line interface for realpha."""
from __future__ import annotations

import argparse
import logging
from importlib import metadata
from pathlib import Path
from typing import Dict, Optional, Sequence

from .core import config
from .core.errors import RealphaError

LOGGER = logging.getLogger("realpha.main")

BLEND_CHOICES = ("white", "black", "mix")


def _package_version() -> str:
    try:
        return metadata.version("realpha")
    except metadata.PackageNotFoundError:
        return "0+unknown"


def _configure_logging(log_path: Optional[Path], verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter(config.LOG_FORMAT, config.LOG_DATE_FORMAT)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8", delay=True)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    logging.basicConfig(level=level, handlers=handlers, force=True)


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid thread count: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"Thread count cannot be negative: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="realpha",
        description="Derives an image with alpha channel from two alpha-less images",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")
    parser.add_argument(
        "-b",
        "--blend",
        choices=BLEND_CHOICES,
        default=config.DEFAULT_BLEND,
        help="Which image to take the color values from (mix is experimental)",
    )
    parser.add_argument(
        "--threads",
        type=_non_negative_int,
        default=config.DEFAULT_THREADS,
        help="Number of worker threads (0: one per CPU, 1: no thread pool)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debugging details")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    parser.add_argument("black", type=Path, help="An image with a solid black background")
    parser.add_argument("white", type=Path, help="An image with a solid white background")
    parser.add_argument("out", type=Path, help="The output image")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def build_runtime_config(args: argparse.Namespace) -> Dict[str, object]:
    overrides: Dict[str, object] = {
        "BLEND": args.blend,
        "THREADS": args.threads,
        "LOG_FILE": args.log_file.resolve() if args.log_file else None,
        "VERBOSE": args.verbose,
    }
    return config.build_config(overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    cfg = build_runtime_config(args)
    _configure_logging(cfg["LOG_FILE"], bool(cfg["VERBOSE"]))  # type: ignore[arg-type]
    LOGGER.debug("CLI flags resolved -> blend=%s, threads=%s", cfg["BLEND"], cfg["THREADS"])

    from .modules.matting.pipeline import run_realpha

    try:
        run_realpha(args.black, args.white, args.out, blend=str(cfg["BLEND"]), threads=int(cfg["THREADS"]))
    except RealphaError as exc:
        LOGGER.error("%s", exc)
        raise SystemExit(1) from exc
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
