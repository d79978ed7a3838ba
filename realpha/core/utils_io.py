"""I/O helpers for writing realpha output files."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

LOGGER = logging.getLogger("realpha.io")


def ensure_dir(path: Path) -> Path:
    """Ensure that *path* exists and return it."""

    path.mkdir(parents=True, exist_ok=True)
    return path


def temporary_path_for(destination: Path) -> Path:
    """Return the sibling path used while *destination* is being written.

    The suffix is kept so encoders that look at it still pick the same format.
    """

    return destination.with_name(f".{destination.stem}.tmp{destination.suffix}")


def atomic_write(path: Path | str, writer: Callable[[Path], None]) -> Path:
    """Call ``writer(temp_path)`` and move the result over *path*.

    The destination is only replaced once *writer* returned successfully; the
    temporary file is removed when it raises.
    """

    destination = Path(path)
    ensure_dir(destination.parent)
    temp_path = temporary_path_for(destination)
    try:
        writer(temp_path)
        os.replace(temp_path, destination)
    except BaseException:
        try:
            os.remove(temp_path)
        except FileNotFoundError:
            pass
        raise
    LOGGER.debug("Wrote %s", destination)
    return destination
