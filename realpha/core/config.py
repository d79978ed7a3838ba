"""Configuration module for the realpha difference matting tool."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional


# Every intermediate raster is RGBA with this many levels per channel.
HIGH_PRECISION_MAX = 65535

DEFAULT_BLEND = "black"
DEFAULT_THREADS = 0

TIFF_SUFFIXES = (".tif", ".tiff")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class RealphaConfig:
    """Runtime configuration for a single realpha invocation."""

    blend: str = DEFAULT_BLEND
    threads: int = DEFAULT_THREADS
    log_file: Optional[Path] = None
    verbose: bool = False

    def as_dict(self) -> Dict[str, object]:
        """Return the configuration as a plain dictionary."""

        return {
            "BLEND": self.blend,
            "THREADS": self.threads,
            "LOG_FILE": self.log_file,
            "VERBOSE": self.verbose,
        }


def build_config(overrides: Optional[Mapping[str, object]] = None) -> Dict[str, object]:
    """Create a configuration dictionary with optional overrides."""

    config = RealphaConfig()
    if overrides:
        mutable: MutableMapping[str, object] = config.as_dict()
        for key, value in overrides.items():
            if key in mutable:
                mutable[key] = value
        return dict(mutable)
    return config.as_dict()
