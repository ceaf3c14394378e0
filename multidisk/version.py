"""Version utilities for multidisk."""

from __future__ import annotations

from importlib import metadata

__version__ = "1.4.0"


def load_version() -> str:
    try:
        return metadata.version("multidisk")
    except metadata.PackageNotFoundError:
        return __version__
