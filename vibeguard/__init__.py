"""Vibe-Guard static security scanner package."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("vibe-guard")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "1.0.0-dev"

__all__ = ["__version__"]
