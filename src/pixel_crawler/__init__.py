"""
Pixel Crawler package root.

Pure simulation core for a real-time, top-down dungeon crawler: floor
generation, item spawning, continuous collision, economy/leveling and
versioned local persistence. Rendering and input mapping live outside.
"""

from importlib.metadata import version, PackageNotFoundError

__all__ = ["__version__"]

try:
    __version__ = version("pixel-crawler")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"
