from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

from platformdirs import PlatformDirs

from ..errors import PersistenceError

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class PersistencePort(Protocol):
    """Keyed blob storage the engine persists through."""

    def read(self, key: str) -> Optional[str]: ...
    def write(self, key: str, data: str) -> None: ...
    def delete(self, key: str) -> None: ...


def default_data_dir(app_name: str = "PixelCrawler") -> Path:
    d = PlatformDirs(appname=app_name, appauthor=False)
    return Path(d.user_data_dir)


def ensure_dir(path: Path, *, mode: int = 0o700) -> None:
    """Ensure directory exists with private permissions."""
    path.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(path, mode)
    except OSError:  # Platform may not support
        logger.debug("Could not chmod directory: %s", path, exc_info=True)


def atomic_write_text(path: Path, text: str) -> None:
    """Write through a temporary file and ``os.replace`` so readers never see a partial file."""
    ensure_dir(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=path.name, dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)


class FileStorage:
    """One JSON file per key under a data directory."""

    def __init__(self, base_dir: Optional[Path] = None, *, app_name: str = "PixelCrawler") -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else default_data_dir(app_name)

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_dir / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Failed to read {path}") from exc

    def write(self, key: str, data: str) -> None:
        path = self.path_for(key)
        try:
            atomic_write_text(path, data)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {path}") from exc
        logger.debug("Wrote %d bytes to %s", len(data), path)

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(f"Failed to delete {path}") from exc


class MemoryStorage:
    """In-process storage; several stores sharing one instance behave like two tabs."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self.writes = 0

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, data: str) -> None:
        self._data[key] = data
        self.writes += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data
