"""Canonical on-disk locations for ComicLock.

Every path the application writes to is resolved here so tests can redirect
the whole tree by patching ``_cache_root`` / ``_pictures_root``. Resolved
directories are cached at module level; ``reset_module_cache()`` clears them.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict

from PySide6.QtCore import QStandardPaths

_APP_DIR_NAME = "comiclock"
_DEFAULT_IMAGE_SUBDIR = "xkcd"

_dir_cache: Dict[str, Path] = {}


def _cache_root() -> Path:
    location = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.GenericCacheLocation
    )
    return Path(location) if location else Path.home() / ".cache"


def _pictures_root() -> Path:
    location = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.PicturesLocation
    )
    return Path(location) if location else Path.home() / "Pictures"


def _ensure(key: str, path: Path) -> Path:
    cached = _dir_cache.get(key)
    if cached is not None:
        return cached
    path.mkdir(parents=True, exist_ok=True)
    _dir_cache[key] = path
    return path


def get_cache_dir() -> Path:
    """Application cache directory (created on first access)."""
    return _ensure("cache", _cache_root() / _APP_DIR_NAME)


def get_log_dir() -> Path:
    """Directory holding the rotating log files."""
    return _ensure("logs", get_cache_dir() / "logs")


def get_work_root() -> Path:
    """Parent of the per-run private working directories."""
    return _ensure("work", get_cache_dir() / "work")


def get_default_output_path() -> Path:
    """Where the final composite is placed unless configured otherwise."""
    return get_cache_dir() / "lockscreen.png"


def get_default_image_dir() -> Path:
    """Default random-selection pool (``~/Pictures/xkcd``).

    Not created here: a missing pool is a configuration error the caller
    reports.
    """
    return _pictures_root() / _DEFAULT_IMAGE_SUBDIR


def reset_module_cache() -> None:
    _dir_cache.clear()


__all__ = [
    "get_cache_dir",
    "get_log_dir",
    "get_work_root",
    "get_default_output_path",
    "get_default_image_dir",
    "reset_module_cache",
]
