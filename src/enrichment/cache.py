"""On-disk cache for data collected from external services across builds."""

from __future__ import annotations

import datetime as dt
import os
import sys
from pathlib import Path
from typing import Optional, Tuple

from .config import CACHE_SUBDIR
from .errors import CacheSetupError


def platform_cache_dir() -> Optional[Path]:
    """Return the user's cache directory for this platform, if discoverable."""
    if sys.platform == "win32":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else None

    xdg = os.getenv("XDG_CACHE_HOME")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg)

    try:
        home = Path.home()
    except RuntimeError:
        return None
    if sys.platform == "darwin":
        return home / "Library" / "Caches"
    return home / ".cache"


class Cache:
    """Named byte blobs stored under `<cache root>/landscape/`.

    Freshness is left to callers: `read` hands back the file's modification
    time alongside the content and never decides whether it is too old.
    """

    def __init__(self, cache_dir: Optional[str | Path] = None) -> None:
        root = Path(cache_dir).expanduser() if cache_dir else platform_cache_dir()
        if root is None:
            raise CacheSetupError(
                "error setting up cache: no cache directory provided and "
                "user's cache directory could not be found"
            )
        self.cache_dir = root / CACHE_SUBDIR
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheSetupError(f"error creating cache directory {self.cache_dir}: {exc}") from exc

    def _path(self, key: str) -> Path:
        return self.cache_dir / key

    def read(self, key: str) -> Optional[Tuple[Optional[dt.datetime], bytes]]:
        """Return `(modified_at, data)` for `key`, or None if it was never written."""
        path = self._path(key)
        if not path.exists():
            return None
        try:
            modified_at = dt.datetime.fromtimestamp(path.stat().st_mtime, dt.timezone.utc)
        except OSError:
            modified_at = None
        return modified_at, path.read_bytes()

    def write(self, key: str, data: bytes) -> None:
        """Replace the whole content stored under `key`."""
        self._path(key).write_bytes(data)


__all__ = ["Cache", "platform_cache_dir"]
