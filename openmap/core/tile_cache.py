"""Disk-backed tile cache with age-based expiry."""

import hashlib
import logging
import os
import tempfile
import time
from pathlib import Path
from urllib.parse import urlparse

from openmap.core.config import MIN_RECOMMENDED_CACHE_HOURS

logger = logging.getLogger(__name__)


class TileCache:
    """Stores raw tile bytes on disk, one file per resolved tile URL.

    Freshness is decided by the file's modification time. Expired entries
    are removed when they are looked up. The cache never raises for I/O
    problems: unreadable entries count as misses and failed writes are
    logged and skipped.
    """

    def __init__(self, cache_dir: str | Path, retention_hours: float = MIN_RECOMMENDED_CACHE_HOURS):
        """
        Initialize tile cache.

        Args:
            cache_dir: Root directory for cached tiles
            retention_hours: Maximum entry age before it is treated as stale
        """
        if retention_hours < 0:
            raise ValueError(f"retention_hours cannot be negative, got {retention_hours}")

        self.cache_dir = Path(cache_dir).resolve()
        self.retention_seconds = retention_hours * 3600.0

        if retention_hours < MIN_RECOMMENDED_CACHE_HOURS:
            logger.warning(
                f"Tile cache retention of {retention_hours}h is below the recommended "
                f"{MIN_RECOMMENDED_CACHE_HOURS}h minimum of common tile usage policies"
            )
        logger.info(f"Tile cache directory: {self.cache_dir}")

    @staticmethod
    def key_for_url(url: str) -> str:
        """
        Get the cache key for a tile URL.

        The key is the URL path with separators flattened plus a short hash of
        the whole URL, so keys stay readable and distinct across providers.

        Args:
            url: Fully resolved tile URL

        Returns:
            Filename used for the cache entry
        """
        url_hash = hashlib.sha256(url.encode("utf-8")).hexdigest()[:8]
        path = urlparse(url).path.strip("/")

        stem, dot, extension = path.rpartition(".")
        if not dot or "/" in extension:
            stem, extension = path, "tile"

        flattened = stem.replace("/", "_") or "tile"
        return f"{flattened}_{url_hash}.{extension}"

    def path_for(self, key: str) -> Path:
        """Get the file path of a cache entry."""
        return self.cache_dir / key

    def _is_expired(self, path: Path) -> bool:
        age = time.time() - path.stat().st_mtime
        return age > self.retention_seconds

    def get(self, key: str) -> bytes | None:
        """
        Read a cache entry.

        Args:
            key: Cache key from key_for_url()

        Returns:
            Cached bytes, or None when missing, expired or unreadable
        """
        path = self.path_for(key)

        try:
            if not path.is_file():
                return None

            if self._is_expired(path):
                logger.debug(f"Cache entry expired: {key}")
                path.unlink(missing_ok=True)
                return None

            data = path.read_bytes()
        except OSError as e:
            logger.warning(f"Error reading cached tile {path}: {e}")
            return None

        if not data:
            logger.warning(f"Empty cached tile {path}, ignoring")
            return None

        return data

    def put(self, key: str, data: bytes) -> bool:
        """
        Write a cache entry.

        Bytes are written to a temporary file first and moved into place, so
        concurrent readers never observe a partial entry.

        Args:
            key: Cache key from key_for_url()
            data: Raw tile bytes

        Returns:
            True if the entry was written, False if the write failed
        """
        path = self.path_for(key)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=".part")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(temp_name, path)
            except BaseException:
                Path(temp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.warning(f"Error saving tile to cache {path}: {e}")
            return False

        return True

    def invalidate(self, key: str) -> None:
        """Remove a single cache entry if present."""
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Error removing cached tile {path}: {e}")

    def _entries(self) -> list[Path]:
        if not self.cache_dir.is_dir():
            return []
        return [p for p in self.cache_dir.iterdir() if p.is_file() and not p.name.startswith(".tmp_")]

    def clear(self) -> int:
        """
        Remove every cache entry.

        Returns:
            Number of entries removed
        """
        removed = 0
        for path in self._entries():
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.warning(f"Error removing cached tile {path}: {e}")

        logger.info(f"Cleared {removed} cached tiles from {self.cache_dir}")
        return removed

    def prune(self) -> int:
        """
        Remove all expired cache entries.

        Returns:
            Number of entries removed
        """
        removed = 0
        for path in self._entries():
            try:
                if self._is_expired(path):
                    path.unlink()
                    removed += 1
            except OSError as e:
                logger.warning(f"Error pruning cached tile {path}: {e}")

        logger.debug(f"Pruned {removed} expired tiles from {self.cache_dir}")
        return removed
