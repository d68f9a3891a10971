"""
File Store

Persistent tier of the image cache. One file per cache key:

cache_dir/
└── images/
    ├── original_3f2a...e1.img
    ├── 200_200_3f2a...e1.img
    └── ...

Each file starts with the content type on its own line followed by the raw
payload. Files only ever appear through an atomic rename, so readers see
either a complete entry or nothing.

All methods block on disk I/O; async callers run them in a worker thread.
"""

import hashlib
import logging
import os
import re
import tempfile
from pathlib import Path

from .errors import CacheDecodeError
from .models import CacheEntry

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".img"
_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]{1,200}$")


class FileStore:
    """Durable, unbounded key/value store on the local filesystem."""

    def __init__(self, cache_dir: str = "./image_cache"):
        self.cache_dir = Path(cache_dir).expanduser()
        self.images_dir = self.cache_dir / "images"
        self._init_cache_dir()

    def _init_cache_dir(self) -> None:
        """Create cache directories if they don't exist."""
        self.images_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"[Cache] File tier directory: {self.images_dir}")

    def _entry_path(self, key: str) -> Path:
        """Map a cache key to its file, hashing keys that are not filename-safe."""
        if _SAFE_KEY.match(key) and not key.startswith("."):
            name = key
        else:
            name = "h_" + hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.images_dir / f"{name}{ENTRY_SUFFIX}"

    def exists(self, key: str) -> bool:
        return self._entry_path(key).is_file()

    def read(self, key: str) -> CacheEntry:
        """
        Read an entry.

        Raises:
            FileNotFoundError: no file for this key
            CacheDecodeError: file exists but is not a valid entry
            OSError: any other read failure
        """
        path = self._entry_path(key)
        with open(path, "rb") as f:
            raw = f.read()

        header, sep, data = raw.partition(b"\n")
        try:
            content_type = header.decode("ascii").strip()
        except UnicodeDecodeError:
            content_type = ""
        if not sep or "/" not in content_type:
            raise CacheDecodeError(f"Malformed cache file for key {key!r}: {path}")

        return CacheEntry(data=data, content_type=content_type)

    def write(self, key: str, entry: CacheEntry) -> None:
        """
        Write an entry atomically (temp file + rename).

        Raises:
            OSError: the entry could not be persisted; any previous value
                for the key is left untouched
        """
        path = self._entry_path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.images_dir, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(entry.content_type.encode("ascii") + b"\n")
                f.write(entry.data)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug(f"[Cache] Persisted {key} ({entry.size_bytes} bytes)")

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns False if it did not exist."""
        try:
            self._entry_path(key).unlink()
            return True
        except FileNotFoundError:
            return False

    def clear(self) -> int:
        """
        Remove every entry.

        Returns:
            Number of entries removed.
        """
        count = 0
        for path in self.images_dir.glob(f"*{ENTRY_SUFFIX}"):
            try:
                path.unlink()
                count += 1
            except FileNotFoundError:
                continue
        return count

    def used_bytes(self) -> int:
        """Total size of every file under the cache directory."""
        total = 0
        for dirpath, _dirnames, filenames in os.walk(self.cache_dir):
            for name in filenames:
                try:
                    total += os.path.getsize(os.path.join(dirpath, name))
                except FileNotFoundError:
                    continue
        return total
