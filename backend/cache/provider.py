"""
Two-tier Cache Provider

Composes a bounded in-memory LRU tier with a persistent file tier behind a
single key/value API. The file tier is the source of truth; the memory tier
is populated on write and promoted into on file hits.

Concurrency:
- Memory operations and counters are guarded by short-lived thread locks.
- File I/O runs in worker threads under a striped per-key lock; the file
  operation and the matching memory update happen under the same lock, so a
  delete cannot be undone by an in-flight read or write of the same key.
- ``delete_all`` bumps a generation counter; writes and promotions that started
  before or during the purge do not repopulate the memory tier afterward.
"""

import asyncio
import logging
from dataclasses import replace
from threading import Lock
from typing import Tuple

from .errors import CacheDecodeError, CacheMissError, CacheStorageError
from .file_store import FileStore
from .memory_store import MemoryStore
from .models import CacheEntry, CacheStats

logger = logging.getLogger(__name__)


class CacheProvider:
    """
    Content-addressed store shared by every request handler.

    Usage:
        provider = CacheProvider(FileStore("/var/cache/resizer"), MemoryStore(512))
        await provider.set("original_abc", CacheEntry(data, "image/jpeg"))
        entry = await provider.get("original_abc")
    """

    def __init__(self, file_store: FileStore, memory_store: MemoryStore, lock_stripes: int = 64):
        self.file_store = file_store
        self.memory_store = memory_store
        self._stats = CacheStats()
        self._stats_lock = Lock()
        self._generation = 0
        self._generation_lock = Lock()
        self._key_locks = [Lock() for _ in range(max(1, lock_stripes))]

    def _count(self, field: str) -> None:
        with self._stats_lock:
            setattr(self._stats, field, getattr(self._stats, field) + 1)

    def _key_lock(self, key: str) -> Lock:
        return self._key_locks[hash(key) % len(self._key_locks)]

    def _current_generation(self) -> int:
        with self._generation_lock:
            return self._generation

    def _promote(self, key: str, entry: CacheEntry, generation: int) -> None:
        """Insert into memory unless a purge happened since ``generation``."""
        with self._generation_lock:
            if generation == self._generation:
                self.memory_store.put(key, entry)

    # Worker-thread halves of get/set/delete. Each holds the key's lock across
    # the file operation and the matching memory update, so operations on one
    # key apply to both tiers in the same order.

    def _read_through(self, key: str) -> CacheEntry:
        with self._key_lock(key):
            generation = self._current_generation()
            entry = self.file_store.read(key)
            self._promote(key, entry, generation)
            return entry

    def _write_through(self, key: str, entry: CacheEntry) -> None:
        with self._key_lock(key):
            generation = self._current_generation()
            self.file_store.write(key, entry)
            self._promote(key, entry, generation)

    def _delete_through(self, key: str) -> None:
        with self._key_lock(key):
            self.memory_store.delete(key)
            self.file_store.delete(key)

    async def contains(self, key: str) -> bool:
        """True if either tier holds the key. Touches neither ordering nor counters."""
        if self.memory_store.contains(key):
            return True
        return await asyncio.to_thread(self.file_store.exists, key)

    async def get(self, key: str) -> CacheEntry:
        """
        Look up a key, memory tier first.

        Raises:
            CacheMissError: absent from both tiers
            CacheDecodeError: the stored file is not a valid entry
            CacheStorageError: the file tier could not be read
        """
        entry = self.memory_store.get(key)
        if entry is not None:
            self._count("lru_cache_hits")
            return entry
        self._count("lru_cache_misses")

        try:
            entry = await asyncio.to_thread(self._read_through, key)
        except FileNotFoundError:
            self._count("file_cache_misses")
            raise CacheMissError(key) from None
        except CacheDecodeError:
            self._count("file_cache_hits")
            raise
        except OSError as e:
            raise CacheStorageError(f"Failed to read cache entry {key}: {e}") from e

        self._count("file_cache_hits")
        return entry

    async def set(self, key: str, entry: CacheEntry) -> None:
        """
        Store a value in both tiers.

        The file write happens first; if it fails the memory tier is left as
        it was and CacheStorageError is raised.
        """
        try:
            await asyncio.to_thread(self._write_through, key, entry)
        except OSError as e:
            logger.error(f"[Cache] Failed to persist {key}: {e}")
            raise CacheStorageError(f"Failed to write cache entry {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Remove a key from both tiers. Deleting an absent key is not an error."""
        try:
            await asyncio.to_thread(self._delete_through, key)
        except OSError as e:
            raise CacheStorageError(f"Failed to delete cache entry {key}: {e}") from e

    async def delete_all(self) -> None:
        """
        Clear both tiers.

        The generation is bumped before and after the file sweep so reads
        that overlap it cannot promote a purged file back into memory.
        """
        with self._generation_lock:
            self._generation += 1
            removed_memory = self.memory_store.clear()
        try:
            removed_files = await asyncio.to_thread(self.file_store.clear)
        except OSError as e:
            raise CacheStorageError(f"Failed to purge cache: {e}") from e
        finally:
            with self._generation_lock:
                self._generation += 1
                removed_memory += self.memory_store.clear()
        logger.info(f"[Cache] Purged {removed_memory} memory and {removed_files} file entries")

    def get_stats(self) -> Tuple[CacheStats, int]:
        """Snapshot of the counters and the current memory entry count."""
        with self._stats_lock:
            stats = replace(self._stats)
        return stats, len(self.memory_store)
