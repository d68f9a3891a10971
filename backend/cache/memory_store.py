"""
Memory Store Implementation
内存存储实现

Thread-safe in-memory tier of the image cache.

Features:
- Thread-safe operations with Lock
- LRU eviction when max entries exceeded
- Side-effect-free membership check
"""

from collections import OrderedDict
from threading import Lock
from typing import Optional

from .models import CacheEntry


class MemoryStore:
    """
    Bounded LRU store
    有界 LRU 存储

    Evicting an entry here never touches the file tier; memory is only an
    accelerator in front of it.
    """

    def __init__(self, max_entries: int = 256):
        """
        Initialize memory store

        Args:
            max_entries: Maximum number of entries to keep (at least 1)
        """
        self._store: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = Lock()
        self._max_entries = max(1, int(max_entries))

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Get entry and mark it most recently used
        获取条目并标记为最近使用

        Returns:
            CacheEntry if present, None otherwise
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is not None:
                self._store.move_to_end(key)
            return entry

    def put(self, key: str, entry: CacheEntry) -> None:
        """
        Store entry, evicting the least recently used ones over capacity
        存储条目
        """
        with self._lock:
            self._store[key] = entry
            self._store.move_to_end(key)
            while len(self._store) > self._max_entries:
                self._store.popitem(last=False)

    def contains(self, key: str) -> bool:
        """Membership check that does not reorder entries."""
        with self._lock:
            return key in self._store

    def delete(self, key: str) -> bool:
        """
        Delete entry
        删除条目

        Returns:
            True if deleted, False if not found
        """
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> int:
        """
        Clear all entries
        清空所有条目

        Returns:
            Number of entries deleted
        """
        with self._lock:
            count = len(self._store)
            self._store.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
