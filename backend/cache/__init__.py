"""
Image Cache Module
图片缓存模块

Two-tier cache for original images and resized variants:
- In-memory LRU tier bounded by entry count
- Persistent file tier, the durable source of truth
- Per-tier hit/miss statistics
"""

from .errors import CacheDecodeError, CacheError, CacheMissError, CacheStorageError
from .file_store import FileStore
from .memory_store import MemoryStore
from .models import CacheEntry, CacheStats
from .provider import CacheProvider
from .routes import router as cache_router

__all__ = [
    "CacheProvider",
    "FileStore",
    "MemoryStore",
    "CacheEntry",
    "CacheStats",
    "CacheError",
    "CacheMissError",
    "CacheDecodeError",
    "CacheStorageError",
    "cache_router",
]
