"""
Cache Data Models

Value and statistics types shared by the memory and file tiers.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """
    A cached artifact.

    Originals hold the fetched source bytes with the upstream content type,
    resized variants hold the encoded output with its output content type.
    """
    data: bytes
    content_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass
class CacheStats:
    """Per-tier hit/miss counters, process-wide and monotonic."""
    file_cache_hits: int = 0
    file_cache_misses: int = 0
    lru_cache_hits: int = 0
    lru_cache_misses: int = 0
