"""Cache error hierarchy."""


class CacheError(Exception):
    """Base class for cache failures."""


class CacheMissError(CacheError, KeyError):
    """The key is absent from both tiers."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Cache key not found: {self.key}"


class CacheDecodeError(CacheError):
    """Stored bytes could not be materialized into a cache entry."""


class CacheStorageError(CacheError):
    """Reading, writing or deleting a cache file failed."""
