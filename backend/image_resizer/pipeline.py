"""
Resize Pipeline

Orchestrates one resize request:

    validate -> resized-variant lookup -> original lookup -> fetch on miss
             -> decode -> resize -> encode -> cache population -> respond

The pipeline is the only caller of the cache provider and the fetcher.
Concurrent requests for the same uncached key may each do the full work;
the resulting cache writes are identical, so the last writer wins.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Union

from cache import CacheDecodeError, CacheEntry, CacheMissError, CacheProvider, CacheStorageError

from .config import Configuration
from .errors import DecodeError, StorageError, UnsupportedContentTypeError
from .fetcher import ImageFetcher
from .imaging import render, resolve_encoding
from .sizing import SizeSpec, extract_id_from_url, original_key, parse_size, resized_key
from .validator import Validator

logger = logging.getLogger(__name__)

CACHE_HIT = "HIT"
CACHE_ORIGINAL = "ORIGINAL"
CACHE_MISS = "MISS"


@dataclass
class ResizeResult:
    """Encoded image ready to be sent to the client."""
    content: bytes
    content_type: str
    cache_status: str
    elapsed: float


@dataclass(frozen=True)
class OriginalHit:
    entry: CacheEntry


@dataclass(frozen=True)
class OriginalMiss:
    pass


OriginalLookup = Union[OriginalHit, OriginalMiss]


class ResizePipeline:
    """
    Resize requests against a shared cache provider.

    Usage:
        pipeline = ResizePipeline(config, cache_provider, fetcher)
        result = await pipeline.handle("200x200", "foo.jpg")
    """

    def __init__(self, config: Configuration, cache_provider: CacheProvider, fetcher: ImageFetcher):
        self.config = config
        self.cache = cache_provider
        self.fetcher = fetcher
        self.validator = Validator(config)

    def image_url(self, path: str) -> str:
        return f"{self.config.image_host}{path}"

    async def handle(self, size_descriptor: str, path: str) -> ResizeResult:
        """Parse the size segment of the URL and run the pipeline."""
        size = parse_size(size_descriptor, self.config.placeholders)
        return await self.resize(size, path)

    async def resize(self, size: SizeSpec, path: str) -> ResizeResult:
        """
        Produce the resized image for ``path``.

        Raises:
            ResizerError subclasses; see errors.py for the full set.
        """
        start = time.perf_counter()

        self.validator.check_request_new_size(size)
        image_url = self.image_url(path)
        self.validator.check_url(image_url)

        image_id = extract_id_from_url(image_url)
        key = resized_key(size, image_id)
        source_key = original_key(image_id)

        # Fast path: resized variant already cached
        if self.config.cache_thumbnails:
            cached = await self._cached_variant(key)
            if cached is not None:
                elapsed = time.perf_counter() - start
                logger.info(f"[Resizer] Cache hit {key} delivered in {elapsed:f} s")
                return ResizeResult(cached.data, cached.content_type, CACHE_HIT, elapsed)

        lookup = await self._lookup_original(source_key, key)

        if isinstance(lookup, OriginalHit):
            source = lookup.entry
        else:
            fetched = await self.fetcher.fetch(image_url)
            source = CacheEntry(data=fetched.content, content_type=fetched.content_type)

        try:
            encoding = resolve_encoding(source.content_type)
        except UnsupportedContentTypeError:
            logger.warning(f"[Resizer] Cannot handle content type '{source.content_type}' for {image_url}")
            raise

        try:
            encoded, final_size = await asyncio.to_thread(
                render, source.data, size, encoding, self.config.size_limits
            )
        except DecodeError:
            logger.error(f"[Resizer] Error decoding {image_url}")
            await self._invalidate(source_key, key)
            raise

        if self.config.cache_thumbnails:
            await self._store(key, CacheEntry(data=encoded, content_type=encoding.content_type))

        if isinstance(lookup, OriginalMiss):
            await self._store(source_key, source)

        elapsed = time.perf_counter() - start
        logger.info(
            f"[Resizer] Successfully handled content type '{source.content_type}' "
            f"({final_size}) delivered in {elapsed:f} s"
        )
        status = CACHE_ORIGINAL if isinstance(lookup, OriginalHit) else CACHE_MISS
        return ResizeResult(encoded, encoding.content_type, status, elapsed)

    async def _cached_variant(self, key: str):
        """Cached resized variant, or None. A corrupt entry is dropped and treated as a miss."""
        if not await self.cache.contains(key):
            return None
        try:
            return await self.cache.get(key)
        except CacheMissError:
            # Removed between the check and the read
            return None
        except CacheDecodeError as e:
            logger.warning(f"[Resizer] Dropping corrupt cached variant {key}: {e}")
            await self._delete_quietly(key)
            return None
        except CacheStorageError as e:
            raise StorageError(str(e)) from e

    async def _lookup_original(self, source_key: str, key: str) -> OriginalLookup:
        if not await self.cache.contains(source_key):
            return OriginalMiss()
        try:
            return OriginalHit(await self.cache.get(source_key))
        except CacheMissError:
            return OriginalMiss()
        except CacheDecodeError as e:
            logger.error(f"[Resizer] Corrupt cached original {source_key}: {e}")
            await self._invalidate(source_key, key)
            raise DecodeError(str(e)) from e
        except CacheStorageError as e:
            raise StorageError(str(e)) from e

    async def _store(self, key: str, entry: CacheEntry) -> None:
        try:
            await self.cache.set(key, entry)
        except CacheStorageError as e:
            raise StorageError(str(e)) from e

    async def _invalidate(self, source_key: str, key: str) -> None:
        """Drop both keys so a poisoned entry cannot wedge later requests."""
        await self._delete_quietly(source_key)
        await self._delete_quietly(key)

    async def _delete_quietly(self, key: str) -> None:
        try:
            await self.cache.delete(key)
        except CacheStorageError as e:
            logger.error(f"[Resizer] Failed to invalidate {key}: {e}")
