"""
Cache API Routes
缓存 API 路由

Provides HTTP endpoints for cache operations:
- GET /health-check  - Service status, per-tier hit/miss counters, disk usage
- GET /purge         - Drop every cached original and resized variant
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
from typing import Tuple

from .errors import CacheStorageError
from .provider import CacheProvider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cache"])

BYTES_PER_MB = 1048576


# ============================================
# Response Models
# ============================================

class FileCacheCounters(BaseModel):
    """Hit/miss counters of the file tier"""
    hits: int
    misses: int

class LruCacheCounters(BaseModel):
    """Hit/miss counters and entry count of the memory tier"""
    hits: int
    misses: int
    size: int

class FileCacheBlock(BaseModel):
    file_cache: FileCacheCounters

class LruCacheBlock(BaseModel):
    lru_cache: LruCacheCounters

class HealthCheckResponse(BaseModel):
    """Response model for health-check endpoint"""
    status: str = Field("ok", description="Always 'ok' while the service answers")
    cache: Tuple[FileCacheBlock, LruCacheBlock]
    used_space: str = Field(..., description="Cache directory size, e.g. '0.184326 Mb'")


def get_cache_provider(request: Request) -> CacheProvider:
    """Dependency returning the provider created at startup."""
    return request.app.state.cache_provider


async def _used_space_mb(provider: CacheProvider) -> float:
    """On-disk size of the cache directory; 0 when it cannot be measured."""
    try:
        used = await asyncio.to_thread(provider.file_store.used_bytes)
    except OSError as e:
        logger.warning(f"[Cache] Could not measure cache directory: {e}")
        return 0.0
    return used / BYTES_PER_MB if used > 0 else 0.0


# ============================================
# API Endpoints
# ============================================

@router.get("/health-check", response_model=HealthCheckResponse)
async def health_check(provider: CacheProvider = Depends(get_cache_provider)):
    """
    Health check with cache statistics
    健康检查

    Example response:
        {"status": "ok",
         "cache": [{"file_cache": {"hits": 3, "misses": 1}},
                   {"lru_cache": {"hits": 7, "misses": 4, "size": 2}}],
         "used_space": "0.184326 Mb"}
    """
    stats, lru_size = provider.get_stats()
    used_space = await _used_space_mb(provider)

    return HealthCheckResponse(
        cache=(
            FileCacheBlock(file_cache=FileCacheCounters(
                hits=stats.file_cache_hits,
                misses=stats.file_cache_misses,
            )),
            LruCacheBlock(lru_cache=LruCacheCounters(
                hits=stats.lru_cache_hits,
                misses=stats.lru_cache_misses,
                size=lru_size,
            )),
        ),
        used_space=f"{used_space:f} Mb",
    )


@router.get("/purge")
async def purge_cache(provider: CacheProvider = Depends(get_cache_provider)):
    """
    Clear all cache entries
    清空所有缓存

    Use with caution - every original and resized variant is refetched or
    recomputed afterward.
    """
    try:
        await provider.delete_all()
    except CacheStorageError as e:
        logger.error(f"[Cache] Purge failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return PlainTextResponse("OK")
