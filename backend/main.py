"""
Image Resizer Service

FastAPI application factory. Run with:

    uvicorn main:create_app --factory --port 8080

or ``python main.py`` to use the port from the configuration file.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from cache import CacheProvider, FileStore, MemoryStore, cache_router
from image_resizer import ImageFetcher, ResizePipeline, WarmupController, load_config, router as resizer_router
from image_resizer.config import (
    CACHE_PATH,
    FETCH_TIMEOUT_SECONDS,
    LOG_LEVEL,
    LRU_MAX_ENTRIES,
    WARMUP_CONCURRENCY,
    Configuration,
)

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[Configuration] = None,
    cache_provider: Optional[CacheProvider] = None,
    fetcher: Optional[ImageFetcher] = None,
) -> FastAPI:
    """
    Build the application.

    The cache provider and fetcher are created once here and shared by every
    request through ``app.state``.
    """
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if config is None:
        config = load_config()
    if cache_provider is None:
        cache_provider = CacheProvider(
            FileStore(CACHE_PATH),
            MemoryStore(max_entries=LRU_MAX_ENTRIES),
        )
    if fetcher is None:
        fetcher = ImageFetcher(timeout=FETCH_TIMEOUT_SECONDS)
    pipeline = ResizePipeline(config, cache_provider, fetcher)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"[Resizer] Serving images from {config.image_host}")
        yield
        await fetcher.close()

    app = FastAPI(title="Image Resizer", description="Resizing image proxy", lifespan=lifespan)
    app.state.config = config
    app.state.cache_provider = cache_provider
    app.state.pipeline = pipeline
    app.state.warmup_controller = WarmupController(pipeline, concurrency=WARMUP_CONCURRENCY)

    app.include_router(resizer_router)
    app.include_router(cache_router)
    return app


def main() -> None:
    import uvicorn

    config = load_config()
    uvicorn.run(create_app(config), host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
