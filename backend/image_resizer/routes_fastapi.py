"""
Image Resizer API Routes

Provides endpoints for:
- Resizing upstream images (with two-tier caching)
- Warming the cache for configured sizes
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .errors import ResizerError
from .pipeline import ResizePipeline
from .warmup import WarmupController

logger = logging.getLogger(__name__)

# ============================================
# Router
# ============================================

router = APIRouter(tags=["Image Resizer"])


# ============================================
# Response Models
# ============================================

class WarmupFailure(BaseModel):
    """One path/size combination that could not be cached"""
    path: str
    size: str = Field(..., description="Size as WIDTHxHEIGHT")
    error: str

class WarmupResponse(BaseModel):
    """Response model for warmup endpoint"""
    success: bool
    total: int
    succeeded: int
    failed: List[WarmupFailure]


def get_pipeline(request: Request) -> ResizePipeline:
    return request.app.state.pipeline


def get_warmup_controller(request: Request) -> WarmupController:
    return request.app.state.warmup_controller


# ============================================
# Endpoints
# ============================================

@router.get("/resize/{size}/{path:path}")
async def resize_image(size: str, path: str, pipeline: ResizePipeline = Depends(get_pipeline)):
    """
    Resize an upstream image.

    ``size`` is WIDTHxHEIGHT (either side may be empty or 0) or a placeholder
    name; ``path`` is appended to the configured image host.

    Example:
        GET /resize/200x200/recipes/foo.jpg
    """
    try:
        result = await pipeline.handle(size, path)
    except ResizerError as e:
        logger.error(f"[Resizer] {type(e).__name__} for {size}/{path}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return Response(
        content=result.content,
        media_type=result.content_type,
        headers={"X-Cache": result.cache_status},
    )


@router.get("/warmup", response_model=WarmupResponse)
async def warmup(
    path: List[str] = Query(default=[], description="Image paths to pre-populate"),
    controller: WarmupController = Depends(get_warmup_controller),
):
    """
    Pre-populate caches for every configured warmup and placeholder size.

    Example:
        GET /warmup?path=recipes/foo.jpg&path=recipes/bar.png
    """
    report = await controller.warm(path)
    return WarmupResponse(
        success=report.success,
        total=report.total,
        succeeded=report.succeeded,
        failed=[WarmupFailure(**failure) for failure in report.failed],
    )
