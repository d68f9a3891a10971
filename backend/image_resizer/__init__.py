"""
Image Resizer Module

Resizes upstream images on request and serves them from a two-tier cache.

Features:
- Aspect-ratio preserving, nearest-neighbour resize
- Original and resized variants cached separately
- Host whitelist and size limits
- Batch cache warmup
"""

from .config import Configuration, load_config
from .fetcher import ImageFetcher
from .pipeline import ResizePipeline, ResizeResult
from .routes_fastapi import router
from .warmup import WarmupController

__all__ = [
    "router",
    "Configuration",
    "load_config",
    "ImageFetcher",
    "ResizePipeline",
    "ResizeResult",
    "WarmupController",
]
