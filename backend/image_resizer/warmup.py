"""
Cache Warmup

Drives the resize pipeline for every (path, size) combination drawn from the
configured warmup sizes and placeholder sizes so real traffic hits the cache.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from .errors import ResizerError
from .pipeline import ResizePipeline
from .sizing import SizeSpec

logger = logging.getLogger(__name__)


@dataclass
class WarmupReport:
    """Outcome of a warmup batch."""
    total: int = 0
    succeeded: int = 0
    failed: List[Dict[str, str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


class WarmupController:
    """
    Pre-populates caches with bounded concurrency.

    Usage:
        controller = WarmupController(pipeline, concurrency=4)
        report = await controller.warm(["foo.jpg", "bar.png"])
    """

    def __init__(self, pipeline: ResizePipeline, concurrency: int = 4):
        self.pipeline = pipeline
        self.concurrency = max(1, concurrency)

    def warmup_sizes(self) -> List[SizeSpec]:
        """Configured warmup sizes followed by placeholder sizes, deduplicated."""
        config = self.pipeline.config
        sizes: List[SizeSpec] = []
        for size in list(config.warmup_sizes) + [p.size for p in config.placeholders]:
            if size not in sizes:
                sizes.append(size)
        return sizes

    async def warm(self, paths: List[str]) -> WarmupReport:
        """Resize every path to every warmup size."""
        sizes = self.warmup_sizes()
        jobs = [(path, size) for path in paths for size in sizes]
        report = WarmupReport(total=len(jobs))

        if not jobs:
            return report

        logger.info(f"[Warmup] Starting {len(jobs)} jobs ({len(paths)} paths x {len(sizes)} sizes)")
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(path: str, size: SizeSpec) -> None:
            async with semaphore:
                await self.pipeline.resize(size, path)

        results = await asyncio.gather(
            *(run(path, size) for path, size in jobs),
            return_exceptions=True,
        )

        for (path, size), result in zip(jobs, results):
            if isinstance(result, ResizerError):
                report.failed.append({"path": path, "size": str(size), "error": str(result)})
            elif isinstance(result, BaseException):
                raise result
            else:
                report.succeeded += 1

        logger.info(f"[Warmup] Batch complete: {report.succeeded}/{report.total} success")
        return report
