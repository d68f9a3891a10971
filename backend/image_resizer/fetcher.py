"""
Image Fetcher

Retrieves source images over HTTP. The response stream is opened inside an
``async with`` block so the connection is released on every exit path,
including early error returns.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .errors import FetchError, FetchTimeoutError, UpstreamNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; ImageResizer/1.0)",
    "Accept": "image/*,*/*;q=0.8",
}


@dataclass
class FetchedImage:
    """Result of a successful upstream fetch."""
    url: str
    content: bytes
    content_type: str


class ImageFetcher:
    """
    Fetches images with a shared httpx.AsyncClient.

    Usage:
        fetcher = ImageFetcher(timeout=10.0)
        image = await fetcher.fetch("https://images.example.com/foo.jpg")
        await fetcher.close()
    """

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers=DEFAULT_HEADERS,
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()

    async def fetch(self, url: str) -> FetchedImage:
        """
        Download a source image.

        Raises:
            UpstreamNotFoundError: upstream answered with a non-200 status
            FetchTimeoutError: the request timed out
            FetchError: any other transport failure
        """
        logger.info(f"[Fetcher] Downloading image: {url[:80]}")
        try:
            async with self.http_client.stream("GET", url) as response:
                if response.status_code != 200:
                    logger.warning(f"[Fetcher] HTTP {response.status_code}: {url[:80]}")
                    raise UpstreamNotFoundError(
                        f"Upstream returned {response.status_code} for {url}"
                    )
                content = await response.aread()
                content_type = response.headers.get("content-type", "")
        except httpx.TimeoutException as e:
            logger.error(f"[Fetcher] Timeout: {url[:80]}")
            raise FetchTimeoutError(f"Timed out fetching {url}") from e
        except httpx.HTTPError as e:
            logger.error(f"[Fetcher] Fetch error: {e}")
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        content_type = content_type.split(";")[0].strip().lower()
        return FetchedImage(url=url, content=content, content_type=content_type)
