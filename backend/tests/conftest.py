"""
Image Resizer test configuration

Fixtures build every collaborator against a temporary cache directory and a
fake upstream served through httpx.MockTransport, so no test touches the
network.

Key fixtures:
- cache_provider: two-tier cache rooted in tmp_path
- upstream: fake image host; register images and inspect fetch counts
- pipeline: ResizePipeline wired to both
"""

import sys
from io import BytesIO
from pathlib import Path

import httpx
import pytest
from PIL import Image

# Add backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from cache import CacheProvider, FileStore, MemoryStore
from image_resizer.config import Configuration, Placeholder
from image_resizer.fetcher import ImageFetcher
from image_resizer.pipeline import ResizePipeline
from image_resizer.sizing import SizeSpec

IMAGE_HOST = "https://images.example.com/"


# ============================================
# Image helpers
# ============================================

def make_image_bytes(width: int, height: int, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
    color = (200, 30, 30, 255)[:len(mode)] if mode in ("RGB", "RGBA") else 128
    img = Image.new(mode, (width, height), color)
    output = BytesIO()
    img.save(output, format=fmt)
    return output.getvalue()


def image_size(data: bytes):
    with Image.open(BytesIO(data)) as img:
        return img.size, img.format


class FakeUpstream:
    """
    Image host stand-in.

    Usage:
        upstream.add("foo.jpg", jpeg_bytes, "image/jpeg")
        upstream.calls["foo.jpg"]  # number of fetches
    """

    def __init__(self):
        self.images = {}
        self.calls = {}
        self.fail_with = None

    def add(self, path: str, body: bytes, content_type: str = "image/jpeg", status: int = 200):
        self.images[path] = (status, content_type, body)

    def total_calls(self) -> int:
        return sum(self.calls.values())

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.lstrip("/")
        self.calls[path] = self.calls.get(path, 0) + 1
        if self.fail_with is not None:
            raise self.fail_with
        if path not in self.images:
            return httpx.Response(404, content=b"not found")
        status, content_type, body = self.images[path]
        return httpx.Response(status, content=body, headers={"Content-Type": content_type})


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def jpeg_bytes():
    """1000x500 JPEG (landscape, 2:1)."""
    return make_image_bytes(1000, 500, "JPEG")


@pytest.fixture
def png_bytes():
    """400x800 PNG with alpha (portrait, 1:2)."""
    return make_image_bytes(400, 800, "PNG", mode="RGBA")


@pytest.fixture
def config():
    return Configuration(
        image_host=IMAGE_HOST,
        host_white_list=["images.example.com"],
        size_limits=SizeSpec(width=1000, height=1000),
        placeholders=[Placeholder(name="thumb", size=SizeSpec(width=50, height=50))],
        warmup_sizes=[SizeSpec(width=200, height=200), SizeSpec(width=100, height=0)],
        cache_thumbnails=True,
    )


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def cache_provider(cache_dir):
    return CacheProvider(FileStore(str(cache_dir)), MemoryStore(max_entries=8))


@pytest.fixture
def upstream(jpeg_bytes):
    fake = FakeUpstream()
    fake.add("foo.jpg", jpeg_bytes, "image/jpeg")
    return fake


@pytest.fixture
def fetcher(upstream):
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    return ImageFetcher(http_client=client)


@pytest.fixture
def pipeline(config, cache_provider, fetcher):
    return ResizePipeline(config, cache_provider, fetcher)
