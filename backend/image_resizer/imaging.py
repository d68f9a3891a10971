"""
Imaging

Decode, resize and encode with Pillow. Everything here is CPU-bound and is
run in a worker thread by the pipeline.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, UnsupportedContentTypeError
from .sizing import SizeSpec, calculate_aspect_ratio, fit_within_limits

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutputEncoding:
    """Pillow format to encode with and the content type to respond with."""
    pil_format: str
    content_type: str


PNG = OutputEncoding("PNG", "image/png")
JPEG = OutputEncoding("JPEG", "image/jpeg")

# Closed set of handled upstream content types
ENCODINGS = {
    "image/png": PNG,
    "image/jpeg": JPEG,
    "binary/octet-stream": JPEG,
}


def resolve_encoding(content_type: str) -> OutputEncoding:
    """
    Map an upstream or cached content type to the output encoding.

    Raises:
        UnsupportedContentTypeError: content type outside the handled set
    """
    normalized = (content_type or "").split(";")[0].strip().lower()
    encoding = ENCODINGS.get(normalized)
    if encoding is None:
        raise UnsupportedContentTypeError(f"Cannot handle content type '{content_type}'")
    return encoding


def decode_image(data: bytes) -> Image.Image:
    """
    Decode image bytes fully into memory.

    Raises:
        DecodeError: bytes are not a readable image
    """
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"Cannot decode image: {e}") from e
    return img


def target_size(source_width: int, source_height: int, size: SizeSpec) -> SizeSpec:
    """
    Concrete output size. A zero dimension is derived from the other one so
    the source aspect ratio is kept; both zero means the source size.
    """
    width, height = size.width, size.height

    if width == 0 and height == 0:
        return SizeSpec(width=source_width, height=source_height)
    if width == 0:
        width = int(source_width * height / source_height + 0.5)
    elif height == 0:
        height = int(source_height * width / source_width + 0.5)

    return SizeSpec(width=max(1, width), height=max(1, height))


def resize_image(img: Image.Image, size: SizeSpec) -> Image.Image:
    """Nearest-neighbour resize to ``size``, resolving any zero dimension first."""
    size = target_size(img.width, img.height, size)
    if (size.width, size.height) == img.size:
        return img.copy()
    return img.resize((size.width, size.height), Image.Resampling.NEAREST)


def encode_image(img: Image.Image, encoding: OutputEncoding) -> bytes:
    """Encode to PNG or JPEG, flattening transparency onto white for JPEG."""
    if encoding.pil_format == "JPEG":
        if img.mode in ("RGBA", "LA", "P"):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            img = background
        elif img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
    elif img.mode not in ("RGB", "RGBA", "L", "LA", "P", "1", "I", "I;16"):
        img = img.convert("RGBA")

    output = BytesIO()
    img.save(output, format=encoding.pil_format)
    return output.getvalue()


def render(
    data: bytes,
    requested: SizeSpec,
    encoding: OutputEncoding,
    limits: Optional[SizeSpec] = None,
) -> Tuple[bytes, SizeSpec]:
    """
    Decode, fit, resize and encode in one pass.

    When ``limits`` is given the final size, including any dimension derived
    from the source aspect ratio, is scaled down to fit within it.

    Returns:
        Tuple of (encoded_bytes, final_size)

    Raises:
        DecodeError: the source bytes cannot be decoded
        InvalidSourceError: the decoded source has a zero dimension
    """
    img = decode_image(data)

    source_width, source_height = img.size
    size = calculate_aspect_ratio(source_height, source_width, requested)
    size = target_size(source_width, source_height, size)
    if limits is not None:
        size = fit_within_limits(size, limits)

    resized = resize_image(img, size)
    return encode_image(resized, encoding), SizeSpec(width=resized.width, height=resized.height)
