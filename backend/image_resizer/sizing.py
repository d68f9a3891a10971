"""
Sizing

Size descriptors, aspect-ratio computation and cache key derivation.
"""

import hashlib
import re
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidRequestError, InvalidSourceError

_DIMENSIONS = re.compile(r"^(\d*)[xX](\d*)$")
_WIDTH_ONLY = re.compile(r"^\d+$")


class SizeSpec(BaseModel):
    """Requested or computed dimensions. Zero means unconstrained."""
    model_config = ConfigDict(frozen=True)

    width: int = Field(0, ge=0)
    height: int = Field(0, ge=0)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


def parse_size(descriptor: str, placeholders: Sequence = ()) -> SizeSpec:
    """
    Parse the size segment of a resize URL.

    Accepted forms:
        "200x150"  both dimensions
        "200x" / "200x0" / "200"  width only
        "x150" / "0x150"  height only
        "<name>"   size of the configured placeholder with that name

    Raises:
        InvalidRequestError: the descriptor matches none of the above
    """
    descriptor = (descriptor or "").strip()

    for placeholder in placeholders:
        if placeholder.name == descriptor:
            return placeholder.size

    if _WIDTH_ONLY.match(descriptor):
        return SizeSpec(width=int(descriptor), height=0)

    match = _DIMENSIONS.match(descriptor)
    if not match or not (match.group(1) or match.group(2)):
        raise InvalidRequestError(f"Malformed size descriptor: {descriptor!r}")

    width, height = match.groups()
    return SizeSpec(width=int(width or 0), height=int(height or 0))


def calculate_aspect_ratio(source_height: int, source_width: int, requested: SizeSpec) -> SizeSpec:
    """
    Fit the source into the requested bounding box without distortion.

    Only applies when both requested dimensions are positive; otherwise the
    request is returned unchanged and the resize step derives the missing
    dimension itself.

    Example:
        source 1000x500 into 200x200 -> scale min(0.2, 0.4) = 0.2 -> 200x100

    Raises:
        InvalidSourceError: source width or height is zero
    """
    if source_width <= 0 or source_height <= 0:
        raise InvalidSourceError(
            f"Source image has invalid dimensions {source_width}x{source_height}"
        )

    if requested.width == 0 or requested.height == 0:
        return requested

    scale = min(requested.width / source_width, requested.height / source_height)
    return SizeSpec(
        width=max(0, int(source_width * scale + 0.5)),
        height=max(0, int(source_height * scale + 0.5)),
    )


def fit_within_limits(size: SizeSpec, limits: SizeSpec) -> SizeSpec:
    """
    Scale ``size`` down proportionally until neither side exceeds its limit.

    A zero limit leaves that side unbounded. Sizes already within the limits
    are returned unchanged.

    Example:
        500000x1000 within 2000x2000 -> scale 0.004 -> 2000x4
    """
    scale = 1.0
    if limits.width and size.width > limits.width:
        scale = min(scale, limits.width / size.width)
    if limits.height and size.height > limits.height:
        scale = min(scale, limits.height / size.height)
    if scale == 1.0:
        return size
    return SizeSpec(
        width=max(1, int(size.width * scale + 0.5)),
        height=max(1, int(size.height * scale + 0.5)),
    )


def extract_id_from_url(url: str) -> str:
    """Stable identifier of a source URL (SHA-256 hex digest)."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def resized_key(size: SizeSpec, image_id: str) -> str:
    return f"{size.height}_{size.width}_{image_id}"


def original_key(image_id: str) -> str:
    return f"original_{image_id}"
