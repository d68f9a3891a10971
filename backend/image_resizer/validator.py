"""Request gate applied before any cache key is formed or resize work starts."""

import logging
from urllib.parse import urlparse

from .config import Configuration
from .errors import InvalidRequestError
from .sizing import SizeSpec

logger = logging.getLogger(__name__)


class Validator:
    def __init__(self, config: Configuration):
        self.config = config

    def check_request_new_size(self, size: SizeSpec) -> None:
        """
        Reject sizes with no constraint at all or beyond the configured limits.
        A zero limit leaves that dimension unbounded.
        """
        if size.width == 0 and size.height == 0:
            raise InvalidRequestError("Requested size must constrain width or height")

        limits = self.config.size_limits
        if limits.width and size.width > limits.width:
            raise InvalidRequestError(
                f"Requested width {size.width} exceeds limit {limits.width}"
            )
        if limits.height and size.height > limits.height:
            raise InvalidRequestError(
                f"Requested height {size.height} exceeds limit {limits.height}"
            )

    def check_url(self, url: str) -> None:
        """Require an http(s) URL whose host is whitelisted (when a whitelist is set)."""
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidRequestError(f"Invalid image URL: {url}")

        whitelist = {host.lower() for host in self.config.host_white_list}
        host = (parsed.hostname or "").lower()
        if whitelist and host not in whitelist:
            logger.warning(f"[Resizer] Rejected host not in whitelist: {host}")
            raise InvalidRequestError(f"Host not allowed: {host}")
