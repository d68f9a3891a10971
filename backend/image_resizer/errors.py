"""
Resizer Errors

Request-level failures. Each carries the HTTP status the routes respond with.
"""


class ResizerError(Exception):
    """Base class for failures surfaced to the client."""

    status_code = 500


class InvalidRequestError(ResizerError):
    """Malformed size descriptor, size over limits, or host not whitelisted."""

    status_code = 400


class UpstreamNotFoundError(ResizerError):
    """Upstream answered with a non-200 status and nothing was cached."""

    status_code = 404


class FetchError(ResizerError):
    """Network or transport failure while fetching the source image."""

    status_code = 502


class FetchTimeoutError(FetchError):
    status_code = 504


class DecodeError(ResizerError):
    """Source or cached bytes are not a decodable image."""

    status_code = 502


class StorageError(ResizerError):
    """Cache read, write or delete failure."""

    status_code = 500


class InvalidSourceError(ResizerError):
    """Source image has a zero dimension."""

    status_code = 422


class UnsupportedContentTypeError(ResizerError):
    """Content type outside {image/png, image/jpeg, binary/octet-stream}."""

    status_code = 415
