"""Error types raised by the asset handlers.

Every error carries the HTTP status it maps to and a plain-text message that
is safe to send to the client.
"""

from __future__ import annotations

from http import HTTPStatus


class AssetError(Exception):
    """Base class for failures that become an HTTP error response."""

    status: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class UnsafePathError(AssetError):
    """Path failed syntactic validation or escapes its root."""

    status = HTTPStatus.FORBIDDEN


class AssetNotFoundError(AssetError):
    """Requested file does not exist or cannot be read."""

    status = HTTPStatus.NOT_FOUND


class ProxyDisabledError(AssetError):
    """Package is not cached and remote fetching is switched off."""

    status = HTTPStatus.SERVICE_UNAVAILABLE


class UpstreamStatusError(AssetError):
    """Upstream answered with a non-success status."""

    def __init__(self, upstream_status: int):
        self.upstream_status = upstream_status
        super().__init__(
            f"Upstream returned error: {describe_status(upstream_status)}",
            status=representable_status(upstream_status),
        )


class UpstreamTransportError(AssetError):
    """Network or I/O failure while talking to the upstream."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR


def representable_status(code: int) -> int:
    """Return ``code`` if it fits a status line (100-999), else 500.

    Non-standard codes such as Cloudflare's 520-527 pass through unchanged.
    """
    if 100 <= code <= 999:
        return code
    return int(HTTPStatus.INTERNAL_SERVER_ERROR)


def describe_status(code: int) -> str:
    """Human readable ``"404 Not Found"`` style description."""
    try:
        return f"{code} {HTTPStatus(code).phrase}"
    except ValueError:
        return str(code)
