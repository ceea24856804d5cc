"""Extension to MIME type mapping for served assets."""

from __future__ import annotations

from pathlib import PurePosixPath

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",
    "html": "text/html",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
}


def content_type_for(path: str) -> str:
    """Return the MIME type for ``path`` based on its extension."""
    suffix = PurePosixPath(path).suffix
    if not suffix:
        return DEFAULT_CONTENT_TYPE
    return CONTENT_TYPES.get(suffix[1:].lower(), DEFAULT_CONTENT_TYPE)
