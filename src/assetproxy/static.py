"""Serve files from the local static root."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import aiofiles

from .content_types import content_type_for
from .errors import AssetNotFoundError, UnsafePathError
from .models import Asset
from .paths import is_safe_relative_path, is_within_root

logger = logging.getLogger(__name__)


class StaticFileHandler:
    """Read-only handler for files below a static root directory."""

    def __init__(self, static_dir: str | os.PathLike):
        self._root = Path(static_dir)

    @property
    def root(self) -> Path:
        return self._root

    async def serve(self, raw_path: str) -> Asset:
        """Return the file at ``raw_path`` relative to the static root.

        Raises:
            UnsafePathError: The path is unsafe or resolves outside the root.
            AssetNotFoundError: The file cannot be read.
        """
        if not is_safe_relative_path(raw_path):
            logger.warning("Detected unsafe path access: %s", raw_path)
            raise UnsafePathError("Forbidden: Unsafe path")

        local_path = self._root / raw_path
        if not await asyncio.to_thread(is_within_root, local_path, self._root):
            logger.warning("Detected directory traversal attempt: %s", local_path)
            raise UnsafePathError("Forbidden: Outside allowed directory range")

        logger.debug("Looking for local file: %s", local_path)
        try:
            async with aiofiles.open(local_path, "rb") as f:
                body = await f.read()
        except OSError as exc:
            logger.warning("File not found: %s (%s)", raw_path, exc)
            raise AssetNotFoundError(f"File not found: {raw_path}") from exc

        logger.info("Served local file: %s", raw_path)
        return Asset(body=body, content_type=content_type_for(raw_path))
