"""Single-slot in-memory cache for the landing page."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import aiofiles

from constants import Constants

from .errors import AssetNotFoundError

logger = logging.getLogger(__name__)


class IndexPageCache:
    """Lazily loads the landing page once and keeps it for the process lifetime.

    The slot is assigned at most once. Readers only ever see ``None`` or the
    complete string; the lock serialises concurrent first loads. Failed reads
    are not remembered, so the next request tries the file again.
    """

    def __init__(self, index_file: str | os.PathLike = Constants.DEFAULT_INDEX_FILE):
        self._index_file = Path(index_file)
        self._content: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def index_file(self) -> Path:
        return self._index_file

    @property
    def is_cached(self) -> bool:
        return self._content is not None

    async def get_index(self) -> str:
        """Return the landing page content.

        Raises:
            AssetNotFoundError: The landing page could not be read.
        """
        content = self._content
        if content is not None:
            logger.debug("Using cached index page")
            return content

        async with self._lock:
            if self._content is not None:
                return self._content

            logger.info("Reading index page from file: %s", self._index_file)
            try:
                content = await self._read_index()
            except (OSError, UnicodeDecodeError) as exc:
                logger.error("Failed to read index page %s: %s", self._index_file, exc)
                raise AssetNotFoundError("404 - index.html file not found") from exc

            self._content = content
            logger.info("Read and cached index page")
            return content

    async def _read_index(self) -> str:
        async with aiofiles.open(self._index_file, "r", encoding="utf-8") as f:
            return await f.read()
