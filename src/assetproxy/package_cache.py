"""Read-through disk cache for versioned package files.

Layout under the cache root mirrors ``name/version/sub_path``; the existence
of a file is the only record that an entry is cached. Entries are written
once and never expired, revalidated or deleted here.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
import aiohttp

from .content_types import content_type_for
from .errors import (
    ProxyDisabledError,
    UnsafePathError,
    UpstreamStatusError,
    UpstreamTransportError,
)
from .models import Asset, PackageReference
from .paths import is_safe_relative_path, is_within_root
from .upstream import UpstreamClient

logger = logging.getLogger(__name__)


class PackageCache:
    """Resolve package references from disk, fetching from upstream on a miss.

    Concurrent misses for the same key are not collapsed: each one fetches
    and writes the same bytes to the same path, and the rename into place
    keeps readers from ever seeing a partial file.
    """

    def __init__(
        self,
        cache_dir: str | os.PathLike,
        upstream: UpstreamClient,
        proxy_enabled: bool = True,
    ):
        """Initialize the package cache.

        Args:
            cache_dir: Root directory for cached package files.
            upstream: Client used on cache misses.
            proxy_enabled: When False, misses return 503 instead of fetching.
        """
        self._root = Path(cache_dir)
        self._upstream = upstream
        self._proxy_enabled = proxy_enabled

    @property
    def root(self) -> Path:
        return self._root

    @property
    def proxy_enabled(self) -> bool:
        return self._proxy_enabled

    def cache_file_for(self, ref: PackageReference) -> Path:
        """On-disk location for ``ref``; a leading ``@`` on the version is dropped."""
        return self._root / ref.cache_path

    async def resolve(self, ref: PackageReference) -> Asset:
        """Return the asset for ``ref``, from cache when possible.

        Raises:
            UnsafePathError: The reference would escape the cache root.
            ProxyDisabledError: Not cached and fetching is disabled.
            UpstreamStatusError: Upstream answered with a non-success status.
            UpstreamTransportError: The fetch failed at the transport level.
        """
        if not is_safe_relative_path(ref.cache_path):
            logger.warning("Detected unsafe package path: %s", ref)
            raise UnsafePathError("Forbidden: Unsafe path")

        cache_file = self.cache_file_for(ref)
        content_type = content_type_for(ref.sub_path)

        logger.debug("Checking cache file: %s", cache_file)
        cached = await self._read_cached(cache_file)
        if cached is not None:
            logger.info("Using cached file: %s", cache_file)
            return Asset(body=cached, content_type=content_type)

        if not self._proxy_enabled:
            logger.info("Cache miss with proxy disabled: %s", ref)
            raise ProxyDisabledError("Proxy service not enabled")

        body = await self._fetch(ref)
        await self._store(cache_file, body)

        logger.info("Downloaded and cached file: %s", ref)
        return Asset(body=body, content_type=content_type)

    async def _read_cached(self, cache_file: Path) -> Optional[bytes]:
        if not await asyncio.to_thread(is_within_root, cache_file, self._root):
            return None
        try:
            async with aiofiles.open(cache_file, "rb") as f:
                return await f.read()
        except OSError:
            return None

    async def _fetch(self, ref: PackageReference) -> bytes:
        url = self._upstream.build_url(ref)
        logger.info("Downloading from upstream: %s", url)

        try:
            async with self._upstream.open_response(url) as response:
                if not 200 <= response.status < 300:
                    logger.error("Upstream returned error %s for %s", response.status, url)
                    raise UpstreamStatusError(response.status)
                try:
                    return await response.read()
                except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                    logger.error("Failed to read upstream response for %s: %s", url, exc)
                    raise UpstreamTransportError(f"Failed to read response: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Download failed for %s: %s", url, exc)
            raise UpstreamTransportError(f"Download failed: {exc}") from exc

    async def _store(self, cache_file: Path, body: bytes) -> None:
        """Persist ``body``; failures are logged and never raised."""
        nearest = await asyncio.to_thread(_nearest_existing, cache_file.parent)
        if not await asyncio.to_thread(is_within_root, nearest, self._root):
            logger.warning("Refusing to write cache file outside cache root: %s", cache_file)
            return

        try:
            await aiofiles.os.makedirs(cache_file.parent, exist_ok=True)
        except OSError as exc:
            logger.warning("Failed to create cache directory %s: %s", cache_file.parent, exc)
            return

        if not await asyncio.to_thread(is_within_root, cache_file, self._root):
            logger.warning("Refusing to write cache file outside cache root: %s", cache_file)
            return

        tmp_file = cache_file.with_name(f".{cache_file.name}.{uuid.uuid4().hex}.tmp")
        try:
            async with aiofiles.open(tmp_file, "wb") as f:
                await f.write(body)
            await aiofiles.os.replace(tmp_file, cache_file)
        except OSError as exc:
            logger.warning("Failed to save cache file %s: %s", cache_file, exc)
            await self._discard(tmp_file)

    async def _discard(self, tmp_file: Path) -> None:
        try:
            await aiofiles.os.remove(tmp_file)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to remove temporary cache file %s: %s", tmp_file, exc)


def _nearest_existing(path: Path) -> Path:
    while not path.exists() and path != path.parent:
        path = path.parent
    return path
