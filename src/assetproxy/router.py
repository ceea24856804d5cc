"""Classify ``/static/`` paths and dispatch them to the right handler."""

from __future__ import annotations

import logging
import re
from typing import Optional

from constants import Constants

from .models import Asset, PackageReference, RouteRequest
from .package_cache import PackageCache
from .static import StaticFileHandler

logger = logging.getLogger(__name__)


class RequestRouter:
    """Route requests to the package cache or the local static handler."""

    # /static/{name}@{version}/{sub_path}
    # name is "leaf" or "@scope/leaf" (at most two segments, no "@" inside a
    # segment); version runs up to the next "/"; sub_path is the remainder.
    _PACKAGE_PATTERN = re.compile(
        re.escape(Constants.STATIC_PREFIX) + r"(@?[^@/]+(?:/[^@/]+)?)@([^/]+)/(.+)"
    )

    def __init__(self, static_handler: StaticFileHandler, package_cache: PackageCache):
        self._static = static_handler
        self._packages = package_cache

    def parse(self, request: RouteRequest) -> Optional[PackageReference]:
        """Return the package reference in ``request``, or None for local paths."""
        match = self._PACKAGE_PATTERN.fullmatch(f"{Constants.STATIC_PREFIX}{request.raw_path}")
        if match is None:
            return None
        name, version, sub_path = match.groups()
        return PackageReference(name=name, version=version, sub_path=sub_path)

    async def dispatch(self, request: RouteRequest) -> Asset:
        """Serve ``request``; handler errors propagate as ``AssetError``."""
        ref = self.parse(request)
        if ref is not None:
            logger.debug("Package request: %s", ref)
            return await self._packages.resolve(ref)
        return await self._static.serve(request.raw_path)
