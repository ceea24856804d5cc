"""Black Hole asset server package.

Serves static files from a local directory and versioned package files from
an unpkg-style CDN, persisting every fetched package file to a permanent
on-disk cache so later requests are answered locally.
"""

from .errors import AssetError
from .index_cache import IndexPageCache
from .models import Asset, PackageReference, RouteRequest
from .package_cache import PackageCache
from .paths import is_safe_relative_path, is_within_root
from .router import RequestRouter
from .server import AssetServer, ServerConfig
from .static import StaticFileHandler
from .upstream import UpstreamClient

__all__ = [
    "Asset",
    "AssetError",
    "AssetServer",
    "IndexPageCache",
    "PackageCache",
    "PackageReference",
    "RequestRouter",
    "RouteRequest",
    "ServerConfig",
    "StaticFileHandler",
    "UpstreamClient",
    "is_safe_relative_path",
    "is_within_root",
]
