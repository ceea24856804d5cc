"""Value types passed between the router and the asset handlers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RouteRequest:
    """Path segment following the ``/static/`` prefix."""

    raw_path: str


@dataclass(frozen=True)
class PackageReference:
    """A ``name@version/sub_path`` triple identifying a remote asset."""

    name: str
    version: str
    sub_path: str

    @property
    def normalized_version(self) -> str:
        """Version with a single leading ``@`` removed, for on-disk paths."""
        return self.version[1:] if self.version.startswith("@") else self.version

    @property
    def cache_path(self) -> str:
        """Relative location of this asset under the cache root."""
        return f"{self.name}/{self.normalized_version}/{self.sub_path}"

    def __str__(self) -> str:
        return f"{self.name}@{self.version}/{self.sub_path}"


@dataclass(frozen=True)
class Asset:
    """Bytes ready to be served together with their content type."""

    body: bytes
    content_type: str
