"""Upstream client for fetching package files from the CDN origin."""

from __future__ import annotations

import logging
import urllib.parse
from contextlib import asynccontextmanager
from typing import Dict, Iterable, Optional

import aiohttp

from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from constants import Constants

from .models import PackageReference

logger = logging.getLogger(__name__)

_REDIRECT_STATUSES = (301, 302, 303, 307, 308)


class UpstreamClient:
    """Client for the remote package CDN (unpkg-compatible URL layout)."""

    def __init__(
        self,
        base_url: str = Constants.DEFAULT_UPSTREAM_URL,
        timeout: Optional[float] = None,
        redirect_hosts: Optional[Iterable[str]] = None,
    ):
        """Initialize the upstream client.

        Args:
            base_url: Origin serving ``/{name}@{version}/{path}``.
            timeout: Total request timeout in seconds; aiohttp's default when None.
            redirect_hosts: Extra hosts redirects may lead to.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = (
            aiohttp.ClientTimeout(total=timeout) if timeout else None
        )
        self._session: Optional[aiohttp.ClientSession] = None
        self._redirect_allowlist = {host.lower() for host in (redirect_hosts or ())}

    @property
    def base_url(self) -> str:
        return self._base_url

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            kwargs = {}
            if self._timeout is not None:
                kwargs["timeout"] = self._timeout
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=100),
                **kwargs,
            )

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    def build_url(self, ref: PackageReference) -> str:
        """Build the upstream URL; the version token is passed through verbatim."""
        return f"{self._base_url}/{ref.name}@{ref.version}/{ref.sub_path}"

    def build_request_headers(self) -> Dict[str, str]:
        """Headers sent with every upstream request."""
        return {
            "User-Agent": Constants.USER_AGENT,
            "Accept": "*/*",
        }

    @asynccontextmanager
    async def open_response(self, url: str):
        """Open an upstream GET response as an async context manager."""
        if self._session is None:
            await self.start()
        assert self._session is not None
        with Timer() as t:
            response = await self._request_with_redirects(url, self.build_request_headers())
        if is_debug_enabled(logger):
            logger.debug(
                "Upstream response",
                extra=extra_context(
                    event="http_response",
                    component="upstream",
                    action="GET",
                    status_code=response.status,
                    duration_ms=t.duration_ms(),
                    target=safe_url(url),
                ),
            )
        try:
            yield response
        finally:
            response.release()

    def _is_allowed_redirect(self, target_url: str) -> bool:
        """Only follow redirects to the upstream host or allowlisted hosts."""
        target = urllib.parse.urlparse(target_url)
        if target.scheme not in ("http", "https"):
            return False
        if not target.hostname:
            return False

        allowed_hosts = set(self._redirect_allowlist)
        upstream_host = urllib.parse.urlparse(self._base_url).hostname
        if upstream_host:
            allowed_hosts.add(upstream_host.lower())

        target_host = target.hostname.lower()
        for host in allowed_hosts:
            if target_host == host or target_host.endswith(f".{host}"):
                return True
        return False

    async def _request_with_redirects(
        self,
        url: str,
        headers: Dict[str, str],
        max_redirects: int = Constants.MAX_REDIRECTS,
    ) -> aiohttp.ClientResponse:
        """GET ``url`` while enforcing the redirect allowlist."""
        assert self._session is not None
        current_url = url

        for _ in range(max_redirects + 1):
            response = await self._session.request(
                "GET",
                current_url,
                headers=headers,
                allow_redirects=False,
            )

            if response.status not in _REDIRECT_STATUSES:
                return response

            location = response.headers.get("Location")
            if not location:
                return response

            next_url = urllib.parse.urljoin(current_url, location)
            response.release()
            if not self._is_allowed_redirect(next_url):
                raise aiohttp.ClientError(f"Redirect to {safe_url(next_url)} blocked by allowlist")

            logger.debug("Following upstream redirect: %s", safe_url(next_url))
            current_url = next_url

        raise aiohttp.ClientError("Too many redirects")

    async def __aenter__(self) -> "UpstreamClient":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
