"""Tests for the upstream CDN client."""

import asyncio

import pytest

aiohttp_mod = pytest.importorskip("aiohttp")

from aiohttp import web
from aiohttp import test_utils

from assetproxy.models import PackageReference
from assetproxy.upstream import UpstreamClient


class TestUpstreamClientUrlBuilding:
    """Tests for upstream URL building."""

    def test_build_url_unscoped(self):
        """Plain packages map to /name@version/path."""
        client = UpstreamClient()
        url = client.build_url(PackageReference("lodash", "4.17.21", "lodash.js"))
        assert url == "https://unpkg.com/lodash@4.17.21/lodash.js"

    def test_build_url_keeps_version_verbatim(self):
        """A leading @ on the version is not stripped for the origin."""
        client = UpstreamClient()
        url = client.build_url(PackageReference("@scope/pkg", "@beta", "a/b.js"))
        assert url == "https://unpkg.com/@scope/pkg@@beta/a/b.js"

    def test_custom_base_trailing_slash(self):
        """Trailing slashes on the base URL are dropped."""
        client = UpstreamClient(base_url="https://cdn.example.com/npm/")
        url = client.build_url(PackageReference("vue", "3.4.0", "dist/vue.js"))
        assert url == "https://cdn.example.com/npm/vue@3.4.0/dist/vue.js"

    def test_default_headers(self):
        """Every request identifies the server and accepts anything."""
        headers = UpstreamClient().build_request_headers()
        assert headers["User-Agent"] == "BlackHole/1.0"
        assert headers["Accept"] == "*/*"


class _DummyResponse:
    def __init__(self, status, headers=None, body=b""):
        self.status = status
        self.headers = headers or {}
        self._body = body
        self.released = False

    async def read(self):
        return self._body

    def release(self):
        self.released = True


class _DummySession:
    def __init__(self, responses, urls):
        self._responses = iter(responses)
        self._urls = urls

    async def request(self, method, url, headers=None, allow_redirects=False):
        self._urls.append(url)
        return next(self._responses)


class TestUpstreamClientRedirects:
    """Tests for the redirect allowlist."""

    def test_follow_same_host_relative_redirect(self):
        """Dist-tag redirects on the same host are followed."""
        client = UpstreamClient()
        urls = []
        client._session = _DummySession(
            [
                _DummyResponse(status=302, headers={"Location": "/react@18.2.0/index.js"}),
                _DummyResponse(status=200, body=b"ok"),
            ],
            urls,
        )

        async def _run():
            async with client.open_response("https://unpkg.com/react@latest/index.js") as response:
                return await response.read()

        assert asyncio.run(_run()) == b"ok"
        assert urls == [
            "https://unpkg.com/react@latest/index.js",
            "https://unpkg.com/react@18.2.0/index.js",
        ]

    def test_follow_allowlisted_host(self):
        """Configured redirect hosts are followed."""
        client = UpstreamClient(redirect_hosts=["files.example.org"])
        urls = []
        client._session = _DummySession(
            [
                _DummyResponse(status=301, headers={"Location": "https://files.example.org/x.js"}),
                _DummyResponse(status=200, body=b"ok"),
            ],
            urls,
        )

        async def _run():
            async with client.open_response("https://unpkg.com/x@1.0.0/x.js") as response:
                return response.status

        assert asyncio.run(_run()) == 200
        assert urls[1] == "https://files.example.org/x.js"

    def test_block_disallowed_redirect(self):
        """Redirects to unknown hosts raise ClientError."""
        client = UpstreamClient()
        urls = []
        client._session = _DummySession(
            [_DummyResponse(status=302, headers={"Location": "http://169.254.169.254/latest/meta-data"})],
            urls,
        )

        async def _run():
            async with client.open_response("https://unpkg.com/x@1.0.0/x.js"):
                pass  # pragma: no cover

        with pytest.raises(aiohttp_mod.ClientError):
            asyncio.run(_run())

    def test_too_many_redirects(self):
        """Redirect loops stop after the limit."""
        client = UpstreamClient()
        urls = []
        client._session = _DummySession(
            [_DummyResponse(status=302, headers={"Location": "/loop"}) for _ in range(10)],
            urls,
        )

        async def _run():
            async with client.open_response("https://unpkg.com/loop"):
                pass  # pragma: no cover

        with pytest.raises(aiohttp_mod.ClientError):
            asyncio.run(_run())
        assert len(urls) == 6

    def test_redirect_without_location_is_returned(self):
        """A 3xx without Location is handed back as the final response."""
        client = UpstreamClient()
        client._session = _DummySession([_DummyResponse(status=304)], [])

        async def _run():
            async with client.open_response("https://unpkg.com/x@1.0.0/x.js") as response:
                return response.status

        assert asyncio.run(_run()) == 304


class TestUpstreamClientLive:
    """Round trips against a local aiohttp origin."""

    def test_fetch_from_local_origin(self):
        """The client issues a GET with its headers and reads the body."""
        seen = {}

        async def _package(request):
            seen["path"] = request.path
            seen["user_agent"] = request.headers.get("User-Agent")
            return web.Response(body=b"export default 1;", content_type="application/javascript")

        async def _run():
            app = web.Application()
            app.router.add_get("/{tail:.*}", _package)
            async with test_utils.TestServer(app) as ts:
                base = f"http://{ts.host}:{ts.port}"
                async with UpstreamClient(base_url=base) as client:
                    url = client.build_url(PackageReference("pkg", "1.0.0", "index.js"))
                    async with client.open_response(url) as response:
                        return response.status, await response.read()

        status, body = asyncio.run(_run())

        assert status == 200
        assert body == b"export default 1;"
        assert seen["path"] == "/pkg@1.0.0/index.js"
        assert seen["user_agent"] == "BlackHole/1.0"
