"""Asset server using aiohttp."""

from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

from aiohttp import web

from common.logging_utils import Timer, extra_context
from constants import Constants

from .errors import AssetError
from .index_cache import IndexPageCache
from .models import RouteRequest
from .package_cache import PackageCache
from .router import RequestRouter
from .static import StaticFileHandler
from .upstream import UpstreamClient

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    """Configuration for the asset server."""

    host: str = Constants.DEFAULT_HOST
    port: int = Constants.DEFAULT_PORT
    proxy_enabled: bool = True
    static_dir: str = Constants.DEFAULT_STATIC_DIR
    cache_dir: str = Constants.DEFAULT_CACHE_DIR
    upstream_url: str = Constants.DEFAULT_UPSTREAM_URL
    index_file: str = Constants.DEFAULT_INDEX_FILE
    timeout: Optional[float] = None
    allow_external: bool = False
    redirect_hosts: List[str] = field(default_factory=list)
    log_enabled: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ServerConfig":
        """Create config from a parsed config file.

        Accepts the sectioned layout (``proxy``, ``log``, ``server``).

        Args:
            data: Parsed YAML/JSON/TOML document.

        Returns:
            ServerConfig instance.
        """
        config = cls()
        config.apply_mapping(data)
        return config

    def apply_mapping(self, data: Mapping[str, Any]) -> None:
        """Overlay values from a parsed config file onto this config."""
        proxy = data.get("proxy") or {}
        log = data.get("log") or {}
        server = data.get("server") or {}

        if "enabled" in proxy:
            self.proxy_enabled = bool(proxy["enabled"])
        for key in ("static_dir", "cache_dir", "upstream_url", "index_file"):
            if proxy.get(key):
                setattr(self, key, str(proxy[key]))
        if proxy.get("timeout") is not None:
            self.timeout = float(proxy["timeout"])
        if proxy.get("redirect_hosts"):
            self.redirect_hosts = [str(host) for host in proxy["redirect_hosts"]]

        if "enabled" in log:
            self.log_enabled = bool(log["enabled"])
        if log.get("level"):
            self.log_level = normalize_log_level(str(log["level"]))

        if server.get("host"):
            self.host = str(server["host"])
        if server.get("port") is not None:
            self.port = int(server["port"])
        if "allow_external" in server:
            self.allow_external = bool(server["allow_external"])

    def apply_args(self, args: Any) -> None:
        """Overlay CLI arguments; only options the user actually set win.

        Args:
            args: Parsed CLI arguments namespace.
        """
        overrides = {
            "host": getattr(args, "HOST", None),
            "port": getattr(args, "PORT", None),
            "static_dir": getattr(args, "STATIC_DIR", None),
            "cache_dir": getattr(args, "CACHE_DIR", None),
            "upstream_url": getattr(args, "UPSTREAM_URL", None),
            "index_file": getattr(args, "INDEX_FILE", None),
            "timeout": getattr(args, "TIMEOUT", None),
            "log_level": getattr(args, "LOG_LEVEL", None),
        }
        for key, value in overrides.items():
            if value is not None:
                setattr(self, key, value)

        if getattr(args, "NO_PROXY", False) is True:
            self.proxy_enabled = False
        if getattr(args, "ALLOW_EXTERNAL", False) is True:
            self.allow_external = True
        extra_hosts = getattr(args, "REDIRECT_HOSTS", None)
        if extra_hosts:
            self.redirect_hosts = list(self.redirect_hosts) + list(extra_hosts)

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def normalize_log_level(level: str) -> str:
    """Map config spellings such as ``warn`` or ``trace`` to logging names."""
    name = level.strip().upper()
    aliases = {"WARN": "WARNING", "TRACE": "DEBUG", "FATAL": "CRITICAL"}
    name = aliases.get(name, name)
    return name if name in Constants.LOG_LEVELS else "INFO"


@web.middleware
async def access_log_middleware(request: web.Request, handler):
    """Log method, path, status and duration for every request."""
    with Timer() as t:
        try:
            response = await handler(request)
        except web.HTTPException as exc:
            logger.info(
                "%s %s -> %s",
                request.method, request.path, exc.status,
                extra=extra_context(
                    event="http_request", component="server",
                    status_code=exc.status, duration_ms=t.duration_ms(), path=request.path,
                ),
            )
            raise
    logger.info(
        "%s %s -> %s",
        request.method, request.path, response.status,
        extra=extra_context(
            event="http_request", component="server",
            status_code=response.status, duration_ms=t.duration_ms(), path=request.path,
        ),
    )
    return response


class AssetServer:
    """HTTP server for local static files and cached CDN packages."""

    def __init__(self, config: ServerConfig):
        """Initialize the asset server.

        Args:
            config: Server configuration.
        """
        self._config = config
        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

        self._upstream = UpstreamClient(
            base_url=config.upstream_url,
            timeout=config.timeout,
            redirect_hosts=config.redirect_hosts,
        )
        self._static = StaticFileHandler(config.static_dir)
        self._packages = PackageCache(
            config.cache_dir,
            self._upstream,
            proxy_enabled=config.proxy_enabled,
        )
        self._index = IndexPageCache(config.index_file)
        self._router = RequestRouter(self._static, self._packages)

    @property
    def config(self) -> ServerConfig:
        return self._config

    def _create_app(self) -> web.Application:
        """Create the aiohttp application."""
        app = web.Application(middlewares=[access_log_middleware])
        app.router.add_get(Constants.HEALTH_PATH, self._health_check)
        app.router.add_get("/", self._handle_index)
        app.router.add_get(Constants.STATIC_PREFIX + "{path:.*}", self._handle_static)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _on_startup(self, app: web.Application) -> None:
        """Called when the server starts."""
        await self._upstream.start()
        logger.info("Asset server starting on %s:%s", self._config.host, self._config.port)

    async def _on_cleanup(self, app: web.Application) -> None:
        """Called when the server stops."""
        await self._upstream.stop()
        logger.info("Asset server stopped")

    async def _health_check(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.json_response({
            "status": "ok",
            "proxy_enabled": self._config.proxy_enabled,
            "index_cached": self._index.is_cached,
        })

    async def _handle_index(self, request: web.Request) -> web.Response:
        """Serve the landing page from the in-memory slot."""
        try:
            content = await self._index.get_index()
        except AssetError as exc:
            return self._error_response(exc)
        return web.Response(text=content, content_type="text/html", charset="utf-8")

    async def _handle_static(self, request: web.Request) -> web.Response:
        """Handle ``/static/`` requests for local files and packages.

        Args:
            request: Incoming HTTP request.

        Returns:
            HTTP response.
        """
        raw_path = request.match_info.get("path", "")
        logger.debug("Received request: %s%s", Constants.STATIC_PREFIX, raw_path)

        try:
            asset = await self._router.dispatch(RouteRequest(raw_path=raw_path))
        except AssetError as exc:
            return self._error_response(exc)

        return web.Response(body=asset.body, content_type=asset.content_type)

    @staticmethod
    def _error_response(exc: AssetError) -> web.Response:
        return web.Response(status=int(exc.status), text=exc.message)

    async def start(self) -> None:
        """Start the asset server."""
        self._app = self._create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        self._site = web.TCPSite(
            self._runner,
            self._config.host,
            self._config.port,
        )
        await self._site.start()

        logger.info(
            "Server started at http://%s:%s",
            self._config.host, self.bound_port or self._config.port,
        )
        logger.info("Proxy feature status: %s", self._config.proxy_enabled)
        logger.info("Static root: %s", self._config.static_dir)
        logger.info("Cache root: %s", self._config.cache_dir)
        logger.info("Upstream: %s", self._config.upstream_url)

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually bound, useful when configured with port 0."""
        if self._runner is None:
            return None
        for address in self._runner.addresses:
            if isinstance(address, tuple) and len(address) >= 2:
                return int(address[1])
        return None

    async def stop(self) -> None:
        """Stop the asset server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._app = None


def run_server_sync(config: ServerConfig) -> None:
    """Run the asset server until interrupted.

    Installs signal handlers for SIGTERM and SIGINT for clean shutdown.

    Args:
        config: Server configuration.
    """
    server = AssetServer(config)
    loop = asyncio.new_event_loop()

    async def run():
        await server.start()
        stop_event = asyncio.Event()
        running_loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            running_loop.add_signal_handler(sig, stop_event.set)
        await stop_event.wait()
        logger.info("Shutdown signal received, stopping...")
        await server.stop()

    try:
        loop.run_until_complete(run())
    except KeyboardInterrupt:
        # Fallback for platforms where signal handlers don't work (Windows)
        loop.run_until_complete(server.stop())
    finally:
        loop.close()
        logger.info("Asset server shutdown complete")
