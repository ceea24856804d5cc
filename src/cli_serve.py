"""CLI entry point for the Black Hole asset server.

Loads configuration, sets up logging, creates the served directories and then
runs the aiohttp server until interrupted.
"""

from __future__ import annotations

import ipaddress
import logging
import os
import sys
from typing import Any

from cli_config import load_config_file, resolve_config_path
from common.logging_utils import configure_logging
from constants import Constants, ExitCodes

logger = logging.getLogger(__name__)


def _is_local_bind_host(host: str) -> bool:
    """Return True if host is a loopback/local bind target."""
    if not host:
        return False
    host_lower = host.strip().lower()
    if host_lower in ("localhost",):
        return True
    try:
        return ipaddress.ip_address(host_lower).is_loopback
    except ValueError:
        # Non-IP hostnames are treated as non-local unless explicitly allowed.
        return False


def _enforce_local_binding(host: str, allow_external: bool) -> None:
    """Enforce local-only binding unless explicitly allowed."""
    if _is_local_bind_host(host):
        return
    if not allow_external:
        sys.stderr.write(
            "ERROR: Non-local bindings require --allow-external.\n"
        )
        sys.exit(ExitCodes.USAGE_ERROR.value)
    logger.warning(
        "Binding asset server to non-local address (%s). Ensure network controls are in place.",
        host,
    )


def _setup_logging(config: Any, log_file: str | None = None) -> None:
    """Configure logging from the effective server config.

    Args:
        config: Effective ServerConfig.
        log_file: Optional path for an additional file handler.
    """
    os.environ[Constants.ENV_LOG_LEVEL] = str(config.log_level).upper()
    configure_logging(enabled=config.log_enabled)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def _create_dirs(config: Any) -> None:
    """Create the static and cache roots before serving."""
    for directory in (config.static_dir, config.cache_dir):
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create directory %s: %s", directory, e)
            sys.exit(ExitCodes.FILE_ERROR.value)


def build_config(args: Any):
    """Merge defaults, the config file and CLI flags, in that order.

    Args:
        args: Parsed CLI arguments namespace.

    Returns:
        ServerConfig instance.
    """
    from assetproxy.server import ServerConfig  # pylint: disable=import-outside-toplevel

    config = ServerConfig()
    config_path = resolve_config_path(getattr(args, "CONFIG", None))
    config.apply_mapping(load_config_file(config_path))
    config.apply_args(args)
    return config


def run_asset_server(args: Any) -> None:
    """Entry point for the serve command.

    Args:
        args: Parsed CLI arguments namespace.
    """
    from assetproxy.server import run_server_sync  # pylint: disable=import-outside-toplevel

    config = build_config(args)
    _setup_logging(config, getattr(args, "LOG_FILE", None))
    logger.info("Configuration loaded: %s", config.as_dict())

    _enforce_local_binding(config.host, config.allow_external)
    _create_dirs(config)

    print(
        f"\n"
        f"  Black Hole Asset Server\n"
        f"  =======================\n"
        f"  Listening: http://{config.host}:{config.port}\n"
        f"  Static root: {config.static_dir}\n"
        f"  Cache root: {config.cache_dir}\n"
        f"  Proxy: {'enabled' if config.proxy_enabled else 'disabled'} ({config.upstream_url})\n"
        f"\n"
        f"  Press Ctrl+C to stop\n"
    )

    run_server_sync(config)
