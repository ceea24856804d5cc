"""Config file loading for the asset server.

Supports YAML/YML, JSON and TOML documents. Loading never raises: missing or
malformed files are logged and treated as empty so the CLI falls back to
defaults and flags.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from typing import Any, Dict, Optional

import yaml

from constants import Constants

logger = logging.getLogger(__name__)


def resolve_config_path(config_path: Optional[str]) -> Optional[str]:
    """Return the config file to load, if any.

    An explicit path is always returned. Without one, ``config.toml`` in the
    working directory is used when it exists.
    """
    if config_path:
        return config_path
    if os.path.isfile(Constants.DEFAULT_CONFIG_FILE):
        return Constants.DEFAULT_CONFIG_FILE
    return None


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load configuration from file.

    Args:
        config_path: Path to a YAML, JSON or TOML config file.

    Returns:
        Parsed configuration dict (empty when unavailable).
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    ext = os.path.splitext(config_path)[1].lower()
    try:
        if ext == ".toml":
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        elif ext == ".json":
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Failed to load config %s: %s", config_path, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", config_path)
        return {}
    return data
