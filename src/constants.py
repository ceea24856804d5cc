"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    USAGE_ERROR = 2


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_HOST = "127.0.0.1"
    DEFAULT_PORT = 8080
    DEFAULT_STATIC_DIR = "static"
    DEFAULT_CACHE_DIR = "cache"
    DEFAULT_INDEX_FILE = "ui/index.html"
    DEFAULT_CONFIG_FILE = "config.toml"
    DEFAULT_UPSTREAM_URL = "https://unpkg.com"

    STATIC_PREFIX = "/static/"
    HEALTH_PATH = "/_blackhole/health"
    USER_AGENT = "BlackHole/1.0"
    MAX_REDIRECTS = 5

    LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ENV_LOG_LEVEL = "BLACKHOLE_LOG_LEVEL"
