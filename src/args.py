"""Argument parsing functionality for Black Hole."""

import argparse
from constants import Constants

def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="blackhole",
        description=(
            "Black Hole - static asset server with a persistent unpkg cache"
        ),
        add_help=True,
    )

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help=f"Path to configuration file (TOML, YAML or JSON; default: {Constants.DEFAULT_CONFIG_FILE} if present)",
                        action="store",
                        type=str)
    parser.add_argument("--host",
                        dest="HOST",
                        help=f"Address to bind (default: {Constants.DEFAULT_HOST})",
                        action="store",
                        type=str)
    parser.add_argument("-p", "--port",
                        dest="PORT",
                        help=f"Port to listen on (default: {Constants.DEFAULT_PORT})",
                        action="store",
                        type=int)
    parser.add_argument("--static-dir",
                        dest="STATIC_DIR",
                        help="Directory served for local static files",
                        action="store",
                        type=str)
    parser.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help="Directory where fetched package files are stored",
                        action="store",
                        type=str)
    parser.add_argument("--upstream",
                        dest="UPSTREAM_URL",
                        help=f"Package CDN origin (default: {Constants.DEFAULT_UPSTREAM_URL})",
                        action="store",
                        type=str)
    parser.add_argument("--redirect-host",
                        dest="REDIRECT_HOSTS",
                        help="Additional host upstream redirects may point to (repeatable)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--index-file",
                        dest="INDEX_FILE",
                        help=f"Landing page served at / (default: {Constants.DEFAULT_INDEX_FILE})",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="Upstream request timeout in seconds",
                        action="store",
                        type=float)
    parser.add_argument("--no-proxy",
                        dest="NO_PROXY",
                        help="Serve only cached packages; never fetch from upstream",
                        action="store_true")
    parser.add_argument("--allow-external",
                        dest="ALLOW_EXTERNAL",
                        help="Allow binding to a non-loopback address",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=Constants.LOG_LEVELS)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
