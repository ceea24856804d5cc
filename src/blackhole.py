"""Black Hole - static asset server with a persistent unpkg cache

    Returns:
        int: Exit code
"""
import sys

from args import parse_args
from cli_serve import run_asset_server
from constants import ExitCodes


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    run_asset_server(args)
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
