"""
Command-line entry point.

Usage:
    ros-asn-sync --router 192.0.2.1 --user api --password secret \\
        --list ASN-ALLOW --ASN 13335,AS15169 --verbose
    ros-asn-sync --config /etc/ros-asn-sync.yaml --verbose
"""

import argparse
import logging
import sys

from . import __version__
from .config import (
    DEFAULT_API_URL,
    DEFAULT_CACHE_PATH,
    DEFAULT_CACHE_TTL,
    DEFAULT_FETCH_TIMEOUT,
    PASSWORD_ENV,
    build_config,
    load_yaml_config,
)
from .errors import CacheIOError, ConfigError
from .sync import Synchronizer

log = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="ros-asn-sync",
        description=(
            "Synchronize a RouterOS firewall address-list with the IPv4 "
            "prefixes announced by one or more ASNs."
        ),
    )
    parser.add_argument("--config", help="YAML file with any of the options below")
    parser.add_argument("--router", help="IP or DNS name of the RouterOS device")
    parser.add_argument("--user", help="RouterOS API user")
    parser.add_argument(
        "--password", help=f"RouterOS API password (default: ${PASSWORD_ENV})"
    )
    parser.add_argument(
        "--port", type=int, help="API port (default: 8728, or 8729 with --ssl)"
    )
    parser.add_argument(
        "--ssl", action="store_true", default=None, help="Use the API-SSL service"
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        default=None,
        help="Do not verify the device's TLS certificate",
    )
    parser.add_argument("--list", help="Address-list name")
    parser.add_argument(
        "--ASN", "--asn", dest="asn", help="One or more ASNs, comma-separated"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="Show verbose debug information",
    )
    parser.add_argument(
        "--cachettl",
        type=int,
        help=f"Cache time to live in seconds (default: {DEFAULT_CACHE_TTL})",
    )
    parser.add_argument(
        "--cachepath", help=f"Directory for the cache files (default: {DEFAULT_CACHE_PATH})"
    )
    parser.add_argument(
        "--api-url",
        help=f"Prefix lookup URL, {{asn}} is substituted (default: {DEFAULT_API_URL})",
    )
    parser.add_argument(
        "--fetch-timeout",
        type=float,
        help=f"Prefix lookup timeout in seconds (default: {DEFAULT_FETCH_TIMEOUT:g})",
    )
    parser.add_argument(
        "--device-timeout", type=float, help="RouterOS API socket timeout in seconds"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(verbose):
    # silent unless --verbose
    logging.basicConfig(
        level=logging.INFO if verbose else logging.CRITICAL + 1,
        format="%(asctime)s %(message)s",
        force=True,
    )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    options = vars(args)
    try:
        file_options = load_yaml_config(args.config) if args.config else {}
        config = build_config(options, file_options)
    except ConfigError as e:
        parser.error(str(e))

    setup_logging(config.verbose)

    sync = Synchronizer(config)
    try:
        sync.cache.ensure_dir()
    except CacheIOError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sync.close()
        return 1

    try:
        sync.run()
    finally:
        sync.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
