"""
RelayDNS CLI entry point.
"""

import argparse
import asyncio
import logging
import os
import sys

from . import __version__
from .config import LOG_LEVELS, load_config, generate_example_config
from .server import setup_logging, run_server

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relaydns",
        description="RelayDNS: a caching DNS forwarder",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"relaydns {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- start ---
    start_parser = subparsers.add_parser("start", help="Start the DNS forwarder")
    start_parser.add_argument(
        "--config", "-c",
        metavar="FILE",
        help="Path to JSON config file",
    )
    start_parser.add_argument(
        "--host",
        default=None,
        help="Override listen host (default from config or 0.0.0.0)",
    )
    start_parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Override listen port (default from config or 8053)",
    )
    start_parser.add_argument(
        "--upstream", "-u",
        default=None,
        help="Override upstream resolver address (default from config or 8.8.8.8)",
    )
    start_parser.add_argument(
        "--log-level",
        default=None,
        choices=LOG_LEVELS,
        help="Override log level",
    )

    # --- init ---
    init_parser = subparsers.add_parser("init", help="Generate an example config file")
    init_parser.add_argument(
        "output",
        nargs="?",
        default="relaydns.json",
        help="Output path (default: relaydns.json)",
    )

    # --- check ---
    check_parser = subparsers.add_parser("check", help="Validate a config file")
    check_parser.add_argument(
        "config",
        metavar="FILE",
        help="Path to config file to validate",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.command == "init":
        generate_example_config(args.output)
        return

    if args.command == "check":
        try:
            config = load_config(args.config)
        except (OSError, ValueError) as e:
            print(f"✗ Config error: {e}", file=sys.stderr)
            sys.exit(1)
        print("✓ Config is valid.")
        print(f"  Listen  : {config.server.host}:{config.server.port}")
        print(f"  Upstream: {config.server.upstream}:{config.server.upstream_port}")
        timeout = config.server.upstream_timeout
        print(f"  Timeout : {f'{timeout}s' if timeout is not None else 'none'}")
        return

    if args.command == "start":
        try:
            config = load_config(args.config)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except ValueError as e:
            print(f"Config error: {e}", file=sys.stderr)
            sys.exit(1)

        # Apply CLI overrides
        if args.host:
            config.server.host = args.host
        if args.port is not None:
            config.server.port = args.port
        if args.upstream:
            config.server.upstream = args.upstream
        if args.log_level:
            config.server.log_level = args.log_level

        setup_logging(config.server.log_level)

        if config.server.port < 1024 and hasattr(os, "geteuid") and os.geteuid() != 0:
            logger.warning(
                f"Port {config.server.port} may require root privileges. "
                "Consider using the default port 8053."
            )

        try:
            asyncio.run(run_server(config))
        except KeyboardInterrupt:
            pass
        except OSError as e:
            logger.error(f"Could not bind {config.server.host}:{config.server.port}: {e}")
            sys.exit(1)


if __name__ == "__main__":
    main()
