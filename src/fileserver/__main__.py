"""
=============================================================================
COMMAND LINE ENTRY POINT
=============================================================================

    python -m fileserver                         # serve the current directory
    python -m fileserver ./public --port 8000
    python -m fileserver /srv/www --host 0.0.0.0 --workers 8
    python -m fileserver . --etag-policy content --log-format json

Installed as the `fileserver` console script as well.

Options left out on the command line fall back to the FILESERVER_*
environment variables (see ServerConfig.from_env), then to the defaults.
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, LOG_LEVELS
from .server import create_server
from .static.config import EtagPolicy


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileserver",
        description="Static file HTTP server with directory listings and conditional requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fileserver                          # Serve the current directory on :8080
  fileserver ./public --port 3000     # Custom root and port
  fileserver --host 0.0.0.0           # Listen on all interfaces
  fileserver --etag-policy content    # Strong, content-hashed ETags
        """
    )

    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Document root to serve (default: FILESERVER_ROOT or current directory)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Minimum worker threads; the maximum is twice this (default: 4)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CACHING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--etag-policy", "-e",
        choices=[p.value for p in EtagPolicy],
        default=None,
        help="'stat': weak tag from size and mtime (default); "
             "'content': strong tag from an MD5 of the file"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"fileserver {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then whatever the command line sets explicitly."""
    config = ServerConfig.from_env()

    if args.root is not None:
        config.root_dir = args.root
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.min_workers = args.workers
        config.max_workers = args.workers * 2
    if args.etag_policy is not None:
        config.etag_policy = args.etag_policy
    if args.log_level is not None:
        config.log_level = args.log_level
    config.log_format = args.log_format

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = create_server(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
