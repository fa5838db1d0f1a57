"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

    python -m crudserver                        # 127.0.0.1:8080
    python -m crudserver --port 3000
    python -m crudserver --host 0.0.0.0 --workers 8
    python -m crudserver --log-level DEBUG --log-format json

Installed as the `crud-server` console script as well.

Exit status is 1 if the listening port cannot be bound.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .app import create_app
from .config import DEFAULT_PORT, LOG_FORMATS, LOG_LEVELS, ServerConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crudserver",
        description="In-memory users CRUD server with demo routes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m crudserver                       # Run with defaults
  python -m crudserver --port 3000           # Custom port
  python -m crudserver --host 0.0.0.0        # Listen on all interfaces
  python -m crudserver --log-format json     # JSON access log
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port to listen on (default: {DEFAULT_PORT})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=4,
        help="Number of worker threads (default: 4, max will be 2x this)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default="text",
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"crudserver {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        min_workers=args.workers,
        max_workers=args.workers * 2,
        log_level=args.log_level,
        log_format=args.log_format,
    )

    try:
        server = create_app(config)
    except ValueError as e:
        parser.error(str(e))

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
