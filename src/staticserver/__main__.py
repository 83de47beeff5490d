"""
=============================================================================
STATIC SERVER CLI ENTRY POINT
=============================================================================

    staticserver                        # port 8080, serve ".", one thread per CPU
    staticserver 9090                   # port 9090
    staticserver 9090 ./public          # serve ./public
    staticserver 9090 ./public 16       # 16 worker threads
    staticserver --host 127.0.0.1       # loopback only
    python -m staticserver ...          # same thing

Unset positional arguments fall back to the STATIC_* environment
variables, then to the ServerConfig defaults.

Exit status:
    0   clean shutdown (Ctrl+C, SIGTERM)
    1   invalid configuration, or the port could not be bound

=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .errors import StartupError
from .server import HTTPServer, configure_logging


logger = logging.getLogger("staticserver")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Multi-threaded static file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  staticserver                          # Run with defaults
  staticserver 3000 ./public            # Serve ./public on port 3000
  staticserver 3000 ./public 8          # ... with 8 worker threads
  staticserver --host 127.0.0.1 3000    # Loopback only
        """
    )

    parser.add_argument(
        "port",
        nargs="?",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "doc_root",
        nargs="?",
        default=None,
        help="Directory to serve files from (default: .)"
    )

    parser.add_argument(
        "threads",
        nargs="?",
        type=int,
        default=None,
        help="Number of worker threads (default: CPU count, or 4)"
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Address to bind to (default: 0.0.0.0)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserver {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, run the server until it is stopped.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig.from_env(
            host=args.host,
            port=args.port,
            doc_root=args.doc_root,
            threads=args.threads,
            log_level=args.log_level,
            log_format=args.log_format,
        )
    except ValueError as e:
        # Non-numeric STATIC_PORT / STATIC_THREADS
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(config.log_level)

    try:
        server = HTTPServer(config)
        server.run()
    except (StartupError, ValueError) as e:
        logger.error(f"Startup failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
