"""
=============================================================================
CLI ENTRY POINT
=============================================================================

This is the command the Dockerfile runs:

    CMD ["python", "-m", "ajcwebdev_docker"]

=============================================================================
USAGE
=============================================================================

    # Container defaults (0.0.0.0:8080)
    python -m ajcwebdev_docker

    # Local development
    python -m ajcwebdev_docker --host 127.0.0.1 --port 3000

    # Structured access logs
    python -m ajcwebdev_docker --log-format json

Environment variables (HTTP_HOST, HTTP_PORT, ...) are read first; flags
given on the command line override them.

=============================================================================
EXIT STATUS
=============================================================================

    0   Stopped by SIGINT / SIGTERM
    1   Could not bind the port, or invalid configuration
    2   Bad command-line arguments (argparse)

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig
from .server import create_app


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Argument parser whose defaults come from the environment."""
    parser = argparse.ArgumentParser(
        prog="ajcwebdev_docker",
        description="Serve <h2>ajcwebdev-docker</h2> on GET /",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ajcwebdev_docker                          # 0.0.0.0:8080
  python -m ajcwebdev_docker --host 127.0.0.1 -p 3000 # local only
  HTTP_LOG_FORMAT=json python -m ajcwebdev_docker     # JSON access log
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE / LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help=f"Maximum worker threads (default: {defaults.max_workers})"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"ajcwebdev-docker {__version__}"
    )

    return parser


def load_config(argv: Optional[Sequence[str]] = None) -> ServerConfig:
    """Defaults ← environment ← command line."""
    env = ServerConfig.from_env()
    args = build_parser(env).parse_args(argv)

    return ServerConfig(
        host=args.host,
        port=args.port,
        min_workers=max(1, min(env.min_workers, args.workers)),
        max_workers=args.workers,
        timeout=env.timeout,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run the responder until it is stopped.

    Bind failures (port in use, permission denied) and invalid settings
    are reported on stderr and turned into exit status 1.
    """
    try:
        config = load_config(argv)
        server = create_app(config)
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"Error: cannot listen on {config.host}:{config.port}: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
