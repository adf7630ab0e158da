"""
Command-line entry point.

    python -m webworker                         # serve the current directory
    python -m webworker --port 3000             # custom port
    python -m webworker --workers 8             # bounded pool of 8 threads
    python -m webworker --timeout 10            # drop stalled clients
    python -m webworker --strip-line-endings    # legacy rendering

Options not given on the command line fall back to WEBWORKER_* environment
variables, then to the defaults in ServerConfig.
"""

import argparse
import sys

from . import __version__
from .config import LOG_FORMATS, ServerConfig
from .server import WebServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webworker",
        description="Serve files from the working directory, one request per connection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m webworker                      # Run with defaults (port 8080)
  python -m webworker --port 3000          # Custom port
  python -m webworker --host 0.0.0.0       # Listen on all interfaces
  python -m webworker --workers 8          # Bounded worker pool
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on (default: 8080)")
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        help="Seconds a client may stall before the connection is dropped (default: never)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY / CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Worker pool size; 0 spawns a thread per connection (default: 0)"
    )
    parser.add_argument(
        "--base-dir", "-d",
        help="Directory to resolve request paths against (default: working directory)"
    )
    parser.add_argument(
        "--strip-line-endings",
        action="store_true",
        default=None,
        help="Drop line terminators from served files (legacy output)"
    )
    parser.add_argument(
        "--detect-content-type",
        action="store_true",
        default=None,
        help="Set Content-Type from the file extension instead of text/html"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / META
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )
    parser.add_argument("--log-format", choices=LOG_FORMATS, help="Access log format")
    parser.add_argument("--version", "-v", action="version", version=f"webworker {__version__}")

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment config with every explicitly given flag applied on top."""
    config = ServerConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "timeout": args.timeout,
        "max_workers": args.workers,
        "base_dir": args.base_dir,
        "strip_line_endings": args.strip_line_endings,
        "detect_content_type": args.detect_content_type,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    return config


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        # Bad WEBWORKER_* values surface here as ValueError
        config = config_from_args(args)
        server = WebServer(config)
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
