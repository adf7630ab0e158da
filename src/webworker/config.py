"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the web worker server.

Every option lives in one dataclass so the handler, the socket server and
the CLI all read the same values:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m webworker --port 3000                            │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── WEBWORKER_PORT=3000 python -m webworker                    │
    │                                                                     │
    │   3. Defaults in this file                                          │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The defaults reproduce the classic behavior: thread per connection, no
timeouts, "text/html" for every response, and the two fixed server names
("Jon's very own server" in the header, "Luis Server" in page content).

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_FORMATS = ("text", "json")


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable ("1", "true", "yes", "on")."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_timeout(name: str) -> Optional[float]:
    value = os.getenv(name)
    if not value:
        return None
    return float(value)


@dataclass
class ServerConfig:
    """
    Configuration for the web worker server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    CONCURRENCY
    - max_workers, queue_size

    RESPONSE
    - content_type, detect_content_type, server_header, server_name,
      strip_line_endings, base_dir

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """The IP address to bind to."""

    port: int = 8080
    """The port number to listen on (0 lets the OS pick one)."""

    backlog: int = 128
    """Maximum number of queued connections."""

    timeout: Optional[float] = None
    """
    Read/write deadline for a single connection, in seconds.
    None = block forever, which is how a stalled client was always handled.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    max_workers: int = 0
    """
    0 = spawn one thread per accepted connection (unbounded).
    N = hand connections to a fixed pool of N worker threads.
    """

    queue_size: int = 100
    """Pending connections the worker pool accepts before rejecting."""

    # ─────────────────────────────────────────────────────────────────────
    # RESPONSE
    # ─────────────────────────────────────────────────────────────────────

    content_type: str = "text/html"
    """Content-Type sent with every response."""

    detect_content_type: bool = False
    """Derive Content-Type from the file extension instead."""

    server_header: str = "Jon's very own server"
    """Value of the Server header line."""

    server_name: str = "Luis Server"
    """Text substituted for the <cs371server> token in served files."""

    strip_line_endings: bool = False
    """
    True reproduces the legacy rendering that drops every line terminator
    of the served file. False writes lines with their endings intact.
    """

    base_dir: Optional[str] = None
    """Directory request paths are resolved against (None = cwd)."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        WEBWORKER_HOST                Server host (default: 127.0.0.1)
        WEBWORKER_PORT                Server port (default: 8080)
        WEBWORKER_TIMEOUT             Connection deadline in seconds
        WEBWORKER_WORKERS             Worker pool size (0 = thread each)
        WEBWORKER_BASE_DIR            Directory to serve from
        WEBWORKER_STRIP_LINE_ENDINGS  Legacy rendering (true/false)
        WEBWORKER_LOG_LEVEL           Logging level (default: INFO)
        WEBWORKER_LOG_FORMAT          text or json (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("WEBWORKER_HOST", "127.0.0.1"),
            port=int(os.getenv("WEBWORKER_PORT", "8080")),
            timeout=_env_timeout("WEBWORKER_TIMEOUT"),
            max_workers=int(os.getenv("WEBWORKER_WORKERS", "0")),
            base_dir=os.getenv("WEBWORKER_BASE_DIR"),
            strip_line_endings=_env_flag("WEBWORKER_STRIP_LINE_ENDINGS"),
            log_level=os.getenv("WEBWORKER_LOG_LEVEL", "INFO"),
            log_format=os.getenv("WEBWORKER_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails immediately instead of
        on the first connection.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.max_workers < 0:
            raise ValueError("max_workers must be >= 0")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f"log_format must be one of {', '.join(LOG_FORMATS)}"
            )
