"""
Logging setup and the per-connection access log.

Two kinds of log output:

    webworker.*         Diagnostics from each module ("Handling connection...",
                        every request line, the resolved path). Mostly DEBUG.

    webworker.access    One line per finished connection, in Apache-like
                        text or JSON for log aggregators.

Configure the access logger on its own if you want it in a separate file:

    logging.getLogger("webworker.access").addHandler(file_handler)
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("webworker.access")


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging and the webworker logger level."""
    numeric = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )

    logging.getLogger("webworker").setLevel(numeric)


@dataclass
class ConnectionLog:
    """
    Structured record of one handled connection.

    Attributes:
        connection_id: Short id shared with the diagnostic log lines.
        client_ip: Peer address.
        path: Requested path, "-" when no GET line was read.
        status_code: 200 or 404.
        bytes_written: Header plus body bytes handed to the socket.
        duration_ms: Time from accept to close.
        timestamp: When the connection finished.
        error: Fatal error text, None on success.
    """
    connection_id: str
    client_ip: str
    path: str
    status_code: int
    bytes_written: int
    duration_ms: float
    timestamp: str
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "connection_id": self.connection_id,
            "client_ip": self.client_ip,
            "path": self.path,
            "status_code": self.status_code,
            "bytes_written": self.bytes_written,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
            "error": self.error,
        }

    def to_text(self) -> str:
        """Format as an Apache-style access line."""
        text = (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"GET {self.path}" {self.status_code} '
            f'{self.bytes_written} {self.duration_ms:.2f}ms'
        )
        if self.error:
            text += f" error={self.error!r}"
        return text


class AccessLogger:
    """
    Emits ConnectionLog records on the webworker.access logger.

    Failed connections are logged at WARNING, everything else at INFO.
    """

    def __init__(self, log_format: str = "text"):
        self.log_format = log_format

    def format(self, record: ConnectionLog) -> str:
        if self.log_format == "json":
            return json.dumps(record.to_dict())
        return record.to_text()

    def log(self, record: ConnectionLog) -> None:
        level = logging.WARNING if record.error else logging.INFO
        logger.log(level, self.format(record))
