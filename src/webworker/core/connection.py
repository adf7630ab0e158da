"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with what the handler needs: a buffered
binary reader for line-oriented input, a buffered writer for the response,
a lifecycle state, and a close() that runs exactly once.

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

A request line may arrive split over several recv() calls:

    First recv():  "GET /inde"
    Second recv(): "x.html HTTP/1.1\\r\\n"

The reader returned by socket.makefile("rb") buffers those pieces and its
readline() blocks until a whole line is available. There is no polling
and no sleeping in Python code; the thread waits inside the kernel.

=============================================================================
LIFECYCLE
=============================================================================

    ┌─────┐    ┌─────────┐    ┌───────────┐    ┌─────────┐    ┌────────┐
    │ NEW │───►│ READING │───►│ HEADER_OK │───►│ BODY_OK │───►│ CLOSED │
    └─────┘    └─────────┘    └───────────┘    └─────────┘    └────────┘
                    │                                              ▲
                    │         ┌──────────────────┐  ┌────────────────┐
                    └────────►│ HEADER_NOT_FOUND │─►│ BODY_NOT_FOUND │
                              └──────────────────┘  └────────────────┘

No transition goes back. CLOSED is reached from any state, errors
included, and a connection serves exactly one request.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Per-connection states, in the order they are visited."""
    NEW = "new"                            # Accepted, nothing read yet
    READING = "reading"                    # Reading the request head
    HEADER_OK = "header_ok"                # 200 head written
    HEADER_NOT_FOUND = "header_not_found"  # 404 head written
    BODY_OK = "body_ok"                    # File content written
    BODY_NOT_FOUND = "body_not_found"      # 404 page written
    CLOSED = "closed"                      # Socket released


_TRANSITIONS = {
    ConnectionState.NEW: {ConnectionState.READING},
    ConnectionState.READING: {
        ConnectionState.HEADER_OK,
        ConnectionState.HEADER_NOT_FOUND,
    },
    ConnectionState.HEADER_OK: {ConnectionState.BODY_OK},
    ConnectionState.HEADER_NOT_FOUND: {ConnectionState.BODY_NOT_FOUND},
    ConnectionState.BODY_OK: set(),
    ConnectionState.BODY_NOT_FOUND: set(),
    ConnectionState.CLOSED: set(),
}


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier used in log lines.
        state: Current lifecycle state.
        created_at: Timestamp when the connection was accepted.
        timeout: Read/write deadline in seconds, None = block forever.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = None

    _reader: Optional[BinaryIO] = field(default=None, repr=False)
    _writer: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        # settimeout(None) puts the socket in plain blocking mode
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address ("" for unnamed socket pairs)."""
        if isinstance(self.address, tuple) and self.address:
            return str(self.address[0])
        return ""

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    @property
    def reader(self) -> BinaryIO:
        """Buffered binary reader over the socket (created on first use)."""
        if self._reader is None:
            self._reader = self.socket.makefile("rb")
        return self._reader

    @property
    def writer(self) -> BinaryIO:
        """Buffered binary writer over the socket (created on first use)."""
        if self._writer is None:
            self._writer = self.socket.makefile("wb")
        return self._writer

    # =========================================================================
    # STATE
    # =========================================================================

    def advance(self, state: ConnectionState) -> None:
        """
        Move to the next state.

        CLOSED is not reached through here; close() sets it.

        Raises:
            RuntimeError: If the state machine does not allow the move.
        """
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"[{self.id}] Illegal transition {self.state.value} -> {state.value}"
            )
        self.state = state

    # =========================================================================
    # WRITING
    # =========================================================================

    def flush(self) -> None:
        """Push buffered response bytes onto the wire."""
        if self._writer is not None:
            self._writer.flush()

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection. Safe to call more than once; only the first
        call does anything.

        1. flush and close the file objects (buffered bytes go out first)
        2. shutdown(SHUT_WR) sends FIN so the client sees end of response
        3. close() releases the descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        for stream in (self._writer, self._reader):
            if stream is None:
                continue
            try:
                stream.close()
            except OSError as e:
                # A writer whose peer went away fails its final flush
                logger.debug(f"[{self.id}] Stream close failed: {e}")

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
