"""
=============================================================================
WEB WORKER: ONE CONNECTION, ONE REQUEST, ONE RESPONSE
=============================================================================

The handler runs once per accepted connection, on its own thread, and owns
that connection exclusively. It does three things in a row:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   read_request()  ──►  Request or None                              │
    │        │                                                            │
    │        ▼                                                            │
    │   ResponseStatus.for_found()  ──►  OK / NOT_FOUND (decided once)    │
    │        │                                                            │
    │        ▼                                                            │
    │   write_header(status)                                              │
    │        │                                                            │
    │        ▼                                                            │
    │   renderer.render(status)  ──►  file with tokens, or the 404 page   │
    │        │                                                            │
    │        ▼                                                            │
    │   flush, close                                                      │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ERROR POLICY
=============================================================================

    Reading fails      → answer 404, as if the file did not exist
    Writing fails      → log it, close the connection, do not try again
    Anything else      → log with traceback, close the connection

Nothing raised while handling one connection leaves handle(): the accept
loop and the other handlers never see it.

=============================================================================
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from .access_log import AccessLogger, ConnectionLog
from .config import ServerConfig
from .core.connection import Connection, ConnectionState
from .errors import RequestReadError, ResponseWriteError
from .http.content import ContentRenderer
from .http.headers import write_header
from .http.mime_types import get_mime_type
from .http.request import read_request
from .http.resolver import PathResolver, Request
from .http.status_codes import ResponseStatus


logger = logging.getLogger(__name__)


class WebWorker:
    """
    Per-connection request handler.

    A single WebWorker is shared by every connection thread. It only holds
    configuration and stateless collaborators; everything about a request
    lives in local variables of handle().

    Args:
        config: Server configuration.
        resolver: Path resolver (defaults to one using config.base_dir).
        renderer: Body renderer (defaults to one built from config).
        header_clock: Clock for the Date header (for tests).
        access_logger: Access log sink.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        resolver: Optional[PathResolver] = None,
        renderer: Optional[ContentRenderer] = None,
        header_clock: Optional[Callable[[], datetime]] = None,
        access_logger: Optional[AccessLogger] = None,
    ):
        self.config = config or ServerConfig()
        self.resolver = resolver or PathResolver(self.config.base_dir)
        self.renderer = renderer or ContentRenderer(
            server_name=self.config.server_name,
            strip_line_endings=self.config.strip_line_endings,
        )
        self._header_clock = header_clock
        self.access_logger = access_logger or AccessLogger(self.config.log_format)

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def handle(self, conn: Connection) -> ConnectionLog:
        """
        Serve one request on the connection and close it.

        Returns:
            The access record for the connection (also logged).
        """
        logger.debug(f"[{conn.id}] Handling connection...")

        request: Optional[Request] = None
        status = ResponseStatus.NOT_FOUND
        written = 0
        error: Optional[str] = None

        with conn:
            try:
                request = self.read(conn)
                status = ResponseStatus.for_found(request is not None and request.found)
                written = self.respond(conn, status, request)
            except ResponseWriteError as e:
                written = e.bytes_written
                error = str(e)
                logger.error(f"[{conn.id}] Output error: {e}")
            except Exception as e:
                error = str(e)
                logger.exception(f"[{conn.id}] Handler error: {e}")

        record = ConnectionLog(
            connection_id=conn.id,
            client_ip=conn.client_ip,
            path=request.requested_path if request else "-",
            status_code=int(status),
            bytes_written=written,
            duration_ms=conn.age * 1000,
            timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            error=error,
        )
        self.access_logger.log(record)

        logger.debug(f"[{conn.id}] Done handling connection.")
        return record

    # =========================================================================
    # STAGES
    # =========================================================================

    def read(self, conn: Connection) -> Optional[Request]:
        """
        Read the request head.

        A failed read is answered like a missing file, so RequestReadError
        stops here and None is returned.
        """
        conn.advance(ConnectionState.READING)
        try:
            return read_request(conn.reader, self.resolver)
        except RequestReadError as e:
            logger.warning(f"[{conn.id}] {e}")
            return None

    def content_type_for(self, request: Optional[Request]) -> str:
        if self.config.detect_content_type and request is not None:
            return get_mime_type(request.resolved_path, default=self.config.content_type)
        return self.config.content_type

    def respond(
        self,
        conn: Connection,
        status: ResponseStatus,
        request: Optional[Request],
    ) -> int:
        """
        Write header and body for the decided status.

        Returns:
            Total bytes written.

        Raises:
            ResponseWriteError: If the header, the body, or the served file
                                fails with an I/O error.
        """
        ok = status is ResponseStatus.OK
        path = self.resolver.storage_path(request.resolved_path) if ok else None

        written = 0
        try:
            written += write_header(
                conn.writer,
                status,
                # The 404 page is always HTML
                self.content_type_for(request if ok else None),
                server_header=self.config.server_header,
                now=self._header_clock,
            )
            conn.advance(ConnectionState.HEADER_OK if ok else ConnectionState.HEADER_NOT_FOUND)

            written += self.renderer.render(conn.writer, status, path)
            conn.advance(ConnectionState.BODY_OK if ok else ConnectionState.BODY_NOT_FOUND)

            conn.flush()
        except OSError as e:
            raise ResponseWriteError(f"{status.status_line}: {e}", bytes_written=written) from e

        return written
