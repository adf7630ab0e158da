"""
=============================================================================
WEB SERVER
=============================================================================

Wires the pieces together:

    ServerConfig ──► SocketServer (accept loop)
                          │
                          ▼
                     dispatcher.submit(conn)     thread per connection,
                          │                      or a bounded pool
                          ▼
                     WebWorker.handle(conn)      read → header → body → close

The accept loop and the dispatcher know nothing about HTTP; the handler
knows nothing about threads.

=============================================================================
"""

import logging
from typing import Optional

from .access_log import setup_logging
from .config import ServerConfig
from .core import SocketServer, Connection, create_dispatcher
from .handler import WebWorker


logger = logging.getLogger(__name__)


class WebServer:
    """
    Single-request file server.

    Usage:
        server = WebServer(ServerConfig(port=8080))
        server.run()   # blocks until Ctrl+C / SIGTERM

    Args:
        config: Server configuration. Defaults are used if omitted.
        worker: Connection handler. Built from config if omitted.
    """

    def __init__(self, config: Optional[ServerConfig] = None, worker: Optional[WebWorker] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.worker = worker or WebWorker(self.config)
        self._socket_server = SocketServer(self.config)
        self._dispatcher = create_dispatcher(
            self.worker.handle,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )

    @property
    def address(self):
        return self._socket_server.address

    def run(self, configure_logging: bool = True):
        """
        Start serving (blocking).

        Args:
            configure_logging: Call setup_logging() from config first.
                               Embedders with their own logging pass False.
        """
        if configure_logging:
            setup_logging(self.config.log_level)

        self._dispatcher.start()

        mode = (
            f"{self.config.max_workers} workers"
            if self.config.max_workers
            else "thread per connection"
        )
        logger.info(f"Starting web server on {self.config.host}:{self.config.port} ({mode})")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def stop(self):
        """Stop accepting; run() returns once in-flight work is done."""
        self._socket_server.shutdown()

    def _handle_connection(self, conn: Connection):
        if not self._dispatcher.submit(conn):
            # No response is written: the handler is the only writer
            logger.warning(f"[{conn.id}] Server overloaded, dropping connection")
            conn.close()

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._dispatcher.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")
