"""
webworker: a minimal single-request HTTP file responder.

Every accepted connection gets its own handler, which reads one request,
looks the requested path up relative to the working directory, and answers
with the file (two template tokens substituted) or a fixed 404 page.

Quick start:

    from webworker import WebServer, ServerConfig

    WebServer(ServerConfig(port=8080)).run()

or from the shell:

    python -m webworker --port 8080
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .errors import WebWorkerError, RequestReadError, ResponseWriteError
from .handler import WebWorker
from .server import WebServer

__all__ = [
    "ServerConfig",
    "WebServer",
    "WebWorker",
    "WebWorkerError",
    "RequestReadError",
    "ResponseWriteError",
    "__version__",
]
