"""
Core networking: the listening socket, per-client connections, and the
threads handlers run on.
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .dispatch import ThreadPerConnection, WorkerPool, create_dispatcher

__all__ = [
    "SocketServer",         # Accept loop
    "Connection",           # One client socket, one request
    "ConnectionState",      # Per-connection state machine
    "ThreadPerConnection",  # Default dispatch: a thread per client
    "WorkerPool",           # Bounded dispatch
    "create_dispatcher",
]
