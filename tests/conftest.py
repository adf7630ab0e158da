"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator, Tuple

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from webworker import ServerConfig, WebServer, WebWorker
from webworker.core.connection import Connection


PAGE_HTML = (
    b"<html>\n"
    b"<body>\n"
    b"<p>Served by <cs371server> at <cs371date></p>\n"
    b"<p>Plain line</p>\n"
    b"</body>\n"
    b"</html>\n"
)


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request for page.html."""
    return (
        b"GET /page.html HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"\r\n"
    )


@pytest.fixture
def served_dir(tmp_path: Path, monkeypatch) -> Path:
    """
    A working directory with a few files in it.

    Paths are resolved relative to the process working directory, so the
    test chdirs into it.
    """
    (tmp_path / "page.html").write_bytes(PAGE_HTML)
    (tmp_path / "a.html").write_bytes(b"<p>A <cs371server></p>\n")
    (tmp_path / "b.html").write_bytes(b"<p>B <cs371server></p>\n")
    (tmp_path / "plain.txt").write_bytes(b"line one\r\nline two\r\n")
    (tmp_path / "docs").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        log_level="WARNING",
    )


def split_response(raw: bytes) -> Tuple[bytes, bytes]:
    """Split a raw response at the blank line ending the LF-only head."""
    head, sep, body = raw.partition(b"\n\n")
    assert sep, f"no header terminator in {raw!r}"
    return head, body


def header_fields(head: bytes) -> dict:
    """Parse "Name: value" lines (status line excluded)."""
    fields = {}
    for line in head.decode().split("\n")[1:]:
        name, _, value = line.partition(": ")
        fields[name] = value
    return fields


def read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def exchange(worker: WebWorker, request: bytes, close_write: bool = False):
    """
    Run one connection through the handler over a socket pair.

    Returns:
        (raw response bytes, ConnectionLog record, Connection)
    """
    server_sock, client_sock = socket.socketpair()
    conn = Connection(socket=server_sock, address=("127.0.0.1", 0), timeout=5.0)
    result = {}

    def run():
        result["record"] = worker.handle(conn)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()

    with client_sock:
        client_sock.settimeout(5.0)
        client_sock.sendall(request)
        if close_write:
            client_sock.shutdown(socket.SHUT_WR)
        raw = read_all(client_sock)

    thread.join(timeout=5.0)
    assert not thread.is_alive()
    return raw, result["record"], conn


class RunningServer:
    """WebServer running in a background thread."""

    def __init__(self, server: WebServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def request(self, raw: bytes) -> bytes:
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as sock:
            sock.sendall(raw)
            return read_all(sock)

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def running_server(served_dir: Path, config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A live server on a free port, serving served_dir."""
    srv = RunningServer(WebServer(config))
    srv.start()

    yield srv

    srv.stop()
