"""
Unit tests for connection dispatch.
"""

import socket
import threading

import pytest

from webworker.core.connection import Connection
from webworker.core.dispatch import (
    ThreadPerConnection,
    WorkerPool,
    create_dispatcher,
)


@pytest.fixture
def make_conn():
    sockets = []

    def factory() -> Connection:
        server_sock, client_sock = socket.socketpair()
        sockets.extend([server_sock, client_sock])
        return Connection(socket=server_sock, address=("127.0.0.1", 0))

    yield factory

    for sock in sockets:
        sock.close()


class TestThreadPerConnection:

    def test_each_connection_gets_its_own_thread(self, make_conn):
        seen = []
        lock = threading.Lock()

        def handler(conn):
            with lock:
                seen.append((conn.id, threading.current_thread().name))

        dispatcher = ThreadPerConnection(handler)
        dispatcher.start()
        conns = [make_conn() for _ in range(3)]
        for conn in conns:
            assert dispatcher.submit(conn) is True
        dispatcher.shutdown(wait=True, timeout=5.0)

        assert sorted(c for c, _ in seen) == sorted(c.id for c in conns)
        assert len({name for _, name in seen}) == 3

    def test_handler_exception_closes_connection(self, make_conn):
        def handler(conn):
            raise RuntimeError("boom")

        dispatcher = ThreadPerConnection(handler)
        conn = make_conn()
        dispatcher.submit(conn)
        dispatcher.shutdown(wait=True, timeout=5.0)

        assert conn.is_closed


class TestWorkerPool:

    def test_runs_submitted_connections(self, make_conn):
        done = []
        pool = WorkerPool(lambda conn: done.append(conn.id), max_workers=2)
        pool.start()

        conns = [make_conn() for _ in range(5)]
        for conn in conns:
            assert pool.submit(conn)
        pool.shutdown(wait=True, timeout=5.0)

        assert sorted(done) == sorted(c.id for c in conns)

    def test_full_queue_rejects(self, make_conn):
        release = threading.Event()
        started = threading.Event()

        def handler(conn):
            started.set()
            release.wait(5.0)

        pool = WorkerPool(handler, max_workers=1, queue_size=1)
        pool.start()

        assert pool.submit(make_conn())      # taken by the worker
        assert started.wait(5.0)
        assert pool.submit(make_conn())      # waits in the queue
        assert not pool.submit(make_conn())  # queue full

        release.set()
        pool.shutdown(wait=True, timeout=5.0)

    def test_shutdown_timeout_with_full_queue_and_stalled_worker(self, make_conn):
        release = threading.Event()
        started = threading.Event()

        def handler(conn):
            started.set()
            release.wait(10.0)

        pool = WorkerPool(handler, max_workers=1, queue_size=1)
        pool.start()
        assert pool.submit(make_conn())
        assert started.wait(5.0)
        assert pool.submit(make_conn())

        stopper = threading.Thread(
            target=pool.shutdown,
            kwargs={"wait": True, "timeout": 0.5},
            daemon=True,
        )
        try:
            stopper.start()
            stopper.join(timeout=3.0)

            assert not stopper.is_alive()
        finally:
            release.set()

    def test_submit_after_shutdown_rejects(self, make_conn):
        pool = WorkerPool(lambda conn: None, max_workers=1)
        pool.start()
        pool.shutdown(wait=True, timeout=5.0)

        assert pool.submit(make_conn()) is False

    def test_submit_before_start_rejects(self, make_conn):
        pool = WorkerPool(lambda conn: None, max_workers=1)

        assert pool.submit(make_conn()) is False

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            WorkerPool(lambda conn: None, max_workers=0)


def test_create_dispatcher():
    assert isinstance(create_dispatcher(lambda c: None), ThreadPerConnection)
    assert isinstance(create_dispatcher(lambda c: None, max_workers=4), WorkerPool)
