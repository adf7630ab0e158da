"""
=============================================================================
CONNECTION DISPATCH
=============================================================================

Decides which thread runs the handler for an accepted connection.

    ThreadPerConnection   A new thread per connection. Unbounded: a burst of
                          N clients means N threads. This is the default.

    WorkerPool            A fixed set of worker threads pulling connections
                          from a bounded queue. When the queue is full the
                          connection is refused instead of growing forever.

    ┌──────────────┐     ┌────────────────────┐     ┌─────────────────────┐
    │ accept loop  │────►│ dispatcher.submit  │────►│ handler(conn)       │
    └──────────────┘     └────────────────────┘     │ (own thread, owns   │
                                                    │  conn exclusively)  │
                                                    └─────────────────────┘

Handlers share no mutable state, so neither strategy needs locks around
request handling. The only lock guards the live-thread bookkeeping used for
shutdown.

=============================================================================
"""

import logging
import queue
import threading
import time
from typing import Callable, List, Optional

from .connection import Connection


logger = logging.getLogger(__name__)


ConnectionHandler = Callable[[Connection], object]


def _run_handler(handler: ConnectionHandler, conn: Connection) -> None:
    """
    Run a handler and make sure nothing escapes the thread.

    The handler already catches its own errors; this is the last line for
    bugs, so one broken connection never takes a worker down.
    """
    try:
        handler(conn)
    except Exception as e:
        logger.exception(f"[{conn.id}] Unhandled error in handler: {e}")
        conn.close()


class ThreadPerConnection:
    """
    Spawn one daemon thread per connection.

    Usage:
        dispatcher = ThreadPerConnection(worker.handle)
        dispatcher.start()
        dispatcher.submit(conn)      # returns immediately
        dispatcher.shutdown(wait=True, timeout=5.0)
    """

    def __init__(self, handler: ConnectionHandler):
        self.handler = handler
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()

    def start(self) -> None:
        """Nothing to prepare; threads are created on demand."""

    def submit(self, conn: Connection) -> bool:
        thread = threading.Thread(
            target=_run_handler,
            args=(self.handler, conn),
            name=f"WebWorker-{conn.id}",
            daemon=True,
        )
        with self._lock:
            # Forget threads that already finished
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        thread.start()
        return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Optionally wait for in-flight connections to finish."""
        if not wait:
            return
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)


class Worker(threading.Thread):
    """
    Worker thread that processes connections from the queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   1. Wait for a connection from the queue (blocking)                │
    │   2. None is the "poison pill": exit the loop                       │
    │   3. Run the handler                                                │
    │   4. task_done(), back to 1                                         │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, task_queue: queue.Queue, handler: ConnectionHandler, worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.handler = handler
        self.worker_id = worker_id

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            conn = self.task_queue.get()
            try:
                if conn is None:
                    break
                _run_handler(self.handler, conn)
            finally:
                self.task_queue.task_done()

        logger.debug(f"Worker {self.worker_id} stopped")


class WorkerPool:
    """
    Fixed-size pool of worker threads with a bounded connection queue.

    Args:
        handler: Called with each connection on a worker thread.
        max_workers: Number of worker threads.
        queue_size: Connections allowed to wait for a free worker.
    """

    def __init__(self, handler: ConnectionHandler, max_workers: int = 8, queue_size: int = 100):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        self.handler = handler
        self.max_workers = max_workers
        self.queue_size = queue_size

        # queue.Queue is thread-safe; put_nowait fails fast when full
        self._task_queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        self._started = False
        self._shutdown = False

    def start(self) -> None:
        if self._started:
            return

        logger.info(f"Starting worker pool with {self.max_workers} workers")
        for worker_id in range(self.max_workers):
            worker = Worker(self._task_queue, self.handler, worker_id)
            self._workers.append(worker)
            worker.start()

        self._started = True

    def submit(self, conn: Connection) -> bool:
        """
        Queue a connection for a worker.

        Returns:
            False if the pool is shut down or the queue is full. The caller
            owns the connection in that case and must close it.
        """
        if self._shutdown or not self._started:
            return False

        try:
            self._task_queue.put_nowait(conn)
            return True
        except queue.Full:
            logger.warning(f"[{conn.id}] Worker queue full ({self.queue_size})")
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop the workers after the queued connections are handled.

        Args:
            wait: Wait for queued connections and for the workers to exit.
            timeout: Upper bound for draining the queue and for each join.
                     Past it, workers still busy with a stalled client are
                     left behind (they are daemon threads).
        """
        if self._shutdown:
            return
        self._shutdown = True

        if wait:
            if timeout is not None:
                deadline = time.time() + timeout
                while not self._task_queue.empty():
                    if time.time() > deadline:
                        logger.warning("Worker pool shutdown timeout, forcing stop")
                        break
                    time.sleep(0.05)
            else:
                self._task_queue.join()

        for _ in self._workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                # Busy workers never reach the pill; they die with the process
                pass

        if wait:
            for worker in self._workers:
                worker.join(timeout)

        logger.info("Worker pool stopped")


def create_dispatcher(handler: ConnectionHandler, max_workers: int = 0, queue_size: int = 100):
    """Pick the dispatch strategy from the configured worker count."""
    if max_workers > 0:
        return WorkerPool(handler, max_workers=max_workers, queue_size=queue_size)
    return ThreadPerConnection(handler)
