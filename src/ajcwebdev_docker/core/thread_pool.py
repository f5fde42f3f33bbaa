"""
=============================================================================
THREAD POOL
=============================================================================

Thread-per-connection without a thread per connection: a fixed set of
workers pull accepted connections off a bounded queue.

    accept loop ──put──► ┌──────────────────┐ ──get──► Worker-0
                         │  queue.Queue     │ ──get──► Worker-1
                         │  (bounded)       │ ──get──► Worker-2
                         └──────────────────┘ ──get──► Worker-3
                                 │
                        full? → submit() returns False → 503
                        waited past timeout? → on_expire(*args) → 503

Every request to the responder is handled identically and shares no
mutable state, so workers never need to coordinate with each other. The
queue is the only synchronisation point.

=============================================================================
SHUTDOWN: THE POISON PILL
=============================================================================

A worker blocked in queue.get() cannot be interrupted. On shutdown the
pool puts one `None` per worker on the queue; each worker that receives
`None` exits its loop.

=============================================================================
"""

import threading
import queue
import time
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred call: func(*args, **kwargs).

    If the task sat in the queue longer than timeout, func is skipped and
    on_expire(*args) runs instead, so the owner can release what args hold.
    """

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    timeout: Optional[float] = None
    on_expire: Optional[Callable[..., Any]] = None
    submitted_at: float = field(default_factory=time.time)

    @property
    def waited(self) -> float:
        return time.time() - self.submitted_at

    @property
    def expired(self) -> bool:
        return bool(self.timeout) and self.waited > self.timeout


class Worker(threading.Thread):
    """
    Pulls tasks until it receives the poison pill.

    Task exceptions are logged; they never kill the worker.
    """

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            # A connection that sat in the queue longer than the socket
            # timeout has most likely been abandoned by the client.
            if task.expired:
                logger.warning(
                    f"Task timed out before execution "
                    f"(waited {task.waited:.2f}s, timeout was {task.timeout}s)"
                )
                if task.on_expire is not None:
                    task.on_expire(*task.args)
                return

            task.func(*task.args, **task.kwargs)
            logger.debug(f"Worker {self.worker_id} completed task in {time.time() - start_time:.3f}s")

        except Exception as e:
            logger.exception(
                f"Worker {self.worker_id} task failed after {time.time() - start_time:.3f}s: {e}"
            )

        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-minimum, bounded-maximum worker pool.

        pool = ThreadPool(min_workers=4, max_workers=16)
        pool.start()
        pool.submit(handle_connection, args=(conn,), timeout=30, on_expire=reject)
        pool.shutdown(wait=True, timeout=30)

    When every worker is busy and work is waiting, one more worker is
    started, up to max_workers.
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        queue_size: int = 100,
    ):
        if min_workers < 1 or max_workers < min_workers:
            raise ValueError("Need 1 <= min_workers <= max_workers")

        self.min_workers = min_workers
        self.max_workers = max_workers

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self):
        """Start min_workers threads. A no-op if already started."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers} workers")
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
        self._started = True

    def _add_worker(self) -> Worker:
        # caller holds self._lock
        worker = Worker(task_queue=self._task_queue, worker_id=self._next_worker_id)
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        timeout: Optional[float] = None,
        on_expire: Optional[Callable[..., Any]] = None,
    ) -> bool:
        """
        Queue a task without blocking the caller.

        Args:
            timeout: Longest time the task may wait in the queue.
            on_expire: Called with args instead of func once the task
                has waited longer than timeout.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(
            func=func,
            args=args,
            kwargs=kwargs or {},
            timeout=timeout,
            on_expire=on_expire,
        )

        try:
            self._task_queue.put(task, block=False)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        with self._lock:
            all_busy = all(w.state == WorkerState.BUSY for w in self._workers)
            if all_busy and len(self._workers) < self.max_workers and not self._task_queue.empty():
                logger.debug(f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers")
                self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued tasks drain before stopping workers.
            timeout: Upper bound on the drain, in seconds.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = time.time() + timeout if timeout else None
            while not self._task_queue.empty():
                if deadline and time.time() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    break
                time.sleep(0.05)

        with self._lock:
            workers = list(self._workers)

        for _ in workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                break  # workers are daemons; the process exit reaps them

        for worker in workers:
            worker.join(timeout=2.0)

        with self._lock:
            self._workers.clear()
        self._started = False
        logger.info("Thread pool shutdown complete")
