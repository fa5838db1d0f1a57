"""
=============================================================================
THREAD POOL
=============================================================================

Each accepted connection becomes one task. Workers pull tasks from a
bounded queue, so a burst of clients waits in line instead of spawning a
thread apiece.

    ┌──────────────────────────────────────────────────────────────────┐
    │                          ThreadPool                               │
    │                                                                   │
    │   submit(task) ──► ┌──────────────────────┐                       │
    │                    │ queue (maxsize=100)  │                       │
    │                    └──────────┬───────────┘                       │
    │                ┌──────────────┼──────────────┐                    │
    │                ▼              ▼              ▼                    │
    │           Worker-0       Worker-1  ...  Worker-N                  │
    │                                                                   │
    │   min_workers start with the pool; while every worker is busy     │
    │   and tasks are waiting, one more is added, up to max_workers.    │
    └──────────────────────────────────────────────────────────────────┘

Workers stop when they take a None ("poison pill") off the queue.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any, List
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: func(*args, **kwargs)."""

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)


class Worker(threading.Thread):
    """
    Runs tasks from the shared queue until it receives None.

    A task that raises is logged and counted; the worker carries on with
    the next one.
    """

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int, idle_timeout: float = 60.0):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

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
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
            logger.debug(f"Worker {self.worker_id} completed task in {time.time() - start_time:.3f}s")
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(f"Worker {self.worker_id} task failed after {time.time() - start_time:.3f}s: {e}")
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        self._shutdown.set()


class ThreadPool:
    """
    Bounded pool of worker threads.

        pool = ThreadPool(min_workers=4, max_workers=16)
        pool.start()
        pool.submit(handle_connection, args=(conn,), block=False)
        ...
        pool.shutdown(wait=False)
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        queue_size: int = 100,
        idle_timeout: float = 60.0,
        on_discard: Optional[Callable[[Task], None]] = None,
    ):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.max_queue_size = queue_size
        self.idle_timeout = idle_timeout
        # Called with each queued task dropped by shutdown(wait=False)
        self.on_discard = on_discard

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        self._lock = threading.Lock()  # guards _workers

        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self):
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers} workers")

        with self._lock:
            for _ in range(self.min_workers):
                self._spawn_worker()

        self._shutdown = False
        self._started = True

    def _spawn_worker(self) -> Worker:
        # Caller holds self._lock
        worker = Worker(
            task_queue=self._task_queue,
            worker_id=self._next_worker_id,
            idle_timeout=self.idle_timeout,
        )
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None,
    ) -> bool:
        """
        Queue func(*args, **kwargs) for a worker.

        Returns:
            True if queued; False if the queue was full (only possible with
            block=False or a queue_timeout).

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started or self._shutdown:
            raise RuntimeError("Thread pool is not running")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return

            busy = sum(1 for w in self._workers if w.state == WorkerState.BUSY)
            if busy == len(self._workers) and self._task_queue.qsize() > 0:
                logger.debug(f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers")
                self._spawn_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop every worker.

        Args:
            wait: Let queued tasks finish first. With wait=False anything
                  still queued is dropped and handed to on_discard.
            timeout: Upper bound on how long to wait for the queue to drain.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = time.time() + timeout if timeout else None
            while not self._task_queue.empty():
                if deadline and time.time() > deadline:
                    logger.warning("Shutdown timeout, dropping queued tasks")
                    break
                time.sleep(0.05)
        else:
            self._drain_queue()

        with self._lock:
            workers = list(self._workers)
            self._workers.clear()

        for worker in workers:
            worker.shutdown()
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass

        for worker in workers:
            worker.join(timeout=2.0)

        self._started = False
        logger.info("Thread pool shutdown complete")

    def _drain_queue(self):
        while True:
            try:
                task = self._task_queue.get_nowait()
            except queue.Empty:
                return

            try:
                if task is not None and self.on_discard:
                    self.on_discard(task)
            except Exception as e:
                logger.exception(f"Discarding queued task failed: {e}")
            finally:
                self._task_queue.task_done()

    @property
    def worker_count(self) -> int:
        with self._lock:
            return len(self._workers)

    @property
    def busy_workers(self) -> int:
        with self._lock:
            return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def queue_size(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        with self._lock:
            workers = list(self._workers)

        return {
            "workers": {
                "total": len(workers),
                "busy": sum(1 for w in workers if w.state == WorkerState.BUSY),
                "idle": sum(1 for w in workers if w.state == WorkerState.IDLE),
            },
            "queue": {
                "size": self._task_queue.qsize(),
                "max_size": self.max_queue_size,
            },
            "tasks": {
                "completed": sum(w.tasks_completed for w in workers),
                "failed": sum(w.tasks_failed for w in workers),
            },
        }
