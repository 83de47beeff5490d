"""
=============================================================================
WORKER POOL
=============================================================================

A fixed set of worker threads draining one shared FIFO queue of tasks.
Each task is "handle this accepted connection".

=============================================================================
FIXED POOL VS THREAD PER CONNECTION
=============================================================================

    Thread per connection (no pool):

        for conn in accept_connections():
            threading.Thread(target=handle, args=(conn,)).start()

        - a thread is created and destroyed for every request
        - nothing caps how many exist at once

    Fixed pool:

        pool = WorkerPool(8)
        for conn in accept_connections():
            pool.submit(handle, conn)

        - 8 threads, created once, reused for the whole process lifetime
        - at most 8 connections are being handled at any moment
        - the rest wait their turn in the queue

The pool never grows or shrinks. Its size is decided at startup.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           WorkerPool                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   submit(task) ──►  ┌───┬───┬───┬───┬───┐                           │
    │                     │ T5│ T4│ T3│ T2│ T1│ ──► queue.get()            │
    │                     └───┴───┴───┴───┴───┘        │                   │
    │                     queue.Queue (FIFO)           │                   │
    │                                                  ▼                   │
    │                          ┌──────────┬──────────┬──────────┐          │
    │                          │ Worker-0 │ Worker-1 │ Worker-2 │          │
    │                          │  (busy)  │  (idle)  │  (busy)  │          │
    │                          └──────────┴──────────┴──────────┘          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

queue.Queue is a deque guarded by a mutex and a condition variable.
put() appends and notifies ONE waiting getter; get() sleeps on the
condition while the deque is empty. No lock is held while a task runs.

=============================================================================
SHUTDOWN: DRAIN, THEN STOP
=============================================================================

    pool.shutdown()
        1. set the shutdown flag (further submit() calls raise)
        2. put one None ("poison pill") per worker at the END of the queue
        3. join every worker

Because the queue is FIFO, every task submitted before shutdown sits in
front of the pills and is executed first. A worker that pulls a pill
exits. When all workers have exited, every task has run.

The flag check in submit() and the pill insertion in shutdown() happen
under the same lock. Without it a submit() racing with shutdown() could
land a task BEHIND the pills, where no worker would ever pick it up.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states, for monitoring."""
    IDLE = "idle"        # Waiting for a task
    BUSY = "busy"        # Executing a task
    STOPPED = "stopped"  # Thread exited


@dataclass
class Task:
    """
    A deferred function call: "call func(*args, **kwargs) later".

    Attributes:
        func: The function to execute.
        args: Positional arguments.
        kwargs: Keyword arguments.
        submitted_at: time.monotonic() at submission, for queue-wait logging.
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """
    Worker thread that runs tasks from the shared queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Worker Loop                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. queue.get()  (sleeps until a task or a pill arrives)            │
    │          │                                                           │
    │          ├── None  → exit the loop                                   │
    │          │                                                           │
    │          ▼                                                           │
    │   2. run the task to completion                                      │
    │          │                                                           │
    │          ├── raised? log it, count it, carry on                      │
    │          │                                                           │
    │          └── back to 1                                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        # daemon=True: a worker stuck in a blocking send() must not keep
        # the interpreter alive after the main thread has given up on it
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id

        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        try:
            while True:
                task = self.task_queue.get()
                try:
                    if task is None:
                        break
                    self._execute_task(task)
                finally:
                    self.task_queue.task_done()
        finally:
            self.state = WorkerState.STOPPED
            logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        """
        Run one task.

        A failing task is logged with its traceback and counted; it never
        takes the worker down with it.
        """
        self.state = WorkerState.BUSY
        start_time = time.monotonic()
        waited = start_time - task.submitted_at

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in "
                f"{time.monotonic() - start_time:.3f}s (queued {waited:.3f}s)"
            )
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(
                f"Worker {self.worker_id} task failed after "
                f"{time.monotonic() - start_time:.3f}s: {e}"
            )
        finally:
            self.state = WorkerState.IDLE


class WorkerPool:
    """
    Fixed-size thread pool with a FIFO task queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      WorkerPool Usage                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   pool = WorkerPool(4)             # 4 threads start right away      │
    │                                                                      │
    │   pool.submit(handle, conn)        # never blocks (unbounded queue)  │
    │                                                                      │
    │   pool.stats                       # {"workers": {...}, "tasks": ...}│
    │                                                                      │
    │   pool.shutdown()                  # run what is queued, then stop   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Also usable as a context manager; leaving the block shuts it down.
    """

    def __init__(self, num_workers: int, max_queue_size: int = 0):
        """
        Create the pool and start its workers.

        Args:
            num_workers: Number of worker threads. Fixed for the pool's life.
            max_queue_size: Queue bound. 0 (the default) means unbounded,
                            so submit() can never block or fail for space.
        """
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")

        self.num_workers = num_workers
        self.max_queue_size = max_queue_size

        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue(maxsize=max_queue_size)

        # Guards _shutdown together with the queue puts (see module docstring)
        self._lock = threading.Lock()
        self._shutdown = False

        self._workers = [Worker(self._task_queue, worker_id) for worker_id in range(num_workers)]
        for worker in self._workers:
            worker.start()

        logger.info(f"Started worker pool with {num_workers} workers")

    def submit(self, func: Callable[..., Any], *args, **kwargs) -> bool:
        """
        Queue func(*args, **kwargs) for execution by the next free worker.

        Returns:
            True if queued. False only when a bounded queue is full.

        Raises:
            RuntimeError: If the pool has been shut down.
        """
        task = Task(func=func, args=args, kwargs=kwargs)

        with self._lock:
            if self._shutdown:
                raise RuntimeError("Worker pool is shut down")
            try:
                self._task_queue.put_nowait(task)
            except queue.Full:
                return False
        return True

    def shutdown(self) -> None:
        """
        Stop accepting tasks, run everything already queued, then join
        every worker. Safe to call more than once.
        """
        with self._lock:
            first_call = not self._shutdown
            self._shutdown = True
            if first_call:
                logger.info(f"Shutting down worker pool ({self.queue_size} tasks queued)...")
                # Blocking put: with a bounded queue the workers are still
                # draining, so space always frees up
                for _ in self._workers:
                    self._task_queue.put(None)

        for worker in self._workers:
            worker.join()

        if first_call:
            logger.info("Worker pool shutdown complete")

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def alive_workers(self) -> int:
        return sum(1 for w in self._workers if w.is_alive())

    @property
    def queue_size(self) -> int:
        """Approximate number of queued tasks (pills included)."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counts, for logs and health output."""
        return {
            "workers": {
                "total": len(self._workers),
                "alive": self.alive_workers,
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self.queue_size,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
