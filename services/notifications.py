"""
Notification queue: a bounded, best-effort, in-process side-effect dispatcher.

- Handlers push typed tasks with enqueue(); it never blocks. When the queue
  is full the newest task is dropped, a warning is logged and enqueue()
  returns False, so request threads are never stalled by a slow consumer.
- A single daemon thread drains the queue serially, which keeps at most one
  external call (e-mail send, ...) in flight. A dequeued task always runs to
  completion; a failing task is logged and the consumer moves on.
- Task kinds are frozen dataclasses dispatched by pattern matching; anything
  else that reaches the consumer is logged and discarded.
"""
from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Union

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100

_STOP = object()


@dataclass(frozen=True)
class WelcomeEmail:
    email: str
    name: str


@dataclass(frozen=True)
class TodoCompleted:
    todo_id: int
    title: str


Task = Union[WelcomeEmail, TodoCompleted]


class NotificationQueue:
    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        delivery_delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.capacity = capacity
        self.delivery_delay = delivery_delay
        self._sleep = sleep
        self._queue: "queue.Queue" = queue.Queue(maxsize=capacity)
        self._thread: threading.Thread | None = None
        self.dropped = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def enqueue(self, task: Task) -> bool:
        try:
            self._queue.put_nowait(task)
        except queue.Full:
            self.dropped += 1
            logger.warning(
                "Notification queue full (capacity=%d), dropping %s",
                self.capacity,
                type(task).__name__,
            )
            return False
        return True

    def pending(self) -> List[Task]:
        """Snapshot of queued tasks, oldest first."""
        with self._queue.mutex:
            return [t for t in self._queue.queue if t is not _STOP]

    def start(self):
        if self.running:
            return
        self._thread = threading.Thread(target=self._run, name="notification-worker", daemon=True)
        self._thread.start()
        logger.info("Background worker started")

    def stop(self, timeout: float | None = 5.0):
        if not self.running:
            return
        # blocking put: the consumer is draining, so space frees up
        self._queue.put(_STOP)
        self._thread.join(timeout)
        self._thread = None
        logger.info("Background worker stopped")

    def join(self):
        """Block until every queued task has been processed."""
        self._queue.join()

    def _run(self):
        while True:
            task = self._queue.get()
            try:
                if task is _STOP:
                    return
                self.process(task)
            except Exception:
                logger.exception("Background task failed: %s", type(task).__name__)
            finally:
                self._queue.task_done()

    def process(self, task) -> bool:
        """Run one task body. Returns False for unknown task kinds."""
        logger.info("Processing background task (type=%s)", type(task).__name__)
        match task:
            case WelcomeEmail(email=email, name=name):
                self._simulate_delivery()
                logger.info("Welcome email sent (email=%s, name=%s)", email, name)
            case TodoCompleted(todo_id=todo_id, title=title):
                self._simulate_delivery()
                logger.info("Todo completion logged (id=%s, title=%s)", todo_id, title)
            case _:
                logger.warning("Unknown task type: %s", type(task).__name__)
                return False
        return True

    def _simulate_delivery(self):
        if self.delivery_delay > 0:
            self._sleep(self.delivery_delay)
