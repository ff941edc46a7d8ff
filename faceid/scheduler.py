"""Time source and cancellable scheduled tasks for the capture session."""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Protocol

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a pending timer or repeating task."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class Scheduler(Protocol):
    def now_ms(self) -> float:
        ...

    def call_later(self, delay_ms: float, callback: Callable[[], None], *, name: str = "timer") -> ScheduledTask:
        ...

    def call_every(self, interval_ms: float, callback: Callable[[], None], *, name: str = "interval") -> ScheduledTask:
        ...


class ThreadScheduler:
    """Run each scheduled task on its own daemon thread.

    Repeating tasks never overlap themselves: the callback runs on the task's
    thread, and ticks that fall due while it is still running are dropped
    rather than queued.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._threads: List[threading.Thread] = []
        self._tasks: List[ScheduledTask] = []

    def now_ms(self) -> float:
        return self._clock() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None], *, name: str = "timer") -> ScheduledTask:
        task = ScheduledTask(name)

        def run() -> None:
            if task._cancelled.wait(max(0.0, delay_ms) / 1000.0):
                return
            self._invoke(task, callback)

        self._spawn(task, run)
        return task

    def call_every(self, interval_ms: float, callback: Callable[[], None], *, name: str = "interval") -> ScheduledTask:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        task = ScheduledTask(name)
        period = interval_ms / 1000.0

        def run() -> None:
            next_due = self._clock() + period
            while True:
                if task._cancelled.wait(max(0.0, next_due - self._clock())):
                    return
                self._invoke(task, callback)
                now = self._clock()
                next_due += period
                if next_due <= now:
                    missed = int((now - next_due) // period) + 1
                    next_due += missed * period
                    logger.debug("Task %s overran; dropped %d tick(s)", task.name, missed)

        self._spawn(task, run)
        return task

    def close(self, timeout: float = 1.0) -> None:
        """Cancel every task and wait briefly for worker threads to exit."""
        with self._lock:
            tasks, self._tasks = self._tasks, []
            threads, self._threads = self._threads, []
        for task in tasks:
            task.cancel()
        current = threading.current_thread()
        for thread in threads:
            if thread is not current:
                thread.join(timeout=timeout)

    def _spawn(self, task: ScheduledTask, target: Callable[[], None]) -> None:
        thread = threading.Thread(target=target, name=f"faceid-{task.name}", daemon=True)
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._tasks = [t for t in self._tasks if not t.cancelled]
            self._threads.append(thread)
            self._tasks.append(task)
        thread.start()

    @staticmethod
    def _invoke(task: ScheduledTask, callback: Callable[[], None]) -> None:
        if task.cancelled:
            return
        try:
            callback()
        except Exception:
            logger.exception("Scheduled task %s raised", task.name)


__all__ = ["ScheduledTask", "Scheduler", "ThreadScheduler"]
