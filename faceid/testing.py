"""Deterministic helpers for driving capture sessions without real timers.

Example:
    >>> scheduler = ManualScheduler()
    >>> session = CaptureSession(detector, config, scheduler=scheduler)
    >>> session.start()
    >>> scheduler.advance(3000)   # countdown elapses
    >>> scheduler.advance(400)    # first detection poll
"""
from __future__ import annotations

import itertools
from typing import Callable, List, Optional

from .scheduler import ScheduledTask


class ManualTask(ScheduledTask):
    def __init__(self, name: str, callback: Callable[[], None], due_ms: float, interval_ms: Optional[float], seq: int) -> None:
        super().__init__(name)
        self.callback = callback
        self.due_ms = due_ms
        self.interval_ms = interval_ms
        self.seq = seq


class ManualScheduler:
    """Scheduler whose clock only moves when ``advance`` is called.

    Tasks fire in due-time order (ties in creation order). ``advance`` may be
    called from inside a callback to simulate a slow operation; tasks that fall
    due meanwhile fire re-entrantly.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._tasks: List[ManualTask] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None], *, name: str = "timer") -> ScheduledTask:
        return self._add(name, callback, self._now + max(0.0, delay_ms), None)

    def call_every(self, interval_ms: float, callback: Callable[[], None], *, name: str = "interval") -> ScheduledTask:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        return self._add(name, callback, self._now + interval_ms, interval_ms)

    def advance(self, delta_ms: float) -> None:
        self.run_until(self._now + delta_ms)

    def run_until(self, target_ms: float) -> None:
        while True:
            task = self._next_due(target_ms)
            if task is None:
                break
            self._now = max(self._now, task.due_ms)
            if task.interval_ms is None:
                task.cancel()
            else:
                task.due_ms += task.interval_ms
            task.callback()
        self._now = max(self._now, target_ms)

    @property
    def pending(self) -> List[ScheduledTask]:
        return [task for task in self._tasks if not task.cancelled]

    def _add(self, name: str, callback: Callable[[], None], due_ms: float, interval_ms: Optional[float]) -> ManualTask:
        task = ManualTask(name, callback, due_ms, interval_ms, next(self._seq))
        self._tasks.append(task)
        return task

    def _next_due(self, target_ms: float) -> Optional[ManualTask]:
        self._tasks = [task for task in self._tasks if not task.cancelled]
        due = [task for task in self._tasks if task.due_ms <= target_ms]
        if not due:
            return None
        return min(due, key=lambda task: (task.due_ms, task.seq))


__all__ = ["ManualScheduler", "ManualTask"]
