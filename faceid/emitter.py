"""Single-use hand-off of the captured descriptor."""
from __future__ import annotations

import threading
from typing import Callable, Optional

import numpy as np

from .errors import AlreadyConsumedError, CaptureFailedError, SessionStateError
from .state import SessionPhase


class ResultEmitter:
    """Hold the session outcome and release the descriptor exactly once.

    When ``on_descriptor`` is given the descriptor is pushed to it as soon as
    the session captures; otherwise the caller pulls it with ``extract``.
    Either path consumes it.
    """

    def __init__(
        self,
        *,
        on_descriptor: Optional[Callable[[np.ndarray], None]] = None,
        on_failure: Optional[Callable[[SessionPhase], None]] = None,
    ) -> None:
        self._on_descriptor = on_descriptor
        self._on_failure = on_failure
        self._lock = threading.Lock()
        self._descriptor: Optional[np.ndarray] = None
        self._failure: Optional[SessionPhase] = None
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def failure(self) -> Optional[SessionPhase]:
        return self._failure

    @property
    def has_result(self) -> bool:
        return self._descriptor is not None or self._failure is not None or self._consumed

    def deliver_captured(self, descriptor: np.ndarray) -> Optional[np.ndarray]:
        """Record the captured descriptor; returns it when it was pushed to the callback."""
        with self._lock:
            if self.has_result:
                raise SessionStateError("Session outcome already recorded")
            self._descriptor = np.array(descriptor, dtype=np.float32, copy=True)
        if self._on_descriptor is None:
            return None
        pushed = self.extract()
        self._on_descriptor(pushed)
        return pushed

    def deliver_failure(self, phase: SessionPhase) -> None:
        if phase not in (SessionPhase.TIMED_OUT, SessionPhase.CANCELLED):
            raise ValueError(f"Not a failure phase: {phase}")
        with self._lock:
            if self.has_result:
                raise SessionStateError("Session outcome already recorded")
            self._failure = phase
        if self._on_failure is not None:
            self._on_failure(phase)

    def extract(self) -> np.ndarray:
        with self._lock:
            if self._consumed:
                raise AlreadyConsumedError("Descriptor already extracted")
            if self._failure is not None:
                raise CaptureFailedError(self._failure)
            if self._descriptor is None:
                raise SessionStateError("No descriptor captured yet")
            descriptor, self._descriptor = self._descriptor, None
            self._consumed = True
            return descriptor


__all__ = ["ResultEmitter"]
