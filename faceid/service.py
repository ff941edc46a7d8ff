"""Capture API: exclusive start/cancel/force-capture over capture sessions."""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

import numpy as np

from .config import CaptureConfig
from .emitter import ResultEmitter
from .errors import SessionBusyError, SessionStateError
from .scheduler import Scheduler, ThreadScheduler
from .session import CaptureSession, Detector, StatusListener
from .state import SessionPhase, SessionStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureHandle:
    session_id: str
    session: CaptureSession

    @property
    def phase(self) -> SessionPhase:
        return self.session.phase


class CaptureService:
    """Run at most one capture session at a time against a shared detector."""

    def __init__(self, detector: Detector, *, scheduler: Optional[Scheduler] = None) -> None:
        self.detector = detector
        self._owns_scheduler = scheduler is None
        self.scheduler: Scheduler = scheduler if scheduler is not None else ThreadScheduler()
        self._lock = threading.Lock()
        self._sessions: Dict[str, CaptureSession] = {}
        self._active: Optional[CaptureHandle] = None

    def start(
        self,
        config: Optional[CaptureConfig] = None,
        *,
        listeners: Iterable[StatusListener] = (),
        on_descriptor: Optional[Callable[[np.ndarray], None]] = None,
        on_failure: Optional[Callable[[SessionPhase], None]] = None,
    ) -> CaptureHandle:
        with self._lock:
            active = self._active
            # An IDLE active session has been claimed by a start() still in progress.
            if active is not None and not active.session.phase.is_terminal:
                raise SessionBusyError(f"Capture session {active.session_id} is still running")
            session = CaptureSession(
                self.detector,
                config,
                scheduler=self.scheduler,
                emitter=ResultEmitter(on_descriptor=on_descriptor, on_failure=on_failure),
                listeners=listeners,
            )
            handle = CaptureHandle(session_id=uuid.uuid4().hex, session=session)
            if active is not None:
                self._sessions.pop(active.session_id, None)
            self._sessions[handle.session_id] = session
            self._active = handle
        logger.debug("Issued capture handle %s", handle.session_id)
        try:
            session.start()
        except BaseException:
            with self._lock:
                self._sessions.pop(handle.session_id, None)
                if self._active is handle:
                    self._active = None
            raise
        return handle

    def cancel(self, handle: CaptureHandle) -> bool:
        return self._resolve(handle).cancel()

    def force_capture(self, handle: CaptureHandle) -> np.ndarray:
        return self._resolve(handle).force_capture()

    def status(self, handle: CaptureHandle) -> SessionStatus:
        return self._resolve(handle).status()

    def subscribe(self, handle: CaptureHandle, listener: StatusListener) -> Callable[[], None]:
        return self._resolve(handle).subscribe(listener)

    def extract(self, handle: CaptureHandle) -> np.ndarray:
        return self._resolve(handle).emitter.extract()

    @property
    def active(self) -> Optional[CaptureHandle]:
        return self._active

    def shutdown(self) -> None:
        with self._lock:
            active = self._active
        if active is not None:
            active.session.cancel()
        if self._owns_scheduler and isinstance(self.scheduler, ThreadScheduler):
            self.scheduler.close()

    def _resolve(self, handle: CaptureHandle) -> CaptureSession:
        with self._lock:
            session = self._sessions.get(handle.session_id)
        if session is None or session is not handle.session:
            raise SessionStateError(f"Unknown or expired capture handle {handle.session_id}")
        return session


__all__ = ["CaptureHandle", "CaptureService"]
