"""Capture session state machine: countdown, detection polling, timeout and cancel."""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

import numpy as np

from .config import CaptureConfig
from .emitter import ResultEmitter
from .errors import CaptureError, NoFaceError, SessionStateError
from .gate import RejectReason, assess_frame
from .messages import (
    CANCELLED_MESSAGE,
    DETECTING_MESSAGE,
    FORCE_NO_FACE_MESSAGE,
    READY_MESSAGE,
    TIMED_OUT_MESSAGE,
    captured_message,
    countdown_message,
    progress_message,
    reject_message,
)
from .scheduler import ScheduledTask, Scheduler, ThreadScheduler
from .stability import StabilityTracker
from .state import SessionPhase, SessionState, SessionStatus
from .types import Frame

logger = logging.getLogger(__name__)

Detector = Callable[[], Optional[Frame]]
StatusListener = Callable[[SessionStatus], None]

COUNTDOWN_TICK_MS = 1000


class CaptureSession:
    """Drive one capture run from countdown to a single selected descriptor.

    Phases: ``IDLE -> COUNTDOWN -> DETECTING -> CAPTURED | TIMED_OUT``, with
    ``CANCELLED`` reachable from both active phases. Every phase change and
    every polled frame publishes a ``SessionStatus`` to the subscribed
    listeners. Timers come from the injected scheduler and are released on
    every transition out of an active phase, including ``with`` block exit.

    The detector is called outside the session lock; a result arriving after
    the session left ``DETECTING`` is discarded.
    """

    def __init__(
        self,
        detector: Detector,
        config: Optional[CaptureConfig] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        emitter: Optional[ResultEmitter] = None,
        listeners: Iterable[StatusListener] = (),
    ) -> None:
        self.detector = detector
        self.config = config or CaptureConfig()
        self._owns_scheduler = scheduler is None
        self.scheduler: Scheduler = scheduler if scheduler is not None else ThreadScheduler()
        self.emitter = emitter or ResultEmitter()
        self._listeners: List[StatusListener] = list(listeners)
        self._lock = threading.RLock()
        self._finished = threading.Event()
        self._state = SessionState()
        self._tracker = StabilityTracker(self.config.required_streak)
        self._message = READY_MESSAGE
        self._countdown_task: Optional[ScheduledTask] = None
        self._poll_task: Optional[ScheduledTask] = None
        self._timeout_task: Optional[ScheduledTask] = None
        self._detecting_started_ms: Optional[float] = None
        self._last_no_face_message_ms: Optional[float] = None
        self._poll_in_flight = False
        self.frames_polled = 0
        self.polls_skipped = 0
        self.detector_errors = 0

    def __enter__(self) -> "CaptureSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ public API
    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def state(self) -> SessionState:
        with self._lock:
            return replace(self._state)

    def status(self, reason: Optional[RejectReason] = None) -> SessionStatus:
        with self._lock:
            return SessionStatus(
                phase=self._state.phase,
                streak=self._state.streak,
                countdown_remaining=self._state.countdown_remaining,
                message=self._message,
                reason=reason,
                elapsed_ms=self._state.elapsed_ms,
            )

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> None:
        with self._lock:
            phase = self._state.phase
            if phase.is_active:
                raise SessionStateError("Capture session is already running")
            if phase is not SessionPhase.IDLE:
                raise SessionStateError(f"Capture session already finished ({phase.value})")
            logger.info(
                "Starting %s capture (streak=%d, poll=%dms, timeout=%dms)",
                self.config.mode,
                self.config.required_streak,
                self.config.poll_interval_ms,
                self.config.timeout_ms,
            )
            if self.config.countdown_seconds <= 0:
                self._enter_detecting()
                return
            self._state.phase = SessionPhase.COUNTDOWN
            self._state.countdown_remaining = self.config.countdown_seconds
            self._message = countdown_message(self.config.countdown_seconds)
            self._countdown_task = self.scheduler.call_every(
                COUNTDOWN_TICK_MS, self._on_countdown_tick, name="countdown"
            )
            self._publish()

    def cancel(self) -> bool:
        """Abort an active run. Returns False when there was nothing to cancel."""
        with self._lock:
            if not self._state.phase.is_active:
                return False
            self._finish(SessionPhase.CANCELLED)
            return True

    def force_capture(self) -> np.ndarray:
        """Capture the current frame immediately, ignoring the streak requirement.

        Raises ``NoFaceError`` without changing the phase when the detector
        finds nobody.
        """
        with self._lock:
            if not self._state.phase.is_active:
                raise SessionStateError(f"Cannot force capture in phase {self._state.phase.value}")
        try:
            frame = self.detector()
        except Exception as exc:
            raise CaptureError("Detector failed during forced capture") from exc

        with self._lock:
            if not self._state.phase.is_active:
                raise SessionStateError(f"Session ended during forced capture ({self._state.phase.value})")
            verdict, _ = assess_frame(frame, self.config.thresholds)
            if verdict.reason is RejectReason.NO_FACE:
                # Frames without usable landmarks count as no face.
                self._message = FORCE_NO_FACE_MESSAGE
                self._publish(RejectReason.NO_FACE)
                raise NoFaceError("No face detected; align before capturing.")
            if not verdict.passed:
                logger.info("Forced capture accepted a misaligned frame (%s)", verdict.reason.value)
            self._state.captured_descriptor = frame.descriptor
            pushed = self._finish(SessionPhase.CAPTURED)
        if pushed is not None:
            return pushed
        return self.emitter.extract()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until a terminal phase is reached; returns False on timeout."""
        return self._finished.wait(timeout)

    def result(self, timeout: Optional[float] = None) -> np.ndarray:
        """Wait for the run to finish and extract the descriptor."""
        if not self.wait(timeout):
            raise SessionStateError("Capture session still running")
        return self.emitter.extract()

    def close(self) -> None:
        self.cancel()
        if self._owns_scheduler and isinstance(self.scheduler, ThreadScheduler):
            self.scheduler.close()

    # ------------------------------------------------------------------ transitions
    def _on_countdown_tick(self) -> None:
        with self._lock:
            if self._state.phase is not SessionPhase.COUNTDOWN:
                return
            remaining = (self._state.countdown_remaining or 0) - 1
            if remaining <= 0:
                self._cancel_task(self._countdown_task)
                self._countdown_task = None
                self._enter_detecting()
                return
            self._state.countdown_remaining = remaining
            self._message = countdown_message(remaining)
            self._publish()

    def _enter_detecting(self) -> None:
        now = self.scheduler.now_ms()
        self._state.phase = SessionPhase.DETECTING
        self._state.countdown_remaining = None
        self._state.streak = 0
        self._state.elapsed_ms = 0.0
        self._tracker.reset()
        self._detecting_started_ms = now
        self._last_no_face_message_ms = now
        self._message = DETECTING_MESSAGE
        self._poll_task = self.scheduler.call_every(
            self.config.poll_interval_ms, self._poll, name="detect"
        )
        self._timeout_task = self.scheduler.call_later(
            self.config.timeout_ms, self._on_timeout, name="timeout"
        )
        logger.debug("Detection started")
        self._publish()

    def _on_timeout(self) -> None:
        with self._lock:
            if self._state.phase is not SessionPhase.DETECTING:
                return
            self._state.elapsed_ms = self._elapsed_ms()
            self._finish(SessionPhase.TIMED_OUT)

    def _poll(self) -> None:
        with self._lock:
            if self._state.phase is not SessionPhase.DETECTING:
                return
            if self._poll_in_flight:
                self.polls_skipped += 1
                logger.debug("Skipping poll; previous detector call still running")
                return
            self._state.elapsed_ms = self._elapsed_ms()
            if self._state.elapsed_ms >= self.config.timeout_ms:
                self._finish(SessionPhase.TIMED_OUT)
                return
            self._poll_in_flight = True

        try:
            frame = self.detector()
        except Exception:
            self.detector_errors += 1
            logger.warning("Detector call failed; skipping poll", exc_info=True)
            with self._lock:
                self._poll_in_flight = False
            return

        with self._lock:
            self._poll_in_flight = False
            if self._state.phase is not SessionPhase.DETECTING:
                return
            self._state.elapsed_ms = self._elapsed_ms()
            if self._state.elapsed_ms >= self.config.timeout_ms:
                self._finish(SessionPhase.TIMED_OUT)
                return
            self.frames_polled += 1
            self._process_frame(frame)

    def _process_frame(self, frame: Optional[Frame]) -> None:
        verdict, _ = assess_frame(frame, self.config.thresholds)
        signal = self._tracker.update(verdict)
        self._state.streak = signal.streak
        if signal.stable and frame is not None:
            self._state.captured_descriptor = frame.descriptor
            self._finish(SessionPhase.CAPTURED)
            return
        if signal.reason is RejectReason.NO_FACE:
            now = self.scheduler.now_ms()
            last = self._last_no_face_message_ms
            if last is None or now - last >= self.config.no_face_message_interval_ms:
                self._message = reject_message(RejectReason.NO_FACE)
                self._last_no_face_message_ms = now
        elif signal.reason is not None:
            self._message = reject_message(signal.reason)
        else:
            self._message = progress_message(signal.streak, self.config.required_streak)
        self._publish(signal.reason)

    def _finish(self, phase: SessionPhase) -> Optional[np.ndarray]:
        self._release_tasks()
        self._state.phase = phase
        self._state.countdown_remaining = None
        if phase is SessionPhase.CAPTURED:
            self._message = captured_message(self.config.mode)
        elif phase is SessionPhase.TIMED_OUT:
            self._message = TIMED_OUT_MESSAGE
        else:
            self._message = CANCELLED_MESSAGE
        logger.info(
            "Capture session %s (elapsed=%.0fms, frames=%d, skipped=%d)",
            phase.value,
            self._state.elapsed_ms,
            self.frames_polled,
            self.polls_skipped,
        )
        pushed: Optional[np.ndarray] = None
        try:
            if phase is SessionPhase.CAPTURED:
                pushed = self.emitter.deliver_captured(self._state.captured_descriptor)
            else:
                self.emitter.deliver_failure(phase)
        finally:
            self._finished.set()
            self._publish()
        return pushed

    # ------------------------------------------------------------------ helpers
    def _elapsed_ms(self) -> float:
        if self._detecting_started_ms is None:
            return 0.0
        return self.scheduler.now_ms() - self._detecting_started_ms

    def _release_tasks(self) -> None:
        for task in (self._countdown_task, self._poll_task, self._timeout_task):
            self._cancel_task(task)
        self._countdown_task = None
        self._poll_task = None
        self._timeout_task = None

    @staticmethod
    def _cancel_task(task: Optional[ScheduledTask]) -> None:
        if task is not None:
            task.cancel()

    def _publish(self, reason: Optional[RejectReason] = None) -> None:
        status = self.status(reason)
        for listener in list(self._listeners):
            listener(status)


__all__ = ["CaptureSession", "Detector", "StatusListener", "COUNTDOWN_TICK_MS"]
