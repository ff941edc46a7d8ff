"""Shared capture pipeline logic for CLI and embedding callers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from faceid import (
    CaptureConfig,
    CaptureFailedError,
    CaptureService,
    ReplayDetector,
    SessionPhase,
    SessionStatus,
)
from faceid.scheduler import Scheduler, ThreadScheduler
from utils.logging import append_capture_log
from utils.paths import logs_path

DEFAULT_CAPTURE_LOG = logs_path("capture_log.csv")
WAIT_SLICE_S = 0.1


@dataclass
class SessionCallbacks:
    """Extensible hooks for UI layers to observe capture progress."""

    on_status: Optional[Callable[[SessionStatus], None]] = None
    on_stage_change: Optional[Callable[[SessionPhase], None]] = None
    on_summary: Optional[Callable[[dict[str, object]], None]] = None
    poll_cancel: Optional[Callable[[], bool]] = None


@dataclass
class CaptureOutcome:
    phase: SessionPhase
    descriptor: Optional[np.ndarray]
    summary: dict[str, object]

    @property
    def captured(self) -> bool:
        return self.descriptor is not None


class CapturePipeline:
    """Owns the replay detector, scheduler and capture service for one source."""

    def __init__(self, args, *, scheduler: Optional[Scheduler] = None) -> None:
        self.args = args
        self.config = CaptureConfig.from_args(args)
        self.source = str(args.detections)
        self.detector = ReplayDetector.from_file(Path(args.detections), loop=bool(getattr(args, "loop", False)))
        self.scheduler: Scheduler = scheduler if scheduler is not None else ThreadScheduler()
        self.service = CaptureService(self.detector, scheduler=self.scheduler)
        self.verbose = not bool(getattr(args, "quiet", False))

    # ------------------------------------------------------------------ public helpers
    def run_session(self, callbacks: SessionCallbacks | None = None) -> CaptureOutcome:
        handle = self.service.start(self.config, listeners=[self._build_status_handler(callbacks)])
        session = handle.session
        try:
            while not session.wait(WAIT_SLICE_S):
                if callbacks and callbacks.poll_cancel and callbacks.poll_cancel():
                    self.service.cancel(handle)
        finally:
            # Interrupts and errors in the caller still release the session timers.
            self.service.cancel(handle)

        descriptor: Optional[np.ndarray] = None
        try:
            descriptor = self.service.extract(handle)
        except CaptureFailedError:
            descriptor = None

        state = session.state
        summary: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": self.source,
            "mode": self.config.mode,
            "profile": getattr(self.args, "profile", None),
            "phase": state.phase.value,
            "frames_polled": session.frames_polled,
            "polls_skipped": session.polls_skipped,
            "streak": state.streak,
            "elapsed_ms": round(state.elapsed_ms, 1),
            "descriptor_length": None if descriptor is None else int(descriptor.shape[0]),
        }
        capture_log = getattr(self.args, "capture_log", None)
        if capture_log:
            append_capture_log(Path(capture_log), summary)
        if callbacks and callbacks.on_summary:
            callbacks.on_summary(summary)
        return CaptureOutcome(phase=state.phase, descriptor=descriptor, summary=summary)

    def shutdown(self) -> None:
        self.service.shutdown()
        if isinstance(self.scheduler, ThreadScheduler):
            self.scheduler.close()

    # ------------------------------------------------------------------ CLI execution
    def run_cli(self) -> int:
        print(f"[Capture] Replaying {len(self.detector)} detection record(s) from {self.source}")
        try:
            outcome = self.run_session()
        except KeyboardInterrupt:
            print("[Capture] Interrupted.")
            return 130
        finally:
            self.shutdown()

        print(f"[Capture] Finished: {outcome.phase.value} after {outcome.summary['elapsed_ms']} ms")
        if outcome.descriptor is None:
            return 1
        output = getattr(self.args, "output", None)
        if output:
            target = Path(output)
            target.parent.mkdir(parents=True, exist_ok=True)
            np.save(target, outcome.descriptor)
            print(f"[Capture] Saved descriptor ({outcome.descriptor.shape[0]} values) to {target}")
        return 0

    # ------------------------------------------------------------------ internal helpers
    def _build_status_handler(self, callbacks: SessionCallbacks | None) -> Callable[[SessionStatus], None]:
        last: dict[str, object] = {"phase": None, "message": None}

        def handle(status: SessionStatus) -> None:
            if status.phase is not last["phase"]:
                last["phase"] = status.phase
                if callbacks and callbacks.on_stage_change:
                    callbacks.on_stage_change(status.phase)
            if self.verbose and status.message != last["message"]:
                print(f"[Capture] {status.phase.value}: {status.message}")
            last["message"] = status.message
            if callbacks and callbacks.on_status:
                callbacks.on_status(status)

        return handle


__all__ = ["CapturePipeline", "CaptureOutcome", "SessionCallbacks", "DEFAULT_CAPTURE_LOG"]
