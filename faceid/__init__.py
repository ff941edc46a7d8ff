"""Face-capture alignment pipeline package exports."""

from .config import (
    AlignmentThresholds,
    CaptureConfig,
    LENIENT_THRESHOLDS,
    PROFILES,
    STRICT_THRESHOLDS,
    resolve_profile,
)
from .detector import ReplayDetector, load_detection_stream
from .emitter import ResultEmitter
from .errors import (
    AlreadyConsumedError,
    CaptureError,
    CaptureFailedError,
    InsufficientLandmarksError,
    NoFaceError,
    SessionBusyError,
    SessionStateError,
)
from .gate import AlignmentVerdict, RejectReason, assess_frame, evaluate_alignment
from .geometry import GeometryMetrics, compute_metrics
from .scheduler import ScheduledTask, Scheduler, ThreadScheduler
from .service import CaptureHandle, CaptureService
from .session import CaptureSession
from .stability import StabilitySignal, StabilityTracker
from .state import SessionPhase, SessionState, SessionStatus
from .types import Frame, Landmarks

__all__ = [
    "AlignmentThresholds",
    "CaptureConfig",
    "LENIENT_THRESHOLDS",
    "STRICT_THRESHOLDS",
    "PROFILES",
    "resolve_profile",
    "ReplayDetector",
    "load_detection_stream",
    "ResultEmitter",
    "CaptureError",
    "InsufficientLandmarksError",
    "NoFaceError",
    "AlreadyConsumedError",
    "CaptureFailedError",
    "SessionStateError",
    "SessionBusyError",
    "AlignmentVerdict",
    "RejectReason",
    "assess_frame",
    "evaluate_alignment",
    "GeometryMetrics",
    "compute_metrics",
    "ScheduledTask",
    "Scheduler",
    "ThreadScheduler",
    "CaptureHandle",
    "CaptureService",
    "CaptureSession",
    "StabilitySignal",
    "StabilityTracker",
    "SessionPhase",
    "SessionState",
    "SessionStatus",
    "Frame",
    "Landmarks",
]
