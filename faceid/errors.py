"""Exception types raised by the capture pipeline."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state import SessionPhase


class CaptureError(Exception):
    """Base class for capture pipeline errors."""


class InsufficientLandmarksError(CaptureError):
    """A landmark cluster needed for orientation metrics is empty."""


class NoFaceError(CaptureError):
    """No face was present when a frame was required."""


class AlreadyConsumedError(CaptureError):
    """The captured descriptor has already been handed out."""


class CaptureFailedError(CaptureError):
    """The session ended without capturing a descriptor."""

    def __init__(self, phase: "SessionPhase") -> None:
        super().__init__(f"Capture ended without a descriptor ({phase.value}).")
        self.phase = phase


class SessionStateError(CaptureError):
    """Operation is not valid in the session's current phase."""


class SessionBusyError(SessionStateError):
    """A capture session is already running."""


__all__ = [
    "CaptureError",
    "InsufficientLandmarksError",
    "NoFaceError",
    "AlreadyConsumedError",
    "CaptureFailedError",
    "SessionStateError",
    "SessionBusyError",
]
