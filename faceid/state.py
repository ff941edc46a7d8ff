"""Session phases, mutable session state and the status events it publishes."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .gate import RejectReason


class SessionPhase(enum.Enum):
    IDLE = "idle"
    COUNTDOWN = "countdown"
    DETECTING = "detecting"
    CAPTURED = "captured"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        return self in (SessionPhase.COUNTDOWN, SessionPhase.DETECTING)

    @property
    def is_terminal(self) -> bool:
        return self in (SessionPhase.CAPTURED, SessionPhase.TIMED_OUT, SessionPhase.CANCELLED)


@dataclass
class SessionState:
    phase: SessionPhase = SessionPhase.IDLE
    streak: int = 0
    countdown_remaining: Optional[int] = None
    elapsed_ms: float = 0.0
    captured_descriptor: Optional[np.ndarray] = None


@dataclass(frozen=True)
class SessionStatus:
    """Snapshot published to status listeners after every state change."""

    phase: SessionPhase
    streak: int
    countdown_remaining: Optional[int]
    message: str
    reason: Optional[RejectReason] = None
    elapsed_ms: float = 0.0


__all__ = ["SessionPhase", "SessionState", "SessionStatus"]
