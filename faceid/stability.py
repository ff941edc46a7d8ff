"""Consecutive-pass counter gating the capture."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .gate import AlignmentVerdict, RejectReason


@dataclass(frozen=True)
class StabilitySignal:
    streak: int
    stable: bool = False
    reason: Optional[RejectReason] = None

    @property
    def unstable(self) -> bool:
        return self.reason is not None


class StabilityTracker:
    """Count consecutive aligned frames; any rejection resets the count to zero."""

    def __init__(self, required_streak: int = 3) -> None:
        if required_streak < 1:
            raise ValueError("required_streak must be at least 1")
        self.required_streak = required_streak
        self.streak = 0

    def update(self, verdict: AlignmentVerdict) -> StabilitySignal:
        if not verdict.passed:
            self.streak = 0
            return StabilitySignal(streak=0, reason=verdict.reason)
        self.streak += 1
        return StabilitySignal(streak=self.streak, stable=self.streak == self.required_streak)

    def reset(self) -> None:
        self.streak = 0


__all__ = ["StabilitySignal", "StabilityTracker"]
