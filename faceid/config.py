"""Threshold profiles and session configuration."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Dict, Optional

CAPTURE_MODES = ("register", "match")


@dataclass(frozen=True)
class AlignmentThresholds:
    min_ratio: float
    max_ratio: float
    max_center_x: float
    max_center_y: float
    max_nose_offset: float
    max_tilt: float

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if not 0.0 < value <= 1.0:
                raise ValueError(f"{item.name} must be in (0, 1], got {value}")
        if self.min_ratio > self.max_ratio:
            raise ValueError(
                f"min_ratio ({self.min_ratio}) must not exceed max_ratio ({self.max_ratio})"
            )

    def with_overrides(self, **overrides: Optional[float]) -> "AlignmentThresholds":
        """Return a copy with every non-None override applied."""
        changes = {name: float(value) for name, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


LENIENT_THRESHOLDS = AlignmentThresholds(
    min_ratio=0.2,
    max_ratio=0.65,
    max_center_x=0.3,
    max_center_y=0.3,
    max_nose_offset=0.25,
    max_tilt=0.1,
)

STRICT_THRESHOLDS = AlignmentThresholds(
    min_ratio=0.25,
    max_ratio=0.55,
    max_center_x=0.2,
    max_center_y=0.2,
    max_nose_offset=0.15,
    max_tilt=0.06,
)

PROFILES: Dict[str, AlignmentThresholds] = {
    "lenient": LENIENT_THRESHOLDS,
    "strict": STRICT_THRESHOLDS,
}
DEFAULT_PROFILE = "lenient"


def resolve_profile(name: str) -> AlignmentThresholds:
    key = (name or "").strip().lower()
    try:
        return PROFILES[key]
    except KeyError:
        raise ValueError(f"Unknown threshold profile: {name!r} (expected one of {sorted(PROFILES)})") from None


@dataclass(frozen=True)
class CaptureConfig:
    mode: str = "register"
    thresholds: AlignmentThresholds = field(default_factory=lambda: PROFILES[DEFAULT_PROFILE])
    required_streak: int = 3
    poll_interval_ms: int = 400
    countdown_seconds: int = 3
    timeout_ms: int = 15000
    no_face_message_interval_ms: int = 1500

    def __post_init__(self) -> None:
        if self.mode not in CAPTURE_MODES:
            raise ValueError(f"mode must be one of {CAPTURE_MODES}, got {self.mode!r}")
        if self.required_streak < 1:
            raise ValueError("required_streak must be at least 1")
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")
        if self.countdown_seconds < 0:
            raise ValueError("countdown_seconds must not be negative")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.no_face_message_interval_ms < 0:
            raise ValueError("no_face_message_interval_ms must not be negative")

    @classmethod
    def from_args(cls, args) -> "CaptureConfig":
        """Build a config from parsed CLI arguments (see ``utils.cli``)."""
        thresholds = resolve_profile(getattr(args, "profile", DEFAULT_PROFILE)).with_overrides(
            min_ratio=getattr(args, "min_ratio", None),
            max_ratio=getattr(args, "max_ratio", None),
            max_center_x=getattr(args, "max_center_x", None),
            max_center_y=getattr(args, "max_center_y", None),
            max_nose_offset=getattr(args, "max_nose_offset", None),
            max_tilt=getattr(args, "max_tilt", None),
        )
        return cls(
            mode=str(getattr(args, "mode", "register")),
            thresholds=thresholds,
            required_streak=int(getattr(args, "required_streak", 3)),
            poll_interval_ms=int(getattr(args, "poll_interval_ms", 400)),
            countdown_seconds=int(getattr(args, "countdown_seconds", 3)),
            timeout_ms=int(getattr(args, "timeout_ms", 15000)),
        )


__all__ = [
    "AlignmentThresholds",
    "CaptureConfig",
    "CAPTURE_MODES",
    "DEFAULT_PROFILE",
    "LENIENT_THRESHOLDS",
    "PROFILES",
    "STRICT_THRESHOLDS",
    "resolve_profile",
]
