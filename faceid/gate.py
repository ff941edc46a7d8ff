"""Ordered alignment checks turning geometry metrics into a single verdict."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import AlignmentThresholds
from .errors import InsufficientLandmarksError
from .geometry import GeometryMetrics, compute_metrics
from .types import Frame


class RejectReason(enum.Enum):
    NO_FACE = "no_face"
    TOO_FAR = "too_far"
    TOO_CLOSE = "too_close"
    OFF_CENTER_X = "off_center_x"
    OFF_CENTER_Y = "off_center_y"
    ROTATED = "rotated"
    TILTED = "tilted"


@dataclass(frozen=True)
class AlignmentVerdict:
    reason: Optional[RejectReason] = None

    @property
    def passed(self) -> bool:
        return self.reason is None


PASS = AlignmentVerdict()


def evaluate_alignment(
    metrics: Optional[GeometryMetrics],
    thresholds: AlignmentThresholds,
) -> AlignmentVerdict:
    """Return the first failing check, or a pass.

    The order is the message priority shown to the subject: presence, distance,
    horizontal then vertical centering, rotation, tilt.
    """
    if metrics is None:
        return AlignmentVerdict(RejectReason.NO_FACE)
    # Larger ratio means the face is closer to the camera.
    if metrics.face_width_ratio < thresholds.min_ratio:
        return AlignmentVerdict(RejectReason.TOO_FAR)
    if metrics.face_width_ratio > thresholds.max_ratio:
        return AlignmentVerdict(RejectReason.TOO_CLOSE)
    if metrics.center_offset_x > thresholds.max_center_x:
        return AlignmentVerdict(RejectReason.OFF_CENTER_X)
    if metrics.center_offset_y > thresholds.max_center_y:
        return AlignmentVerdict(RejectReason.OFF_CENTER_Y)
    if metrics.nose_offset > thresholds.max_nose_offset:
        return AlignmentVerdict(RejectReason.ROTATED)
    if metrics.eye_tilt > thresholds.max_tilt:
        return AlignmentVerdict(RejectReason.TILTED)
    return PASS


def assess_frame(
    frame: Optional[Frame],
    thresholds: AlignmentThresholds,
) -> Tuple[AlignmentVerdict, Optional[GeometryMetrics]]:
    """Run geometry and gate for one detector result; missing landmarks count as no face."""
    if frame is None:
        return AlignmentVerdict(RejectReason.NO_FACE), None
    try:
        metrics = compute_metrics(frame)
    except InsufficientLandmarksError:
        return AlignmentVerdict(RejectReason.NO_FACE), None
    return evaluate_alignment(metrics, thresholds), metrics


__all__ = ["RejectReason", "AlignmentVerdict", "PASS", "evaluate_alignment", "assess_frame"]
