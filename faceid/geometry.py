"""Geometry metrics derived from a single detection frame."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import InsufficientLandmarksError
from .types import Frame

# Pixel floor for denominators that can collapse on degenerate detections.
_MIN_SPAN_PX = 1.0


@dataclass(frozen=True)
class GeometryMetrics:
    face_width_ratio: float
    center_offset_x: float
    center_offset_y: float
    nose_offset: float
    eye_tilt: float


def _cluster_mean(points: np.ndarray, name: str) -> np.ndarray:
    if points.shape[0] == 0:
        raise InsufficientLandmarksError(f"No landmark points for {name}")
    mean = points.mean(axis=0)
    if not np.all(np.isfinite(mean)):
        raise InsufficientLandmarksError(f"Non-finite landmark points for {name}")
    return mean


def compute_metrics(frame: Frame) -> GeometryMetrics:
    """Compute size, centering and orientation ratios for one detection."""
    half_width = frame.frame_width * 0.5
    half_height = frame.frame_height * 0.5
    face_cx, face_cy = frame.box_center

    left_eye = _cluster_mean(frame.landmarks.left_eye, "left eye")
    right_eye = _cluster_mean(frame.landmarks.right_eye, "right eye")
    nose = _cluster_mean(frame.landmarks.nose, "nose")

    eye_mid_x = (left_eye[0] + right_eye[0]) * 0.5
    inter_eye = max(abs(float(right_eye[0] - left_eye[0])), _MIN_SPAN_PX)
    box_height = max(frame.box_height, _MIN_SPAN_PX)

    return GeometryMetrics(
        face_width_ratio=float(frame.box_width / frame.frame_width),
        center_offset_x=float(abs(face_cx - half_width) / half_width),
        center_offset_y=float(abs(face_cy - half_height) / half_height),
        nose_offset=float(abs(nose[0] - eye_mid_x) / inter_eye),
        eye_tilt=float(abs(left_eye[1] - right_eye[1]) / box_height),
    )


__all__ = ["GeometryMetrics", "compute_metrics"]
