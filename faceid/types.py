"""Detection frame and landmark containers consumed by the capture pipeline."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import numpy as np


def _as_points(points: Any) -> np.ndarray:
    array = np.asarray(points, dtype=np.float32)
    if array.size == 0:
        return np.zeros((0, 2), dtype=np.float32)
    return array.reshape(-1, 2)


@dataclass(frozen=True, eq=False)
class Landmarks:
    """Eye and nose landmark clusters as ``(N, 2)`` arrays of (x, y) points."""

    left_eye: np.ndarray
    right_eye: np.ndarray
    nose: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "left_eye", _as_points(self.left_eye))
        object.__setattr__(self, "right_eye", _as_points(self.right_eye))
        object.__setattr__(self, "nose", _as_points(self.nose))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Sequence[Sequence[float]]]) -> "Landmarks":
        return cls(
            left_eye=payload.get("left_eye", payload.get("leftEye", ())),
            right_eye=payload.get("right_eye", payload.get("rightEye", ())),
            nose=payload.get("nose", ()),
        )


@dataclass(frozen=True, eq=False)
class Frame:
    """One detection sample: face box, landmarks and descriptor plus frame size."""

    box_x: float
    box_y: float
    box_width: float
    box_height: float
    landmarks: Landmarks
    descriptor: np.ndarray
    frame_width: float
    frame_height: float
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        sizes = (self.box_x, self.box_y, self.box_width, self.box_height, self.frame_width, self.frame_height)
        if not all(math.isfinite(value) for value in sizes):
            raise ValueError("Face box and frame size must be finite numbers")
        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ValueError(f"Frame size must be positive, got {self.frame_width}x{self.frame_height}")
        if self.box_width < 0 or self.box_height < 0:
            raise ValueError("Face box dimensions must be non-negative")
        descriptor = np.asarray(self.descriptor, dtype=np.float32).reshape(-1)
        descriptor.setflags(write=False)
        object.__setattr__(self, "descriptor", descriptor)

    @property
    def box_center(self) -> tuple[float, float]:
        return (self.box_x + self.box_width * 0.5, self.box_y + self.box_height * 0.5)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Frame":
        """Build a frame from a recorded detection record.

        Accepts either a nested ``box`` mapping (``x``, ``y``, ``width``,
        ``height``) or flat ``box_*`` keys.
        """
        box = payload.get("box") or {}
        return cls(
            box_x=float(box.get("x", payload.get("box_x", 0.0))),
            box_y=float(box.get("y", payload.get("box_y", 0.0))),
            box_width=float(box.get("width", payload.get("box_width", 0.0))),
            box_height=float(box.get("height", payload.get("box_height", 0.0))),
            landmarks=Landmarks.from_dict(payload.get("landmarks") or {}),
            descriptor=np.asarray(payload.get("descriptor", ()), dtype=np.float32),
            frame_width=float(payload["frame_width"]),
            frame_height=float(payload["frame_height"]),
            metadata=dict(payload.get("metadata") or {}),
        )


__all__ = ["Landmarks", "Frame"]
