"""Builders for synthetic detection frames with known geometry."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Optional

import numpy as np

from faceid import Frame, Landmarks

FRAME_WIDTH = 640
FRAME_HEIGHT = 480
DESCRIPTOR_SIZE = 128


def make_descriptor(seed: float) -> np.ndarray:
    return np.full(DESCRIPTOR_SIZE, seed, dtype=np.float32)


def make_frame(
    *,
    face_width_ratio: float = 0.4,
    center: tuple[float, float] = (0.5, 0.5),
    nose_offset: float = 0.05,
    eye_tilt: float = 0.02,
    descriptor_seed: float = 1.0,
    frame_size: tuple[int, int] = (FRAME_WIDTH, FRAME_HEIGHT),
) -> Frame:
    """Build a frame whose geometry metrics come out as requested.

    ``center`` is the face center as a fraction of the frame size.
    """
    width, height = frame_size
    box_w = face_width_ratio * width
    box_h = box_w
    cx = center[0] * width
    cy = center[1] * height

    inter_eye = 0.4 * box_w
    eye_y = cy - 0.1 * box_h
    half_tilt = eye_tilt * box_h * 0.5
    left_x = cx - inter_eye * 0.5
    right_x = cx + inter_eye * 0.5
    nose_x = cx + nose_offset * inter_eye

    landmarks = Landmarks(
        left_eye=[(left_x - 3.0, eye_y - half_tilt), (left_x + 3.0, eye_y - half_tilt)],
        right_eye=[(right_x - 3.0, eye_y + half_tilt), (right_x + 3.0, eye_y + half_tilt)],
        nose=[(nose_x, cy), (nose_x, cy + 10.0)],
    )
    return Frame(
        box_x=cx - box_w * 0.5,
        box_y=cy - box_h * 0.5,
        box_width=box_w,
        box_height=box_h,
        landmarks=landmarks,
        descriptor=make_descriptor(descriptor_seed),
        frame_width=width,
        frame_height=height,
    )


def frame_record(frame: Frame) -> dict:
    """Serialise a frame the way a recorded detection stream stores it."""
    return {
        "box": {
            "x": frame.box_x,
            "y": frame.box_y,
            "width": frame.box_width,
            "height": frame.box_height,
        },
        "landmarks": {
            "left_eye": frame.landmarks.left_eye.tolist(),
            "right_eye": frame.landmarks.right_eye.tolist(),
            "nose": frame.landmarks.nose.tolist(),
        },
        "descriptor": frame.descriptor.tolist(),
        "frame_width": frame.frame_width,
        "frame_height": frame.frame_height,
    }


def write_stream(path: Path, frames: Iterable[Optional[Frame]]) -> Path:
    with path.open("w", encoding="utf-8") as handle:
        for frame in frames:
            handle.write(json.dumps(None if frame is None else frame_record(frame)))
            handle.write("\n")
    return path


class StatusRecorder:
    def __init__(self) -> None:
        self.statuses = []

    def __call__(self, status) -> None:
        self.statuses.append(status)

    @property
    def phases(self):
        seen = []
        for status in self.statuses:
            if not seen or seen[-1] is not status.phase:
                seen.append(status.phase)
        return seen

    @property
    def last(self):
        return self.statuses[-1]
