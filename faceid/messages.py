"""User-facing guidance text for the capture status stream."""
from __future__ import annotations

from typing import Dict

from .gate import RejectReason

REJECT_MESSAGES: Dict[RejectReason, str] = {
    RejectReason.NO_FACE: "No face detected. Please move closer or adjust lighting.",
    RejectReason.TOO_FAR: "Move closer to the camera.",
    RejectReason.TOO_CLOSE: "Move slightly farther from the camera.",
    RejectReason.OFF_CENTER_X: "Move your face toward the center.",
    RejectReason.OFF_CENTER_Y: "Adjust up/down to center your face.",
    RejectReason.ROTATED: "Please face the camera directly.",
    RejectReason.TILTED: "Keep your head level (avoid tilting).",
}

READY_MESSAGE = "Ready."
DETECTING_MESSAGE = "Align your face roughly in the center and look at the camera."
TIMED_OUT_MESSAGE = "No valid face detected. Please try again."
CANCELLED_MESSAGE = "Capture cancelled."
FORCE_NO_FACE_MESSAGE = "No face detected. Try again."


def countdown_message(remaining: int) -> str:
    return f"Capturing in {remaining}..."


def progress_message(streak: int, required: int) -> str:
    return f"Face aligned ({min(streak, required)}/{required})..."


def captured_message(mode: str) -> str:
    if mode == "register":
        return "Face detected successfully!"
    return "Face captured."


def reject_message(reason: RejectReason) -> str:
    return REJECT_MESSAGES[reason]


__all__ = [
    "REJECT_MESSAGES",
    "READY_MESSAGE",
    "DETECTING_MESSAGE",
    "TIMED_OUT_MESSAGE",
    "CANCELLED_MESSAGE",
    "FORCE_NO_FACE_MESSAGE",
    "countdown_message",
    "progress_message",
    "captured_message",
    "reject_message",
]
