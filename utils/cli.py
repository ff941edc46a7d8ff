"""Command-line argument builders for project entry points."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from faceid.config import CAPTURE_MODES, DEFAULT_PROFILE, PROFILES, CaptureConfig

_DEFAULTS = CaptureConfig()


def parse_capture_args(
    *,
    default_capture_log: Path,
    argv: Optional[Sequence[str]] = None,
) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Guided face capture: align, hold steady, and emit one descriptor.")

    capture_group = parser.add_argument_group("Capture settings")
    capture_group.add_argument(
        "--detections",
        required=True,
        help="Path to a JSON-lines detection stream to replay (one record or null per frame).",
    )
    capture_group.add_argument(
        "--loop",
        action="store_true",
        help="Restart the detection stream from the beginning when it runs out.",
    )
    capture_group.add_argument(
        "--mode",
        choices=list(CAPTURE_MODES),
        default=_DEFAULTS.mode,
        help="'register' to enrol a new face or 'match' to capture for comparison.",
    )
    capture_group.add_argument(
        "--output",
        default=None,
        help="Optional .npy path to save the captured descriptor.",
    )
    capture_group.add_argument(
        "--capture-log",
        default=str(default_capture_log),
        help="Path to append capture results (CSV when the suffix is .csv, JSON lines otherwise).",
    )
    capture_group.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level for library diagnostics (DEBUG, INFO, WARNING, ...).",
    )

    threshold_group = parser.add_argument_group("Alignment thresholds")
    threshold_group.add_argument(
        "--profile",
        choices=sorted(PROFILES),
        default=DEFAULT_PROFILE,
        help="Named threshold profile; individual thresholds below override it.",
    )
    threshold_group.add_argument(
        "--min-ratio",
        type=float,
        default=None,
        help="Minimum face width as a fraction of frame width (below = move closer).",
    )
    threshold_group.add_argument(
        "--max-ratio",
        type=float,
        default=None,
        help="Maximum face width as a fraction of frame width (above = move farther).",
    )
    threshold_group.add_argument(
        "--max-center-x",
        type=float,
        default=None,
        help="Maximum horizontal offset of the face center, as a fraction of half the frame width.",
    )
    threshold_group.add_argument(
        "--max-center-y",
        type=float,
        default=None,
        help="Maximum vertical offset of the face center, as a fraction of half the frame height.",
    )
    threshold_group.add_argument(
        "--max-nose-offset",
        type=float,
        default=None,
        help="Maximum nose offset from the eye midpoint, relative to inter-eye distance.",
    )
    threshold_group.add_argument(
        "--max-tilt",
        type=float,
        default=None,
        help="Maximum eye height difference relative to the face box height.",
    )

    timing_group = parser.add_argument_group("Session timing")
    timing_group.add_argument(
        "--required-streak",
        type=int,
        default=_DEFAULTS.required_streak,
        help="Number of consecutive aligned frames before the descriptor is captured.",
    )
    timing_group.add_argument(
        "--poll-interval-ms",
        type=int,
        default=_DEFAULTS.poll_interval_ms,
        help="Milliseconds between detector polls.",
    )
    timing_group.add_argument(
        "--countdown-seconds",
        type=int,
        default=_DEFAULTS.countdown_seconds,
        help="Countdown length before detection starts (0 = start immediately).",
    )
    timing_group.add_argument(
        "--timeout-ms",
        type=int,
        default=_DEFAULTS.timeout_ms,
        help="Give up when no stable alignment is reached within this many milliseconds.",
    )

    display_group = parser.add_argument_group("Display")
    display_group.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the final outcome, not every status update.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


__all__ = ["parse_capture_args"]
