#!/usr/bin/env python3
"""Guided face capture over a recorded detection stream (CLI entry point)."""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pipelines.capture import CapturePipeline, DEFAULT_CAPTURE_LOG
from utils.cli import parse_capture_args
from utils.logging import configure_logging


def main() -> None:
    args = parse_capture_args(default_capture_log=DEFAULT_CAPTURE_LOG)
    configure_logging(args.log_level)
    try:
        pipeline = CapturePipeline(args)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Capture setup failed: {exc}") from exc
    sys.exit(pipeline.run_cli())


if __name__ == "__main__":
    main()
