"""Entry-point pipelines wiring the capture package to a detection source."""

from .capture import CaptureOutcome, CapturePipeline, SessionCallbacks

__all__ = ["CaptureOutcome", "CapturePipeline", "SessionCallbacks"]
