"""Detector adapters: replay recorded detection streams through the pipeline."""
from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Iterable, List, Optional

from .types import Frame


def load_detection_stream(path: Path) -> List[Optional[Frame]]:
    """Read a JSON-lines detection log.

    Each non-blank line is either ``null`` (no face in that frame) or a
    detection record accepted by ``Frame.from_dict``.
    """
    results: List[Optional[Frame]] = []
    with Path(path).open("r", encoding="utf-8") as stream:
        for line_no, line in enumerate(stream, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{line_no}: invalid JSON ({exc.msg})") from exc
            if payload is None:
                results.append(None)
                continue
            if not isinstance(payload, dict):
                raise ValueError(f"{path}:{line_no}: expected a detection object or null")
            try:
                results.append(Frame.from_dict(payload))
            except KeyError as exc:
                raise ValueError(f"{path}:{line_no}: missing field {exc.args[0]!r}") from exc
            except (TypeError, ValueError, AttributeError) as exc:
                raise ValueError(f"{path}:{line_no}: invalid detection record ({exc})") from exc
    return results


class ReplayDetector:
    """Detector returning recorded results in order, then ``None`` (or looping)."""

    def __init__(self, results: Iterable[Optional[Frame]], *, loop: bool = False) -> None:
        self._results = list(results)
        self.loop = loop
        self.calls = 0
        self._lock = threading.Lock()

    @classmethod
    def from_file(cls, path: Path, *, loop: bool = False) -> "ReplayDetector":
        return cls(load_detection_stream(path), loop=loop)

    def __len__(self) -> int:
        return len(self._results)

    def __call__(self) -> Optional[Frame]:
        with self._lock:
            index = self.calls
            self.calls += 1
        if not self._results:
            return None
        if self.loop:
            index %= len(self._results)
        if index < len(self._results):
            return self._results[index]
        return None


__all__ = ["ReplayDetector", "load_detection_stream"]
