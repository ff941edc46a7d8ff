"""Logging helpers: console log setup and the per-run capture log."""
from __future__ import annotations

import csv
import enum
import json
import logging
from pathlib import Path
from typing import Dict, Mapping, Union

import numpy as np

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ELAPSED_DECIMALS = 1

CSV_FIELDS: tuple[str, ...] = (
    "timestamp",
    "source",
    "mode",
    "profile",
    "phase",
    "frames_polled",
    "polls_skipped",
    "streak",
    "elapsed_ms",
    "descriptor_length",
)


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Attach a console handler to the root logger (idempotent)."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    if not any(getattr(handler, "_faceid_console", False) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        handler._faceid_console = True  # type: ignore[attr-defined]
        root.addHandler(handler)


def append_capture_log(path: Path, entry: Mapping[str, object]) -> None:
    """Append one capture record; CSV when the path ends in ``.csv``, JSON lines otherwise."""
    path.parent.mkdir(parents=True, exist_ok=True)
    record = {key: _log_value(value) for key, value in entry.items()}
    if path.suffix.lower() == ".csv":
        _write_csv_row(path, record)
    else:
        with path.open("a", encoding="utf-8") as log_file:
            log_file.write(json.dumps(record) + "\n")


def _log_value(value: object) -> object:
    # Session phases, numpy counters and output paths come straight from the run.
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, float):
        return round(value, ELAPSED_DECIMALS)
    return value


def _write_csv_row(path: Path, record: Dict[str, object]) -> None:
    new_file = not path.exists() or path.stat().st_size == 0
    row = {column: record.get(column) for column in CSV_FIELDS}
    with path.open("a", encoding="utf-8", newline="") as csv_file:
        writer = csv.DictWriter(csv_file, fieldnames=CSV_FIELDS)
        if new_file:
            writer.writeheader()
        writer.writerow(row)


__all__ = ["append_capture_log", "configure_logging", "CSV_FIELDS", "LOG_FORMAT"]
