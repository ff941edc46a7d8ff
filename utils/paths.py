"""Shared path utilities for logs and capture output."""
from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
_LOGS_ENV_VAR = "FACEID_LOGS_ROOT"


def resolve_logs_root() -> Path:
    """Return the logs directory, honouring the ``FACEID_LOGS_ROOT`` override."""
    env_value = os.environ.get(_LOGS_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    return PROJECT_ROOT / "logs"


def logs_path(*parts: str) -> Path:
    """Return a path inside the project logs directory."""
    return resolve_logs_root().joinpath(*parts)


__all__ = [
    "PROJECT_ROOT",
    "logs_path",
    "resolve_logs_root",
]
