from .cli import parse_capture_args
from .logging import CSV_FIELDS, append_capture_log, configure_logging
from .paths import PROJECT_ROOT, logs_path

__all__ = [
    'parse_capture_args',
    'append_capture_log',
    'configure_logging',
    'CSV_FIELDS',
    'logs_path',
    'PROJECT_ROOT',
]
