"""Logging helpers shared by the server, the upstream client and the CLI.

Keeps structured ``extra=`` payloads and timing consistent so call sites stay
short. Configuration is driven by ``BLACKHOLE_LOG_LEVEL`` and may be refined
afterwards by CLI flags.
"""
from __future__ import annotations

import logging
import os
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_CONTEXT_FIELDS = (
    "event",
    "component",
    "action",
    "outcome",
    "target",
    "status_code",
    "duration_ms",
    "path",
    "package",
)


def configure_logging(enabled: bool = True) -> None:
    """Configure the root logger once from the environment.

    Args:
        enabled: When False, all records below CRITICAL are suppressed.
    """
    level_name = os.environ.get(Constants.ENV_LOG_LEVEL, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)

    if not enabled:
        logging.disable(logging.CRITICAL)
    else:
        logging.disable(logging.NOTSET)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records.

    Unknown keys are kept; ``None`` values are dropped so handlers and
    formatters never see placeholder fields.
    """
    context: Dict[str, Any] = {}
    for key in _CONTEXT_FIELDS:
        value = fields.pop(key, None)
        if value is not None:
            context[key] = value
    for key, value in fields.items():
        if value is not None:
            context[key] = value
    return context


def safe_url(url: Optional[str]) -> str:
    """Strip credentials, query string and fragment from ``url`` for logging."""
    if not url:
        return ""
    parts = urllib.parse.urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urllib.parse.urlunsplit((parts.scheme, host, parts.path, "", ""))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 2)
