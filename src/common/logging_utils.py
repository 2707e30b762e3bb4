"""Centralized logging helpers.

The CLI calls :func:`configure_logging` exactly once with an explicit level;
library modules only ever obtain a module logger and use the helpers below to
attach structured context to DEBUG traces.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from constants import Constants

_SENSITIVE_KEYS = ("token", "key", "secret", "password", "auth", "signature")
_REDACTED = "***"


def _coerce_level(level: Union[int, str, None]) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(
    level: Union[int, str, None] = logging.INFO,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root logger for console (and optionally file) output.

    Existing root handlers are replaced so repeated calls (tests, embedding)
    do not duplicate output.

    Args:
        level: Logging level name or number.
        log_file: Optional path of a file receiving timestamped records.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
        root.addHandler(file_handler)

    root.setLevel(_coerce_level(level))


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records, dropping None values."""
    return {k: v for k, v in fields.items() if v is not None}


def redact(value: Optional[str]) -> str:
    """Mask a secret, keeping only a short prefix for correlation."""
    if not value:
        return ""
    if len(value) <= 4:
        return _REDACTED
    return value[:2] + _REDACTED


def safe_url(url: str) -> str:
    """Return ``url`` with credential-like query parameters and userinfo masked."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    netloc = parts.netloc
    if "@" in netloc:
        netloc = _REDACTED + "@" + netloc.rsplit("@", 1)[1]
    query = parts.query
    if query:
        pairs = []
        for key, value in parse_qsl(query, keep_blank_values=True):
            if any(s in key.lower() for s in _SENSITIVE_KEYS):
                value = _REDACTED
            pairs.append((key, value))
        query = urlencode(pairs, safe="*")
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


def log_selection(logger: logging.Logger, what: str, selected: str, rationale: str) -> None:
    """Log which candidate won a heuristic selection and why."""
    logger.debug("Selected %s: %s (%s)", what, selected, rationale)


def warn_multiple_candidates(
    logger: logging.Logger, what: str, selected: str, alternatives: Iterable[str]
) -> None:
    """Warn that several candidates matched and only one was used."""
    others = ", ".join(str(a) for a in alternatives)
    if others:
        logger.warning("Multiple %s found; using %s (also present: %s)", what, selected, others)


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 2)
