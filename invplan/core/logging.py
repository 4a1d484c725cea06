"""Structured JSON logging with secret masking and run correlation.

Provides JSON-formatted logs with automatic secret masking and run ID tracking,
so every line emitted while one planning call is in flight can be grouped.
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
import time
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Any

from invplan.core.config import Settings, get_settings

# Run correlation (one id per facade call)
_run_id: ContextVar[str] = ContextVar("run_id", default="")


def set_run_id(value: str | None = None) -> str:
    """Set current run_id (or generate new). Returns active id."""
    rid = value or uuid.uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def get_run_id() -> str:
    """Get current run_id for contextual logging."""
    return _run_id.get()


@contextmanager
def run_context(value: str | None = None) -> Iterator[str]:
    """Bind a run_id for the duration of the block, then restore the previous one."""
    token = _run_id.set(value or uuid.uuid4().hex[:12])
    try:
        yield _run_id.get()
    finally:
        _run_id.reset(token)


# --- Secret masking patterns ---
_PATTERNS = [
    # JWT-style provider tokens
    (re.compile(r"\beyJ[A-Za-z0-9+/=_-]{20,}\b"), "eyJ***"),
    # Bearer tokens
    (re.compile(r"(?i)\bBearer\s+[A-Za-z0-9._-]{10,}\b"), "Bearer ***"),
    # Amazon refresh tokens
    (re.compile(r"\bAtzr\|[A-Za-z0-9_-]{20,}"), "Atzr|***"),
]

_SENSITIVE_KEYS = {
    "authorization",
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "client_secret",
    "password",
    "secret",
}

# Attributes every LogRecord carries; anything else came from `extra=`
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "message",
        "asctime",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    }
)


def _mask_value(v: Any) -> Any:
    """Recursively mask sensitive data in any structure."""
    if v is None or isinstance(v, (int, float, bool)):
        return v
    if isinstance(v, Mapping):
        return {
            k: ("***" if str(k).lower() in _SENSITIVE_KEYS else _mask_value(val))
            for k, val in v.items()
        }
    if isinstance(v, (list, tuple, set)):
        return [_mask_value(i) for i in v]
    s = str(v)
    for rx, repl in _PATTERNS:
        s = rx.sub(repl, s)
    return s


class JsonFormatter(logging.Formatter):
    """JSON log formatter with automatic secret masking."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON with masked secrets."""
        payload: dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": _mask_value(record.getMessage()),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
            "run_id": get_run_id() or None,
        }

        extras = {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}
        if extras:
            payload["extra"] = _mask_value(extras)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def _ensure_dir(path: str) -> None:
    """Ensure directory exists for log file."""
    d = os.path.dirname(path)
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def setup_logging(
    level: str | int = "INFO",
    to_stdout: bool = True,
    file_path: str | None = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Initialize structured JSON logging.

    Args:
        level: Log level (INFO, DEBUG, WARNING, ERROR)
        to_stdout: Enable stdout logging
        file_path: Path to JSON log file (None to disable file logging)
        max_bytes: Max log file size before rotation (default: 5MB)
        backup_count: Number of backup files to keep (default: 5)

    """
    root = logging.getLogger()
    root.setLevel(logging.getLevelName(level.upper()) if isinstance(level, str) else level)

    # Remove old handlers to avoid duplicates
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = JsonFormatter()

    if to_stdout:
        sh = logging.StreamHandler(sys.stdout)
        sh.setFormatter(fmt)
        root.addHandler(sh)

    if file_path:
        _ensure_dir(file_path)
        fh = RotatingFileHandler(
            file_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        fh.setFormatter(fmt)
        root.addHandler(fh)


def configure_logging(settings: Settings | None = None) -> None:
    """Initialize logging from LOG_LEVEL and LOG_FILE_PATH."""
    settings = settings or get_settings()
    setup_logging(level=settings.log_level, file_path=settings.log_file_path)


def get_logger(name: str) -> logging.Logger:
    """Get logger instance by name."""
    return logging.getLogger(name)


__all__ = [
    "setup_logging",
    "configure_logging",
    "get_logger",
    "set_run_id",
    "get_run_id",
    "run_context",
    "JsonFormatter",
]
