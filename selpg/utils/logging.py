"""
Logging configuration for selpg.

Console logs go to stderr through rich; stdout is reserved for page data.
An optional log file receives one JSON object per record, including the run
context set with LogContext.
"""

import functools
import json
import logging
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

from selpg.config import get_settings

# Attributes every LogRecord carries; anything else came from extra= or LogContext.
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "taskName"}

# Each thread and task sees its own copy; asyncio.to_thread and new tasks inherit it.
_log_context: ContextVar[dict[str, Any]] = ContextVar("selpg_log_context", default={})


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update((key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextFilter(logging.Filter):
    """Copy the current LogContext values onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            setattr(record, key, value)
        return True


def setup_logging(log_level: Optional[str] = None, log_file_path: Optional[Path] = None) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Logging level (defaults to settings)
        log_file_path: JSON-lines log file (defaults to settings, None disables it)
    """
    settings = get_settings()
    log_level = log_level or settings.log_level
    log_file_path = log_file_path or settings.get_log_file_path()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=settings.dev_mode,
    )
    console_handler.addFilter(ContextFilter())
    root_logger.addHandler(console_handler)

    if log_file_path:
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.addFilter(ContextFilter())
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger(__name__).debug(
        "Logging configured",
        extra={"log_level": log_level, "log_file": str(log_file_path) if log_file_path else None},
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Attach key/value pairs to every record logged inside the block."""

    def __init__(self, **kwargs: Any) -> None:
        self.values = kwargs
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self.values})
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        _log_context.reset(self._token)


def log_performance(func):
    """Log how long each call to ``func`` took, and whether it raised."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.monotonic()
        with LogContext(function=func.__name__):
            logger.debug(f"Starting {func.__name__}")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Failed {func.__name__}",
                    extra={"duration_seconds": time.monotonic() - start_time, "error": str(e)},
                )
                raise
            logger.info(
                f"Completed {func.__name__}",
                extra={"duration_seconds": time.monotonic() - start_time},
            )
            return result

    return wrapper
