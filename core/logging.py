"""
Logging Module - Centralized logging configuration
=================================================

Every module logs through the ``eliza`` logger tree. Console records go
to stderr so they never interleave with the conversation on stdout;
debug runs also write ``eliza.log`` in the log directory, either as
plain text or as one JSON object per line.

Per-turn context (see ``set_log_context``) and fields bound with
``get_logger(name, **extra)`` are attached to every record.
"""

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


ROOT_LOGGER_NAME = "eliza"
LOG_FILE_NAME = "eliza.log"


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Bound logger fields merged with the thread's conversation context."""
    fields = dict(getattr(record, "bound", None) or {})
    fields.update(getattr(record, "context", None) or {})
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for machine-read debug logs."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = _record_fields(record)
        if fields:
            entry["context"] = fields

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Colored console formatter for readable terminal output.

    Uses ANSI color codes to highlight different log levels.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        line = f"{color}[{record.levelname}]{self.RESET} {record.name} | {record.getMessage()}"

        fields = _record_fields(record)
        if fields:
            line += " [" + " ".join(f"{k}={v}" for k, v in fields.items()) + "]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


class ContextFilter(logging.Filter):
    """
    Attaches the current thread's conversation context to each record.

    The console loop stores the turn number here; anything set with
    ``set_log_context`` shows up on every record until cleared.
    """

    _local = threading.local()

    @classmethod
    def set_context(cls, **kwargs) -> None:
        data = getattr(cls._local, "data", None)
        if data is None:
            data = cls._local.data = {}
        data.update(kwargs)

    @classmethod
    def clear_context(cls) -> None:
        cls._local.data = {}

    @classmethod
    def get_context(cls) -> Dict[str, Any]:
        """Return a copy of the context for the current thread."""
        return dict(getattr(cls._local, "data", None) or {})

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = self.get_context()
        return True


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that carries fields bound at ``get_logger`` time."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        extra["bound"] = dict(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


_loggers: Dict[str, logging.Logger] = {}
_configured = False


def setup_logging(
    log_dir: Optional[str] = None,
    log_level: str = "WARNING",
    json_format: bool = False,
    console_output: bool = True
) -> None:
    """
    Set up logging for the application.

    Only the first call has an effect until ``reset_logging`` is called.

    Args:
        log_dir: Directory for eliza.log; no file is written when omitted
        log_level: Minimum level for the eliza logger tree
        json_format: Write the log file as JSON lines
        console_output: Also log to stderr

    Example:
        setup_logging(log_dir="~/.config/eliza/logs", log_level="DEBUG", json_format=True)
    """
    global _configured

    if _configured:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))
    root_logger.handlers.clear()

    context_filter = ContextFilter()
    handlers = []

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ColoredFormatter())
        handlers.append(console_handler)

    if log_dir:
        log_path = Path(log_dir).expanduser()
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / LOG_FILE_NAME, encoding="utf-8")
        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
            )
        handlers.append(file_handler)

    for handler in handlers:
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    _configured = True


def reset_logging() -> None:
    """Drop all handlers so setup_logging() can run again."""
    global _configured

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()
    _configured = False


def get_logger(name: str, **extra) -> LoggerAdapter:
    """
    Get a logger inside the eliza tree.

    Args:
        name: Module path such as "services.responder"
        **extra: Fields attached to every record from this logger

    Returns:
        LoggerAdapter instance
    """
    full_name = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"

    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)

    return LoggerAdapter(_loggers[full_name], extra)


def set_log_context(**kwargs) -> None:
    """
    Set thread-local logging context.

    Example:
        set_log_context(turn=3)
        logger.info("Generating response")  # record carries turn=3
    """
    ContextFilter.set_context(**kwargs)


def clear_log_context() -> None:
    """Clear thread-local logging context."""
    ContextFilter.clear_context()
