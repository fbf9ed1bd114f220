"""Logging setup with request and task context for API workers and Celery."""

import json
import logging
import os
import sys
from contextvars import ContextVar, Token
from datetime import datetime
from typing import Any

from pantryplanner.config import get_settings

# One variable per context field; API middleware sets request_id, Celery tasks set task_id
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
task_id_ctx: ContextVar[str | None] = ContextVar("task_id", default=None)

CONTEXT_FIELDS: dict[str, ContextVar[str | None]] = {
    "request_id": request_id_ctx,
    "task_id": task_id_ctx,
}

# Short labels used by the text formatter
_TEXT_LABELS = {"request_id": "req", "task_id": "task"}

# Third-party loggers that are noisy at INFO
LIBRARY_LEVELS = {
    "celery": logging.WARNING,
    "celery.task": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


def current_context() -> dict[str, str]:
    """Context fields that are set in the current task or request."""
    context = {}
    for field, var in CONTEXT_FIELDS.items():
        value = var.get()
        if value:
            context[field] = value
    return context


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per line, for log shipping in production."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **current_context(),
            "location": f"{record.filename}:{record.lineno} in {record.funcName}",
        }
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload.update(extra_data)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ContextualFormatter(logging.Formatter):
    """Single-line text output for development consoles."""

    def format(self, record: logging.LogRecord) -> str:
        tags = [f"{_TEXT_LABELS[field]}={value[:8]}" for field, value in current_context().items()]
        where = record.name + (f" [{', '.join(tags)}]" if tags else "")
        line = " | ".join(
            [
                self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
                record.levelname.ljust(8),
                where,
                record.getMessage(),
            ]
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class ContextLogger(logging.LoggerAdapter):
    """Adapter that copies the current context fields onto every record."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **current_context()}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """Context-aware logger for a module."""
    return ContextLogger(logging.getLogger(name), {})


def _use_json(json_format: bool | None) -> bool:
    if json_format is not None:
        return json_format
    if os.getenv("LOG_FORMAT", "").lower() == "json":
        return True
    # Deployed containers have no TTY
    return not get_settings().is_development and not sys.stdout.isatty()


def configure_logging(
    log_level: str = "INFO",
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """
    Install handlers on the root logger.

    Args:
        log_level: Minimum level; the LOG_LEVEL environment variable wins.
        json_format: Force JSON (True) or text (False). Auto-detected when None.
        log_file: Also write records to this file.
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    use_json = _use_json(json_format)
    formatter: logging.Formatter = StructuredJsonFormatter() if use_json else ContextualFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("pantryplanner").setLevel(level)
    for name, library_level in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)

    get_logger(__name__).info(
        f"Logging configured: level={level_name}, format={'json' if use_json else 'text'}"
    )


def set_context(**values: str | None) -> None:
    """Set context fields for the rest of the current task or request."""
    for field, value in values.items():
        if value is not None:
            CONTEXT_FIELDS[field].set(value)


def clear_context() -> None:
    """Unset every context field."""
    for var in CONTEXT_FIELDS.values():
        var.set(None)


class LoggingContext:
    """Set context fields for the duration of a ``with`` block."""

    def __init__(self, **values: str | None):
        unknown = set(values) - set(CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown logging context fields: {sorted(unknown)}")
        self.values = {field: value for field, value in values.items() if value is not None}
        self._tokens: dict[str, Token] = {}

    def __enter__(self) -> "LoggingContext":
        for field, value in self.values.items():
            self._tokens[field] = CONTEXT_FIELDS[field].set(value)
        return self

    def __exit__(self, *args: Any) -> None:
        for field, token in self._tokens.items():
            CONTEXT_FIELDS[field].reset(token)
        self._tokens.clear()
