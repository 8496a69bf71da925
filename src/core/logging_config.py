"""Logging setup: plain text for terminals, one JSON object per line for log shippers.

Startup stages log through a stage-bound adapter so every record they emit
carries ``stage`` and ``environment`` attributes.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Tuple, Union

TEXT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Record attributes copied into JSON output when present
CONTEXT_FIELDS = ("stage", "environment")

# Libraries that are too chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "multipart")


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        if hasattr(record, "extra_data"):
            payload["extra"] = record.extra_data
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Adapter that stamps fixed attributes (e.g. ``stage``) onto every record."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def _formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JSONFormatter()
    return logging.Formatter(TEXT_LOG_FORMAT, DATE_FORMAT)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    json_format: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name.
        log_file: Also write to this file when set.
        json_format: Emit JSON lines instead of text.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(_formatter(json_format))

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_context_logger(name: str, **context: Any) -> ContextLogger:
    """Logger whose records all carry ``context`` as attributes."""
    return ContextLogger(logging.getLogger(name), context)


def log_stage(
    logger: Union[logging.Logger, ContextLogger],
    stage: str,
    success: bool,
    duration_ms: float,
    **extra: Any,
) -> None:
    """
    Record the outcome of one startup stage.

    The record gets a ``stage`` attribute and an ``extra_data`` dict with the
    duration, so both formatters can show it.
    """
    details = {"success": success, "duration_ms": round(duration_ms, 2), **extra}
    record_extra = {"stage": stage, "extra_data": details}
    if success:
        logger.debug("Startup stage %s completed in %.2fms", stage, duration_ms, extra=record_extra)
    else:
        logger.error("Startup stage %s failed after %.2fms", stage, duration_ms, extra=record_extra)


__all__ = [
    "setup_logging",
    "get_logger",
    "get_context_logger",
    "log_stage",
    "JSONFormatter",
    "ContextLogger",
]
