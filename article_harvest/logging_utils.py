"""
Logging setup for collection runs.

The `article_harvest` logger gets a Rich console handler and, when a log
directory is given, a file handler writing one JSON object per record.
Modules emit structured events through log_event(); the keyword fields end
up as top-level keys of the JSON line, next to `event`.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any

from rich.logging import RichHandler

from .config import LoggingConfig


LOGGER_NAME = "article_harvest"

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def setup_logging(cfg: LoggingConfig, log_dir: Path | None = None) -> logging.Logger:
    """Configure the package logger for one run.

    Args:
        cfg: Logging settings
        log_dir: Directory for the run log; no file is written when None

    Returns:
        The configured `article_harvest` logger
    """
    level = _level_from_string(cfg.level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    if cfg.console:
        logger.addHandler(_console_handler(level))
    if cfg.file and log_dir is not None:
        logger.addHandler(_file_handler(log_dir / cfg.filename, cfg.format, level))
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def log_event(
    logger: logging.Logger | None,
    message: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Log a message with structured fields; a None logger is a no-op."""
    if logger is None:
        return
    logger.log(level, message, extra=fields)


class JsonlFormatter(logging.Formatter):
    """One JSON object per record, extras flattened into the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RESERVED
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _console_handler(level: int) -> logging.Handler:
    handler = RichHandler(rich_tracebacks=True, show_time=False, show_path=False)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(path: Path, fmt: str, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    if fmt == "jsonl":
        handler.setFormatter(JsonlFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    return handler


def _level_from_string(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)
