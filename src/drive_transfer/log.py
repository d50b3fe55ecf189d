"""Logging setup: daily JSON-lines log files plus console output.

Components take a ``logging.Logger`` argument and default to their module
logger; nothing here is a process-wide singleton beyond what ``logging``
itself keeps. Call ``setup_logging`` once from the entry point.
"""

from __future__ import annotations

import json
import logging
import re
import sys
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any

from drive_transfer.config import LOGS_DIR

ROOT_LOGGER = "drive_transfer"
CONSOLE_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SensitiveDataFilter(logging.Filter):
    """Mask OAuth tokens, secrets and authorization codes in log records."""

    PATTERNS = [
        (
            re.compile(r'((?:access_|refresh_)?token["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.I),
            r"\1***MASKED***",
        ),
        (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.I), r"\1***MASKED***"),
        (re.compile(r"([?&]code=)([^&\s]+)", re.I), r"\1***MASKED***"),
        (re.compile(r"(bearer\s+)([^\s,}'\"]+)", re.I), r"\1***MASKED***"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._mask(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(self._mask(arg) for arg in record.args)
        return True

    def _mask(self, value: Any) -> Any:
        if isinstance(value, str):
            for pattern, replacement in self.PATTERNS:
                value = pattern.sub(replacement, value)
        return value


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message and optional data."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).strftime(DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if data is not None:
            entry["data"] = data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def log_file_for(log_dir: Path, day: date | None = None) -> Path:
    """Path of the log file for a given day (today by default)."""
    day = day or date.today()
    return log_dir / f"app-{day.isoformat()}.log"


def setup_logging(
    log_dir: str | Path | None = None,
    level: str | int = "INFO",
    console: bool = True,
) -> logging.Logger:
    """Configure the drive_transfer logger hierarchy.

    Args:
        log_dir: Directory for app-YYYY-MM-DD.log files; None disables file logging.
        level: Log level name or number.
        console: Also log human-readable lines to stderr.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    sensitive = SensitiveDataFilter()

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_for(log_dir), encoding="utf-8")
        file_handler.setFormatter(JsonLineFormatter())
        file_handler.addFilter(sensitive)
        logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        stream_handler.addFilter(sensitive)
        logger.addHandler(stream_handler)

    return logger


def new_operation_id() -> str:
    """Unique ID tying together the log lines of one transfer operation."""
    return f"op_{int(datetime.now().timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


def log_transfer_start(
    logger: logging.Logger,
    source_email: str,
    target_email: str,
    file_count: int,
) -> str:
    """Record the start of a transfer operation.

    Returns:
        The operation ID.
    """
    operation_id = new_operation_id()
    logger.info(
        "Transfer operation started",
        extra={
            "data": {
                "sourceEmail": source_email,
                "targetEmail": target_email,
                "fileCount": file_count,
                "operationId": operation_id,
            }
        },
    )
    return operation_id


def log_transfer_complete(logger: logging.Logger, summary: dict, operation_id: str) -> None:
    """Record the end of a transfer operation with its summary counts."""
    logger.info(
        "Transfer operation completed",
        extra={"data": {**summary, "operationId": operation_id}},
    )
