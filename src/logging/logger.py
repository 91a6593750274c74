# src/logging/logger.py - v1
"""Package logging: JSON lines for services, one-line text for the CLI.

Every record carries the bot/request/language/stage context set by the
engine, so a single extraction can be followed across stages.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from nlucore.logging.context import get_context

ROOT_LOGGER = "nlucore"

# Chatty client libraries, never more verbose than WARNING
QUIET_LIBRARIES = ("httpx", "httpcore")


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per record; context and ``extra={"data": ...}`` nested."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """``time [LEVEL] logger <bot> [lang] (stage) - message``."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        tags = [
            f"<{ctx.bot_id}>" if ctx.bot_id else "",
            f"[{ctx.language}]" if ctx.language else "",
            f"({ctx.stage})" if ctx.stage else "",
        ]
        head = " ".join(
            part
            for part in (
                _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
                f"[{record.levelname:8s}]",
                record.name,
                *tags,
            )
            if part
        )
        line = f"{head} - {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> None:
    """Route the ``nlucore`` logger tree to stdout, and optionally a file.

    Safe to call again: handlers are replaced, not added.

    Args:
        level: Package log level name.
        log_format: "json" or "text".
        log_file: Rotating log file, created with its parent directory.
        rotation: Size that triggers a rotation, e.g. "10MB".
        retention: Number of rotated files to keep.
    """
    package_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JsonFormatter() if log_format == "json" else TextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        from nlucore.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(str(log_file), rotation=rotation, retention=retention)
        )

    package_logger = logging.getLogger(ROOT_LOGGER)
    package_logger.setLevel(package_level)
    package_logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(max(package_level, logging.WARNING))


def setup_logging_from_settings(settings: Any) -> None:
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
