# src/logging/handlers.py - v2
"""File rotation handler for the harness log.

Logging must never abort a test: write errors on the file handler are
dropped instead of being reported through ``logging.raiseExceptions``.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path


class QuietRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that silently drops records it cannot write."""

    def handleError(self, record: logging.LogRecord) -> None:  # noqa: N802
        pass


_UNITS = {"": 1, "B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def _parse_size(size_str: str) -> int:
    """Parse a rotation size like '10MB', '512kb' or '0' into bytes.

    A size of 0 disables rotation.
    """
    match = re.fullmatch(r"(\d+)\s*([KMG]?B)?", size_str.strip(), re.IGNORECASE)
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    return int(match.group(1)) * _UNITS[(match.group(2) or "").upper()]


def create_rotating_handler(
    log_file: str,
    rotation: str = "10MB",
    retention: int = 5,
) -> QuietRotatingFileHandler:
    """Create a rotating file handler.

    Args:
        log_file: Path to log file.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of backup files to keep.

    Returns:
        Configured QuietRotatingFileHandler.

    Raises:
        OSError: If the log file cannot be opened.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    return QuietRotatingFileHandler(
        filename=str(path),
        maxBytes=_parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
