"""Logging setup for the service process."""

from __future__ import annotations

import logging
import sys
from pathlib import Path


def setup_logging(level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Configure the package logger with a console handler and an optional file handler."""

    root_logger = logging.getLogger("tubechat")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Repeated app factory calls (tests, reloads) must not stack handlers
    if root_logger.handlers:
        return root_logger

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    root_logger.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        root_logger.addHandler(file_handler)

    return root_logger
