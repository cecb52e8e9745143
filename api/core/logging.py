"""
Logger factory shared by every module.

Console output always; a rotating file when `LOG_FILE` is configured.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_ROOT_NAME = "songlib"


def configure(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Attach handlers to the package root logger once per process.
    """
    root = logging.getLogger(_ROOT_NAME)
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    if root.handlers:
        return None

    formatter = logging.Formatter(_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        try:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
        except OSError as e:
            # Keep console logging when the file is not writable.
            root.warning("Failed to set up file logging: %s", e)
        else:
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
    return None


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
