"""Logger setup for command-line runs."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


def setup_logger(
    name: str = "lsh_is",
    console_level: int = logging.INFO,
    log_file: Path | str | None = None,
    file_level: int = logging.DEBUG,
    max_bytes: int = 10_000_000,  # 10 MB per log file
    backup_count: int = 3,
) -> logging.Logger:
    """Configure a logger that logs to stderr and optionally to a file.

    - console_level: what goes to the screen
    - log_file: rotating log file; no file logging if None
    - file_level: what goes to the file (usually DEBUG)
    """
    logger = logging.getLogger(name)
    levels = [console_level] + ([file_level] if log_file else [])
    logger.setLevel(min(levels))

    # Avoid duplicate handlers if called twice
    if not logger.handlers:
        ch = logging.StreamHandler(stream=sys.stderr)
        ch.setLevel(console_level)
        ch.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(ch)

        if log_file is not None:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count)
            fh.setLevel(file_level)
            fh.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            ))
            logger.addHandler(fh)

        logger.propagate = False

    return logger
