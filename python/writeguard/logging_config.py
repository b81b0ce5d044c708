"""
Logging configuration for writeguard.

Library code only ever calls logging.getLogger(__name__); handlers are
installed here, by the CLI. Embedding applications configure logging
themselves.

Logs go to .writeguard/logs/writeguard-YYYY-MM-DD.log (rotated daily), and
optionally to stderr.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class FlushingHandler(logging.handlers.TimedRotatingFileHandler):
    """Rotating file handler that flushes after every record."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    backup_count: int = 14,
    console: bool = False,
) -> logging.Logger:
    """
    Set up file-based logging with daily rotation.

    Calling it again is safe: existing handlers are reused, not duplicated.

    Args:
        log_dir: Directory for log files (default: .writeguard/logs)
        level: Logging level (default: INFO)
        backup_count: Number of daily backup files to keep
        console: If True, also log to stderr

    Returns:
        The configured "writeguard" logger
    """
    if log_dir is None:
        log_dir = Path.cwd() / ".writeguard" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("writeguard")
    logger.setLevel(level)

    has_file_handler = any(isinstance(h, FlushingHandler) for h in logger.handlers)
    has_console_handler = any(
        type(h) is logging.StreamHandler and h.stream is sys.stderr for h in logger.handlers
    )

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not has_file_handler:
        log_file = log_dir / f"writeguard-{datetime.now().strftime('%Y-%m-%d')}.log"
        file_handler = FlushingHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(f"Logging to {log_file} (level {logging.getLevelName(level)})")

    if console and not has_console_handler:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
