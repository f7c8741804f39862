"""
Logging setup.

stdout carries the framed protocol, so the host logs to a size-capped file;
interactive commands log to stderr.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

LOGGER_NAME = "summary_bridge"
LOG_FORMAT = "[%(asctime)s] [%(name)s] %(levelname)s %(message)s"
MAX_LOG_BYTES = 1024 * 1024


def configure_logging(
    log_file: Optional[Path] = None,
    level: str = "INFO",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=MAX_LOG_BYTES, backupCount=1, encoding="utf-8")
    else:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger
