# File: fitnessgap/utils/logger.py
"""
Centralized logging configuration for FitnessGap.

Console output stays short; the daily file under FITNESSGAP_LOG_DIR keeps
every DEBUG line so a scheduling run can be audited afterwards.
"""

import logging
import os
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional

LOG_DIR = Path(os.getenv("FITNESSGAP_LOG_DIR", "logs"))

CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s'


def _file_handler() -> Optional[logging.Handler]:
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(
            LOG_DIR / f"fitnessgap_{datetime.now():%Y%m%d}.log",
            encoding='utf-8'
        )
    except OSError:
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def setup_logger(name: str = "fitnessgap", level: int = logging.INFO) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        name: Logger name
        level: Console level (default: INFO); the file always gets DEBUG

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    logger.addHandler(console)

    file_handler = _file_handler()
    if file_handler is None:
        logger.warning(f"Cannot write logs to {LOG_DIR}; console only")
    else:
        logger.addHandler(file_handler)

    return logger


class LoggerMixin:
    """Mixin to add logging capability to any class."""

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, '_logger'):
            self._logger = setup_logger(f"fitnessgap.{self.__class__.__name__}")
        return self._logger
