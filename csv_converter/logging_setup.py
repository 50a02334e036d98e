"""
Logging setup for the converter
"""

import logging
import sys
from typing import Optional

_console_handler: Optional[logging.Handler] = None


def setup_logging(level: str = "INFO", fmt: str = "%(levelname)s %(name)s - %(message)s"):
    """Configure the root logger with one stdout handler, replacing only our own."""
    global _console_handler
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(log_level)
    if _console_handler is not None:
        logger.removeHandler(_console_handler)

    _console_handler = logging.StreamHandler(sys.stdout)
    _console_handler.setLevel(log_level)
    _console_handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(_console_handler)
