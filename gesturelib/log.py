"""Logging setup for applications embedding gesturelib.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, under the ``gesturelib`` logger.
"""

from pathlib import Path
from typing import Optional, Union
import logging
import os


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    level = os.environ.get("GESTURELIB_LOG_LEVEL", level)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger('gesturelib')
    logger.setLevel(min(level, logging.DEBUG) if log_file else level)
    logger.handlers.clear()

    fmt = logging.Formatter('[%(asctime)s] %(message)s', datefmt='%H:%M:%S')

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        fh = logging.FileHandler(log_file)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter('%(asctime)s | %(levelname)s | %(name)s | %(message)s'))
        logger.addHandler(fh)

    return logger
