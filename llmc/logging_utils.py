"""Runtime logging helpers."""

import os
import sys
from typing import Optional

from loguru import logger

_FORMAT = "{time:HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message}"
_CONFIGURED_LEVEL: Optional[str] = None


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-level logging once per level.

    Logs go to stderr so stdout carries nothing but the final answer. The
    default level keeps a normal run silent apart from its diagnostic line.
    """
    global _CONFIGURED_LEVEL

    level = (level or os.getenv("LLMC_LOG_LEVEL", "WARNING")).upper()
    if level == _CONFIGURED_LEVEL:
        return

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=_FORMAT,
        backtrace=False,
        diagnose=False,
    )
    _CONFIGURED_LEVEL = level
