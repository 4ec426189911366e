"""loguru setup for the command-line driver.

Library modules only call `logger.*`; sinks are configured here, once.
"""
from __future__ import annotations

import os
import sys
from typing import Optional

from loguru import logger

_CONFIGURED = False


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    rotation: str = "1 day",
    retention: str = "30 days",
) -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
    )
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            sink=f"{log_dir}/{{time:YYYY-MM-DD}}.log",
            rotation=rotation,
            retention=retention,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
            enqueue=True,
        )
    _CONFIGURED = True
