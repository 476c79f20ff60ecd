"""Loguru logging configuration.

Call ``setup_logging()`` once in ``main()``. Diagnostics go to stderr so the
chat protocol on stdout stays clean; stdlib records from openai, httpx and
sqlalchemy are routed through loguru as well.
"""

import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module so loguru reports the right frame
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "WARNING") -> None:
    """Replace loguru's default sink with a single stderr sink at ``level``."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name} - <level>{message}</level>",
        colorize=True,
    )

    intercept = InterceptHandler()
    for name in ("openai", "httpx", "sqlalchemy.engine"):
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [intercept]
        stdlib_logger.propagate = False
        stdlib_logger.setLevel(logging.DEBUG if level == "DEBUG" else logging.WARNING)
