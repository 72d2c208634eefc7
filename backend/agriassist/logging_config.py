import logging
import sys
from typing import TextIO

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Route stdlib records (uvicorn, fastapi) into loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    access_log: bool = True,
    sink: TextIO | None = None,
):
    """Make loguru the only logging backend.

    ``json_logs`` writes one JSON record per line for log shippers instead of
    the coloured console format. ``access_log=False`` silences uvicorn's
    per-request lines.
    """
    logger.remove()
    sink = sink or sys.stdout
    if json_logs:
        logger.add(sink, level=level.upper(), serialize=True)
    else:
        logger.add(sink, level=level.upper(), format=CONSOLE_FORMAT, colorize=sink is sys.stdout)

    for name in ("uvicorn", "uvicorn.error", "fastapi"):
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False
    access = logging.getLogger("uvicorn.access")
    access.handlers = [InterceptHandler()] if access_log else []
    access.propagate = False
    access.disabled = not access_log

    # Every request to Supabase, AfriGIS and the LLM would otherwise log at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
