"""
Logging configuration for the catalog search service.

One package logger (``catalog_search``) writes to stdout; modules get child
loggers through ``get_logger``. The level comes from ``LOG_LEVEL``.
"""
import json
import logging
import os
import sys
import time
from typing import Any

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Operations slower than this are logged at WARNING by log_performance
SLOW_OPERATION_MS = float(os.getenv("SLOW_OPERATION_MS", "1000"))

logger = logging.getLogger("catalog_search")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(console_handler)

logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional dotted suffix, e.g. ``"data.catalog_store"``

    Returns:
        ``catalog_search.<name>`` logger, or the package logger when name is empty
    """
    if name:
        return logging.getLogger(f"catalog_search.{name}")
    return logger


def format_context(context: dict) -> str:
    """Render structured context as compact JSON for a log line."""
    if not context:
        return ""
    return json.dumps(context, default=str, sort_keys=True)


def log_performance(log: logging.Logger, message: str, start_time: float, **context: Any) -> float:
    """
    Log how long an operation took since ``start_time`` (a ``time.perf_counter()`` value).

    Returns:
        Elapsed time in milliseconds
    """
    duration_ms = (time.perf_counter() - start_time) * 1000.0
    context["duration_ms"] = round(duration_ms, 2)
    level = logging.WARNING if duration_ms > SLOW_OPERATION_MS else logging.INFO
    log.log(level, "%s %s", message, format_context(context))
    return duration_ms
