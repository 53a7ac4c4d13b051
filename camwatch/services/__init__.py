"""
Process-level services shared by anything that hosts the pipeline.

Currently this is logging setup: structlog over the standard library, with
JSON output for production and a console renderer for local runs.

Example:
    >>> from camwatch.services import setup_logging
    >>> setup_logging(config.logging.level, config.logging.format)
"""

import logging
import os
from typing import Optional, Union

import structlog

from camwatch.config.models import LogFormat, LogLevel


def setup_logging(
    level: Optional[Union[LogLevel, str]] = None,
    format: Union[LogFormat, str] = LogFormat.JSON,
) -> None:
    """
    Configure structured logging.

    Args:
        level: Log level; LOG_LEVEL from the environment wins when set,
            then this argument, then INFO.
        format: "json" for JSON lines, "text" for the console renderer.
    """
    env_level = os.getenv("LOG_LEVEL")
    if env_level:
        level_name = env_level.upper()
    elif level is not None:
        level_name = LogLevel(level).value
    else:
        level_name = LogLevel.INFO.value

    renderer = (
        structlog.processors.JSONRenderer()
        if LogFormat(format) == LogFormat.JSON
        else structlog.dev.ConsoleRenderer()
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level_name, logging.INFO),
    )

    # Reduce noise from HTTP client internals
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


__all__ = ["setup_logging"]
