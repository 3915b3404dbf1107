"""
Structured logging.

All modules log through `get_logger(__name__)`. Configuration happens once, lazily, using the Settings.
"""

import logging
import sys
from typing import Optional

import structlog

from six_degrees.core.config import get_settings

_configured = False


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    """Route structlog events through the standard library root logger (so pytest's caplog sees them too)."""
    global _configured

    log_level = logging.getLevelName(level.upper())
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: Optional[str] = None) -> structlog.typing.FilteringBoundLogger:
    if not _configured:
        settings = get_settings()
        configure_logging(settings.log_level, settings.log_json)
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger
