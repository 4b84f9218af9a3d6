"""structlog wiring for docsift."""

import logging
from typing import Optional

import structlog

from docsift.config.settings import ExtractionSettings, get_settings


def configure_logging(settings: Optional[ExtractionSettings] = None) -> None:
    """Configure structlog from the extraction settings.

    Libraries embedding docsift may skip this and configure structlog
    themselves; the module loggers only call ``structlog.get_logger()``.

    Args:
        settings: Settings to read level and format from (default: cached settings)
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
