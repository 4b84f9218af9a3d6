"""Configuration module for docsift."""

from docsift.config.logging import configure_logging
from docsift.config.settings import ExtractionSettings, get_settings

__all__ = [
    "ExtractionSettings",
    "configure_logging",
    "get_settings",
]
