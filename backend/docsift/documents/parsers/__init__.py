"""Content parsers package."""

from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext
from docsift.documents.parsers.dispatcher import AutoDetectParser
from docsift.documents.parsers.registry import (
    ParserRegistry,
    build_default_registry,
    get_registry,
)

__all__ = [
    "AutoDetectParser",
    "ContentParser",
    "ParseContext",
    "ParserRegistry",
    "build_default_registry",
    "get_registry",
]
