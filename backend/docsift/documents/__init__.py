"""Document detection, parsing and text transformation for docsift.

Parsers push structural content events into a ``ContentHandler``; the
``TextContentTransform`` flattens them into encoded text on a byte sink.
"""

from docsift.documents.format_detector import FormatDetector
from docsift.documents.handlers import (
    ContentHandler,
    EmbeddedContentHandler,
    StructuredContentWriter,
    TeeContentHandler,
)
from docsift.documents.metadata import Metadata
from docsift.documents.models import DetectionResult, DetectionSource, DocumentFormat
from docsift.documents.transform import TextContentTransform, TextTransformOptions

__all__ = [
    # Models
    "DocumentFormat",
    "DetectionResult",
    "DetectionSource",
    "Metadata",
    # Handlers
    "ContentHandler",
    "EmbeddedContentHandler",
    "StructuredContentWriter",
    "TeeContentHandler",
    # Main classes
    "FormatDetector",
    "TextContentTransform",
    "TextTransformOptions",
]
