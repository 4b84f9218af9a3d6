"""docsift - text and metadata extraction from unlabeled document bytes."""

from docsift.config import ExtractionSettings, configure_logging, get_settings
from docsift.core.exceptions import (
    DocsiftError,
    MalformedInputError,
    ResourceAcquisitionError,
    TextExtractionError,
    TransformIOError,
    UnsupportedFormatError,
)
from docsift.core.orchestrator import ExtractionState, StreamTextExtractor
from docsift.documents.metadata import Metadata
from docsift.documents.models import DocumentFormat
from docsift.extractor import TextExtractionResult, TextExtractor

__version__ = "0.1.0"

__all__ = [
    # Extraction
    "StreamTextExtractor",
    "ExtractionState",
    "TextExtractor",
    "TextExtractionResult",
    "Metadata",
    "DocumentFormat",
    # Errors
    "DocsiftError",
    "TextExtractionError",
    "UnsupportedFormatError",
    "MalformedInputError",
    "TransformIOError",
    "ResourceAcquisitionError",
    # Configuration
    "ExtractionSettings",
    "configure_logging",
    "get_settings",
]
