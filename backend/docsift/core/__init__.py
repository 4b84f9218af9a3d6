"""Core extraction pipeline."""

from docsift.core.exceptions import (
    ConfigurationError,
    DocsiftError,
    EncryptedDocumentError,
    MalformedInputError,
    MetadataLockedError,
    NestingDepthError,
    ParseError,
    ResourceAcquisitionError,
    TextExtractionError,
    TransformIOError,
    UnsupportedFormatError,
)
from docsift.core.orchestrator import ExtractionState, StreamTextExtractor

__all__ = [
    "StreamTextExtractor",
    "ExtractionState",
    "DocsiftError",
    "ConfigurationError",
    "MetadataLockedError",
    "ParseError",
    "UnsupportedFormatError",
    "MalformedInputError",
    "EncryptedDocumentError",
    "NestingDepthError",
    "TransformIOError",
    "ResourceAcquisitionError",
    "TextExtractionError",
]
