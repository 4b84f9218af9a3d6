"""Custom exceptions for docsift."""

from typing import Optional


class DocsiftError(Exception):
    """Base exception for docsift errors."""
    pass


class ConfigurationError(DocsiftError):
    """Raised when configuration is invalid."""
    pass


class MetadataLockedError(DocsiftError):
    """Raised when frozen metadata is written to."""

    def __init__(self, name: str):
        super().__init__(f"Metadata is read-only, cannot write '{name}'")
        self.name = name


class ParseError(DocsiftError):
    """Raised when a document cannot be parsed."""
    pass


class UnsupportedFormatError(ParseError):
    """Raised when no registered parser claims the input."""

    def __init__(self, message: str, content_type: str = ""):
        super().__init__(message)
        self.content_type = content_type


class MalformedInputError(ParseError):
    """Raised when a parser cannot make sense of the byte structure."""

    def __init__(self, message: str, parser: str = ""):
        super().__init__(message)
        self.parser = parser


class EncryptedDocumentError(MalformedInputError):
    """Raised when a document is encrypted and cannot be opened."""
    pass


class NestingDepthError(MalformedInputError):
    """Raised when embedded documents nest deeper than allowed."""
    pass


class TransformIOError(DocsiftError):
    """Raised when the output sink rejects a write."""
    pass


class ResourceAcquisitionError(DocsiftError):
    """Raised when the input stream cannot be produced or read."""
    pass


class TextExtractionError(DocsiftError):
    """Single error type surfaced by the extraction entry points.

    The original failure is chained as ``__cause__`` and also kept on
    ``cause``; ``phase`` names the pipeline step that failed.
    """

    def __init__(
        self,
        message: str = "Extraction failed.",
        cause: Optional[BaseException] = None,
        phase: str = "",
    ):
        super().__init__(message)
        self.cause = cause
        self.phase = phase
