"""Parser base interface for content extraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, BinaryIO, FrozenSet

from docsift.documents.handlers import ContentHandler
from docsift.documents.metadata import Metadata
from docsift.documents.models import DetectionResult, DocumentFormat

if TYPE_CHECKING:
    from docsift.documents.parsers.context import ParseContext


class ContentParser(ABC):
    """Base interface for content parsers.

    A parser turns a byte stream into structural content events pushed to a
    ``ContentHandler`` and writes what it learns about the document into
    ``Metadata``. The automatic dispatcher implements the same interface,
    which is how container parsers hand embedded documents back to it.
    """

    SUPPORTED_FORMATS: FrozenSet[DocumentFormat] = frozenset()

    @abstractmethod
    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        """
        Parse a document, emitting content events and filling metadata.

        Args:
            stream: Seekable binary stream positioned at the document start
            handler: Receiver of the structural content events
            metadata: Metadata to populate
            context: Parse context (settings and capabilities)

        Raises:
            ParseError: If parsing fails
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Parser name.

        Returns:
            Human-readable parser name
        """
        pass

    @property
    def priority(self) -> int:
        """
        Parser priority (higher = preferred).

        Returns:
            Priority value for this parser
        """
        return 100

    def supports(self, format_type: DocumentFormat) -> bool:
        """
        Check if this parser supports the given format.

        Args:
            format_type: Document format to check

        Returns:
            True if the format is supported
        """
        return format_type in self.SUPPORTED_FORMATS

    def detect(self, prefix: bytes, detection: DetectionResult) -> float:
        """
        Claim an input given its byte prefix and detection result.

        Args:
            prefix: Leading bytes of the input
            detection: Result of format detection, including hints

        Returns:
            Confidence between 0.0 (no claim) and 1.0
        """
        return 1.0 if self.supports(detection.format) else 0.0

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} priority={self.priority}>"
