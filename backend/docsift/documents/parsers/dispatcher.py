"""Automatic dispatch: detect the format, then hand off to the claiming parser."""

from typing import BinaryIO, Optional

import structlog

from docsift.config import ExtractionSettings
from docsift.core.exceptions import (
    DocsiftError,
    MalformedInputError,
    UnsupportedFormatError,
)
from docsift.documents import metadata as keys
from docsift.documents.format_detector import FormatDetector
from docsift.documents.handlers import ContentHandler
from docsift.documents.metadata import Metadata
from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext
from docsift.documents.parsers.registry import ParserRegistry, get_registry
from docsift.documents.streams import ensure_seekable, peek

logger = structlog.get_logger()


class AutoDetectParser(ContentParser):
    """Parser that selects another parser from the document's bytes.

    Detection looks at a bounded prefix of the stream, hints in the metadata
    only break ties. The winning parser is recorded under ``X-Parsed-By``.
    Decoder failures surface as ``MalformedInputError``; errors the pipeline
    raises itself (sink failures, unsupported nested input) pass through.

    Example:
        ```python
        parser = AutoDetectParser()
        context = ParseContext()
        context.set(ContentParser, parser)
        parser.parse(stream, handler, Metadata(), context)
        ```
    """

    def __init__(
        self,
        registry: Optional[ParserRegistry] = None,
        detector: Optional[FormatDetector] = None,
        settings: Optional[ExtractionSettings] = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            registry: Parser registry (default: the global registry)
            detector: Format detector (default: configured from settings)
            settings: Settings for the default detector (default: cached settings)
        """
        self.registry = registry or get_registry()
        self.detector = detector or FormatDetector(settings=settings)

    @property
    def name(self) -> str:
        return "auto"

    @property
    def priority(self) -> int:
        return 0

    def supports(self, format_type) -> bool:
        return self.registry.supports(format_type)

    def detect(self, prefix, detection) -> float:
        # Never claims input itself; it only routes
        return 0.0

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        """
        Detect the format of ``stream`` and parse it with the claiming parser.

        Raises:
            UnsupportedFormatError: If no registered parser claims the input
            MalformedInputError: If the chosen parser cannot decode the input
            ResourceAcquisitionError: If the input cannot be read
        """
        if not context.has(ContentParser):
            context.set(ContentParser, self)

        seekable, owned = ensure_seekable(
            stream, context.settings.spool_max_memory_bytes
        )
        try:
            self._dispatch(seekable, handler, metadata, context)
        finally:
            if owned:
                seekable.close()

    def _dispatch(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        # A content type set by the caller is a hint, not a fact
        declared = metadata.get(keys.CONTENT_TYPE)
        if declared and keys.CONTENT_TYPE_HINT not in metadata:
            metadata.set(keys.CONTENT_TYPE_HINT, declared)

        prefix = peek(stream, self.detector.sniff_size)
        detection = self.detector.detect(stream, metadata)
        metadata.set(keys.CONTENT_TYPE, detection.mime_type)

        log = logger.bind(
            content_type=detection.mime_type,
            format=detection.format.value,
            detected_by=detection.source.value,
            resource_name=metadata.get(keys.RESOURCE_NAME),
            depth=context.depth,
        )

        parser = self.registry.select(prefix, detection)
        if parser is None:
            log.info("no_parser_for_format")
            if not prefix:
                raise UnsupportedFormatError("Empty document", content_type=detection.mime_type)
            raise UnsupportedFormatError(
                f"No parser available for content type: {detection.mime_type}",
                content_type=detection.mime_type,
            )

        metadata.add(keys.PARSED_BY, parser.name)
        log.debug("parser_selected", parser=parser.name)

        try:
            parser.parse(stream, handler, metadata, context)
        except DocsiftError:
            raise
        except Exception as e:
            log.info("parser_failed", parser=parser.name, error=str(e))
            raise MalformedInputError(
                f"Failed to parse {detection.mime_type} with {parser.name}: {e}",
                parser=parser.name,
            ) from e
