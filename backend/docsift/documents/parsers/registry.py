"""Parser registry for managing content parsers."""

import threading
from typing import Dict, List, Optional

import structlog

from docsift.core.exceptions import ConfigurationError
from docsift.documents.models import DetectionResult, DocumentFormat
from docsift.documents.parsers.base import ContentParser

logger = structlog.get_logger()


class ParserRegistry:
    """Registry for content parsers.

    Built once, then frozen: concurrent extractions only ever read it.
    """

    def __init__(self) -> None:
        """Initialize the parser registry."""
        self._parsers: Dict[DocumentFormat, List[ContentParser]] = {}
        self._all_parsers: List[ContentParser] = []
        self._frozen = False

    def register(self, parser: ContentParser) -> None:
        """
        Register a parser.

        Args:
            parser: Parser instance to register

        Raises:
            ConfigurationError: If the registry is frozen
        """
        self._check_mutable()

        # Register for all supported formats
        for fmt in DocumentFormat:
            if parser.supports(fmt) and fmt != DocumentFormat.UNKNOWN:
                if fmt not in self._parsers:
                    self._parsers[fmt] = []
                self._parsers[fmt].append(parser)
                # Sort by priority (descending)
                self._parsers[fmt].sort(key=lambda p: p.priority, reverse=True)

        if parser not in self._all_parsers:
            self._all_parsers.append(parser)

        logger.debug("parser_registered", parser=parser.name, priority=parser.priority)

    def unregister(self, parser: ContentParser) -> None:
        """
        Unregister a parser.

        Args:
            parser: Parser instance to unregister

        Raises:
            ConfigurationError: If the registry is frozen
        """
        self._check_mutable()

        for fmt in self._parsers:
            if parser in self._parsers[fmt]:
                self._parsers[fmt].remove(parser)

        if parser in self._all_parsers:
            self._all_parsers.remove(parser)

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_parser(
        self,
        format_type: DocumentFormat,
        preferred_name: Optional[str] = None,
    ) -> Optional[ContentParser]:
        """
        Get the best parser for a format.

        Args:
            format_type: Document format
            preferred_name: Optional preferred parser name

        Returns:
            Best matching parser or None
        """
        parsers = self._parsers.get(format_type, [])

        if not parsers:
            return None

        if preferred_name:
            for parser in parsers:
                if parser.name == preferred_name:
                    return parser

        # Return highest priority parser
        return parsers[0]

    def select(self, prefix: bytes, detection: DetectionResult) -> Optional[ContentParser]:
        """
        Pick the parser with the strongest claim on an input.

        Ties on confidence go to the higher priority, then to the parser
        registered first.

        Args:
            prefix: Leading bytes of the input
            detection: Format detection result

        Returns:
            Claiming parser or None
        """
        best: Optional[ContentParser] = None
        best_score = (0.0, 0)
        for parser in self._all_parsers:
            confidence = parser.detect(prefix, detection)
            if confidence <= 0.0:
                continue
            score = (confidence, parser.priority)
            if best is None or score > best_score:
                best, best_score = parser, score
        return best

    def list_parsers(self) -> List[ContentParser]:
        """List all registered parsers."""
        return self._all_parsers.copy()

    def supports(self, format_type: DocumentFormat) -> bool:
        """Check if any parser supports the format."""
        return format_type in self._parsers and len(self._parsers[format_type]) > 0

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError("Parser registry is frozen")


def build_default_registry() -> ParserRegistry:
    """Register every built-in parser and freeze the result."""
    from docsift.documents.parsers.archive_parsers import ArchiveParser
    from docsift.documents.parsers.image_parser import ImageParser
    from docsift.documents.parsers.office_parsers import DocxParser, PptxParser, XlsxParser
    from docsift.documents.parsers.pdf_parser import PyMuPDFParser
    from docsift.documents.parsers.rtf_parser import RtfParser
    from docsift.documents.parsers.text_parser import TextParser
    from docsift.documents.parsers.web_parsers import HtmlParser, XmlParser

    registry = ParserRegistry()
    for parser in (
        PyMuPDFParser(),
        DocxParser(),
        PptxParser(),
        XlsxParser(),
        RtfParser(),
        ImageParser(),
        HtmlParser(),
        XmlParser(),
        TextParser(),
        ArchiveParser(),
    ):
        registry.register(parser)
    registry.freeze()
    return registry


# Global registry instance
_registry: Optional[ParserRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> ParserRegistry:
    """Get the global parser registry, building it on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = build_default_registry()
                logger.info(
                    "parser_registry_initialized",
                    parsers=[p.name for p in _registry.list_parsers()],
                )
    return _registry
