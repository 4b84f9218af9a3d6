"""Structural content events emitted by parsers.

Parsers push events in document order into a ``ContentHandler``; nothing is
buffered, so memory stays bounded by whatever the decoder itself holds.
"""

from abc import ABC
from typing import Dict, Iterable, List, Optional

Attributes = Dict[str, str]

# Elements after which a line break is emitted to keep flat text readable
BLOCK_ELEMENTS = frozenset(
    {
        "p",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "div",
        "li",
        "ul",
        "ol",
        "table",
        "tr",
        "tbody",
        "thead",
        "pre",
        "blockquote",
        "title",
        "section",
        "article",
        "header",
        "footer",
        "aside",
        "nav",
        "main",
        "dl",
        "dt",
        "dd",
        "figure",
        "figcaption",
        "address",
        "caption",
        "hr",
        "br",
    }
)

CELL_ELEMENTS = frozenset({"td", "th"})


class ContentHandler(ABC):
    """Consumer of structural content events.

    All callbacks default to no-ops so a handler only overrides what it
    cares about.
    """

    def start_document(self) -> None:
        pass

    def end_document(self) -> None:
        pass

    def start_element(self, name: str, attributes: Optional[Attributes] = None) -> None:
        pass

    def end_element(self, name: str) -> None:
        pass

    def characters(self, text: str) -> None:
        pass

    def ignorable_whitespace(self, text: str) -> None:
        pass


class EmbeddedContentHandler(ContentHandler):
    """Forward events of a nested document, minus its document boundaries."""

    def __init__(self, handler: ContentHandler) -> None:
        self.handler = handler

    def start_element(self, name: str, attributes: Optional[Attributes] = None) -> None:
        self.handler.start_element(name, attributes)

    def end_element(self, name: str) -> None:
        self.handler.end_element(name)

    def characters(self, text: str) -> None:
        self.handler.characters(text)

    def ignorable_whitespace(self, text: str) -> None:
        self.handler.ignorable_whitespace(text)


class TeeContentHandler(ContentHandler):
    """Deliver every event to several handlers, in order."""

    def __init__(self, *handlers: ContentHandler) -> None:
        self.handlers: List[ContentHandler] = list(handlers)

    def start_document(self) -> None:
        for handler in self.handlers:
            handler.start_document()

    def end_document(self) -> None:
        for handler in self.handlers:
            handler.end_document()

    def start_element(self, name: str, attributes: Optional[Attributes] = None) -> None:
        for handler in self.handlers:
            handler.start_element(name, attributes)

    def end_element(self, name: str) -> None:
        for handler in self.handlers:
            handler.end_element(name)

    def characters(self, text: str) -> None:
        for handler in self.handlers:
            handler.characters(text)

    def ignorable_whitespace(self, text: str) -> None:
        for handler in self.handlers:
            handler.ignorable_whitespace(text)


class StructuredContentWriter:
    """Helper parsers use to emit a well-formed XHTML-like event stream.

    Wraps the ``html``/``body`` envelope around the document and adds a
    newline after block elements (a tab after table cells) as ignorable
    whitespace, so a flat-text consumer gets reading-order line breaks
    without the parser having to care.

    Example:
        ```python
        xhtml = StructuredContentWriter(handler)
        xhtml.start_document()
        xhtml.element("h1", "Title")
        xhtml.paragraph("Body text")
        xhtml.end_document()
        ```
    """

    def __init__(self, handler: ContentHandler) -> None:
        self.handler = handler
        self._open: List[str] = []

    def start_document(self) -> None:
        self.handler.start_document()
        self.start_element("html")
        self.start_element("body")

    def end_document(self) -> None:
        # Close anything a parser left open (e.g. on an early return)
        while self._open:
            self.end_element(self._open[-1])
        self.handler.end_document()

    def start_element(self, name: str, attributes: Optional[Attributes] = None) -> None:
        self._open.append(name)
        self.handler.start_element(name, attributes or {})

    def end_element(self, name: str) -> None:
        if self._open and self._open[-1] == name:
            self._open.pop()
        self.handler.end_element(name)
        if name in BLOCK_ELEMENTS:
            self.handler.ignorable_whitespace("\n")
        elif name in CELL_ELEMENTS:
            self.handler.ignorable_whitespace("\t")

    def characters(self, text: Optional[str]) -> None:
        if text:
            self.handler.characters(text)

    def newline(self) -> None:
        self.handler.ignorable_whitespace("\n")

    def element(
        self, name: str, text: Optional[str], attributes: Optional[Attributes] = None
    ) -> None:
        """Emit ``<name>text</name>``."""
        self.start_element(name, attributes)
        self.characters(text)
        self.end_element(name)

    def paragraph(self, text: Optional[str]) -> None:
        self.element("p", text)

    def paragraphs(self, texts: Iterable[str]) -> None:
        for text in texts:
            self.paragraph(text)

    def table_row(self, cells: Iterable[Optional[str]]) -> None:
        self.start_element("tr")
        for cell in cells:
            self.element("td", cell)
        self.end_element("tr")
