"""HTML and XML parsers."""

import re
import xml.etree.ElementTree as ET
from typing import BinaryIO

from bs4 import BeautifulSoup
from bs4.element import CData, NavigableString, Tag

from docsift.documents import metadata as keys
from docsift.documents.handlers import (
    BLOCK_ELEMENTS,
    CELL_ELEMENTS,
    ContentHandler,
    StructuredContentWriter,
)
from docsift.documents.metadata import Metadata
from docsift.documents.models import DocumentFormat
from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext
from docsift.documents.streams import read_all

# <meta name="..."> values copied into metadata
_META_NAMES = {
    "author": keys.CREATOR,
    "description": keys.DESCRIPTION,
    "keywords": keys.KEYWORDS,
    "generator": keys.CREATOR_TOOL,
}

# Elements whose content is never rendered as text
_SKIPPED_TAGS = frozenset({"head", "title", "script", "style", "noscript", "template"})

_STRUCTURAL_TAGS = BLOCK_ELEMENTS | CELL_ELEMENTS

_WHITESPACE_RE = re.compile(r"\s+")


class HtmlParser(ContentParser):
    """Parser for HTML documents.

    Scripts and styles are dropped; the title and common ``<meta>`` tags go
    to metadata, visible body text to content.
    """

    SUPPORTED_FORMATS = frozenset({DocumentFormat.HTML})

    @property
    def name(self) -> str:
        return "html"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        # bs4 sniffs the charset (BOM, <meta charset>, then heuristics)
        soup = BeautifulSoup(read_all(stream), "html.parser")
        metadata.set(keys.ENCODING, soup.original_encoding)

        # Remove script and style elements
        for script in soup(["script", "style", "noscript", "template"]):
            script.decompose()

        title = None
        if soup.title:
            title = soup.title.get_text().strip() or None
            metadata.set(keys.TITLE, title)

        for tag in soup.find_all("meta"):
            name = (tag.get("name") or "").lower()
            if name in _META_NAMES and tag.get("content"):
                metadata.set(_META_NAMES[name], tag["content"].strip())
        html_tag = soup.find("html")
        if html_tag is not None and html_tag.get("lang"):
            metadata.set(keys.LANGUAGE, html_tag["lang"])

        xhtml = StructuredContentWriter(handler)
        xhtml.start_document()
        if title:
            xhtml.element("title", title)
        _HtmlTextWriter(xhtml).write(soup.body or soup)
        xhtml.end_document()


class _HtmlTextWriter:
    """Walk a parsed HTML tree, emitting text runs inside their block elements.

    Inline markup (``b``, ``a``, ``span``, ...) emits no events of its own, so a
    sentence split across inline tags stays on one line. Whitespace collapses
    the way a browser renders it, except inside ``pre``.
    """

    def __init__(self, xhtml: StructuredContentWriter) -> None:
        self.xhtml = xhtml
        self._after_space = True

    def write(self, node: Tag, preformatted: bool = False) -> None:
        for child in node.children:
            if isinstance(child, Tag):
                self._write_tag(child, preformatted)
            elif type(child) is NavigableString or isinstance(child, CData):
                self._write_text(str(child), preformatted)

    def _write_tag(self, tag: Tag, preformatted: bool) -> None:
        name = tag.name.lower()
        if name in _SKIPPED_TAGS:
            return
        if name not in _STRUCTURAL_TAGS:
            self.write(tag, preformatted)
            return

        self.xhtml.start_element(name)
        self._after_space = True
        self.write(tag, preformatted or name == "pre")
        self.xhtml.end_element(name)
        self._after_space = True

    def _write_text(self, text: str, preformatted: bool) -> None:
        if not preformatted:
            text = _WHITESPACE_RE.sub(" ", text)
            if self._after_space:
                text = text.lstrip(" ")
        if text:
            self.xhtml.characters(text)
            self._after_space = text[-1].isspace()


class XmlParser(ContentParser):
    """Parser for generic XML documents: character data only, markup dropped.

    An element holding text of its own (mixed content included) becomes one
    line; elements that only contain other elements just recurse.
    """

    SUPPORTED_FORMATS = frozenset({DocumentFormat.XML})

    @property
    def name(self) -> str:
        return "xml"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        root = ET.fromstring(read_all(stream))

        xhtml = StructuredContentWriter(handler)
        xhtml.start_document()
        self._write_element(xhtml, root)
        xhtml.end_document()

    def _write_element(self, xhtml: StructuredContentWriter, element: ET.Element) -> None:
        if _has_own_text(element):
            text = _WHITESPACE_RE.sub(" ", "".join(element.itertext())).strip()
            xhtml.paragraph(text)
            return
        for child in element:
            self._write_element(xhtml, child)


def _has_own_text(element: ET.Element) -> bool:
    if element.text and element.text.strip():
        return True
    return any(child.tail and child.tail.strip() for child in element)
