"""Plain text, Markdown, CSV and JSON parser."""

import codecs
from typing import BinaryIO, Tuple

from docsift.core.exceptions import MalformedInputError
from docsift.documents import metadata as keys
from docsift.documents.handlers import ContentHandler, StructuredContentWriter
from docsift.documents.metadata import Metadata
from docsift.documents.models import DocumentFormat
from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext
from docsift.documents.streams import read_all

_BOMS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def decode_text(data: bytes) -> Tuple[str, str]:
    """Decode bytes trying multiple encodings.

    Returns:
        Tuple of (text, encoding used)
    """
    for bom, encoding in _BOMS:
        if data.startswith(bom):
            return data.decode(encoding), encoding

    encodings = ["utf-8", "cp1252", "latin-1"]

    for encoding in encodings:
        try:
            return data.decode(encoding), encoding
        except UnicodeDecodeError:
            continue

    # latin-1 maps every byte, so this is unreachable in practice
    raise MalformedInputError("Could not decode text with any encoding")


class TextParser(ContentParser):
    """Parser for plain text documents.

    Markdown, CSV and JSON are passed through verbatim, line by line.
    """

    SUPPORTED_FORMATS = frozenset(
        {
            DocumentFormat.PLAIN_TEXT,
            DocumentFormat.MARKDOWN,
            DocumentFormat.CSV,
            DocumentFormat.JSON,
        }
    )

    @property
    def name(self) -> str:
        return "text"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        text, encoding = decode_text(read_all(stream))
        metadata.set(keys.ENCODING, encoding)

        xhtml = StructuredContentWriter(handler)
        xhtml.start_document()
        for line in text.splitlines():
            xhtml.paragraph(line)
        xhtml.end_document()
