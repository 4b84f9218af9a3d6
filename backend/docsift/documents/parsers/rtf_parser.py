"""RTF parser using striprtf."""

import codecs
import re
from typing import BinaryIO, Optional

from striprtf.striprtf import rtf_to_text

from docsift.core.exceptions import MalformedInputError
from docsift.documents import metadata as keys
from docsift.documents.handlers import ContentHandler, StructuredContentWriter
from docsift.documents.metadata import Metadata
from docsift.documents.models import DocumentFormat
from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext
from docsift.documents.streams import read_all

_CODEPAGE_RE = re.compile(r"\\ansicpg(\d+)")
_INFO_FIELDS = {
    "title": keys.TITLE,
    "author": keys.CREATOR,
    "subject": keys.SUBJECT,
    "keywords": keys.KEYWORDS,
    "operator": keys.LAST_AUTHOR,
}


class RtfParser(ContentParser):
    """Parser for Rich Text Format documents.

    ``\\par`` breaks become paragraphs; the ``\\info`` group feeds metadata.
    """

    SUPPORTED_FORMATS = frozenset({DocumentFormat.RTF})

    @property
    def name(self) -> str:
        return "rtf"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        # RTF is 7-bit; latin-1 keeps any stray 8-bit bytes one-to-one
        content = read_all(stream).decode("latin-1")
        if not content.lstrip().startswith("{\\rtf"):
            raise MalformedInputError("Missing RTF header", parser=self.name)

        encoding = self._codepage(content)
        metadata.set(keys.ENCODING, encoding)
        self._extract_info(content, encoding, metadata)

        text = rtf_to_text(content, encoding=encoding, errors="replace")

        xhtml = StructuredContentWriter(handler)
        xhtml.start_document()
        for line in text.splitlines():
            if line.strip():
                xhtml.paragraph(line)
        xhtml.end_document()

    def _codepage(self, content: str) -> str:
        """Encoding for \\'xx escapes, from the \\ansicpg control word."""
        match = _CODEPAGE_RE.search(content[:1024])
        if match:
            candidate = f"cp{match.group(1)}"
            try:
                return codecs.lookup(candidate).name
            except LookupError:
                pass
        return "cp1252"

    def _extract_info(self, content: str, encoding: str, metadata: Metadata) -> None:
        for field, key in _INFO_FIELDS.items():
            value = self._info_field(content, field, encoding)
            metadata.set(key, value)

    def _info_field(self, content: str, field: str, encoding: str) -> Optional[str]:
        match = re.search(r"\{\\" + field + r"\s([^{}]*)\}", content)
        if not match:
            return None
        # Field values may carry their own escapes (\'xx, \uN)
        value = rtf_to_text("{\\rtf1 " + match.group(1) + "}", encoding=encoding, errors="replace")
        return value.strip() or None
