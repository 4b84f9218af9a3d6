"""PDF parser using PyMuPDF."""

import re
import threading
from datetime import datetime, timedelta, timezone
from typing import BinaryIO, Optional

import fitz  # PyMuPDF

from docsift.core.exceptions import EncryptedDocumentError
from docsift.documents import metadata as keys
from docsift.documents.handlers import ContentHandler, StructuredContentWriter
from docsift.documents.metadata import Metadata
from docsift.documents.models import DocumentFormat
from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext
from docsift.documents.streams import read_all

# D:YYYYMMDDHHmmSS followed by an optional Z / +HH'mm' offset
_PDF_DATE_RE = re.compile(
    r"^D:(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(?:(Z)|([+-])(\d{2})'?(\d{2})?'?)?"
)

# PyMuPDF block tuple: (x0, y0, x1, y1, text, block_no, block_type)
_TEXT_BLOCK = 0

# PyMuPDF is not thread-safe; one document is processed at a time
_fitz_lock = threading.Lock()


def parse_pdf_date(value: Optional[str]) -> Optional[datetime]:
    """Convert a PDF date string to a datetime."""
    if not value:
        return None
    match = _PDF_DATE_RE.match(value.strip())
    if not match:
        return None

    year, month, day, hour, minute, second = (
        int(part) if part else default
        for part, default in zip(match.groups()[:6], (0, 1, 1, 0, 0, 0))
    )
    tz = None
    if match.group(7):
        tz = timezone.utc
    elif match.group(8):
        offset = timedelta(hours=int(match.group(9)), minutes=int(match.group(10) or 0))
        tz = timezone(offset if match.group(8) == "+" else -offset)

    try:
        return datetime(year, month, day, hour, minute, second, tzinfo=tz)
    except ValueError:
        return None


class PyMuPDFParser(ContentParser):
    """PDF parser using PyMuPDF (fitz).

    Emits one ``div.page`` per page in page order, each text block as a
    paragraph.
    """

    SUPPORTED_FORMATS = frozenset({DocumentFormat.PDF})

    @property
    def name(self) -> str:
        return "pymupdf"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        data = read_all(stream)
        with _fitz_lock:
            self._parse_document(data, handler, metadata, context)

    def _parse_document(
        self,
        data: bytes,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            if doc.needs_pass:
                if not context.password or not doc.authenticate(context.password):
                    raise EncryptedDocumentError(
                        "PDF is encrypted and no valid password was supplied",
                        parser=self.name,
                    )

            self._extract_metadata(doc, metadata)

            xhtml = StructuredContentWriter(handler)
            xhtml.start_document()
            for page in doc:
                xhtml.start_element("div", {"class": "page"})
                for block in page.get_text("blocks"):
                    if block[6] != _TEXT_BLOCK:
                        continue
                    text = block[4].strip()
                    if text:
                        xhtml.paragraph(text)
                xhtml.end_element("div")
            xhtml.end_document()
        finally:
            doc.close()

    def _extract_metadata(self, doc: fitz.Document, metadata: Metadata) -> None:
        """Extract PDF metadata."""
        meta = doc.metadata or {}
        metadata.set(keys.TITLE, meta.get("title") or None)
        metadata.set(keys.CREATOR, meta.get("author") or None)
        metadata.set(keys.SUBJECT, meta.get("subject") or None)
        metadata.set(keys.KEYWORDS, meta.get("keywords") or None)
        metadata.set(keys.CREATOR_TOOL, meta.get("creator") or None)
        metadata.set(keys.PRODUCER, meta.get("producer") or None)
        metadata.set(keys.CREATED, parse_pdf_date(meta.get("creationDate")))
        metadata.set(keys.MODIFIED, parse_pdf_date(meta.get("modDate")))
        metadata.set(keys.PAGE_COUNT, doc.page_count)
        if meta.get("format"):
            metadata.set("pdf:PDFVersion", meta["format"].replace("PDF ", ""))
