"""Format detection from document bytes, with caller hints as tiebreaker."""

import codecs
import json
import posixpath
import zipfile
from typing import BinaryIO, Dict, FrozenSet, Optional, Tuple

import filetype
import structlog

from docsift.config import ExtractionSettings, get_settings
from docsift.documents import metadata as keys
from docsift.documents.metadata import Metadata
from docsift.documents.models import DetectionResult, DetectionSource, DocumentFormat
from docsift.documents.streams import is_seekable, peek

try:
    import magic
except ImportError:
    # python-magic needs the libmagic system library
    magic = None

logger = structlog.get_logger()

OCTET_STREAM = "application/octet-stream"


class FormatDetector:
    """Detect document format from content bytes.

    Evidence is consulted strongest first: magic numbers, ``filetype``
    signatures, libmagic (when installed), then text heuristics. ZIP
    containers are told apart by their directory. Caller hints (declared
    resource name or content type) only break ties inside a format family,
    e.g. plain text declared as ``.csv`` or a ZIP declared as ``.docx``;
    content that matches nothing stays unknown whatever the hint says.
    """

    # MIME type to format mapping
    MIME_MAPPING = {
        # Text formats
        "text/plain": DocumentFormat.PLAIN_TEXT,
        "text/markdown": DocumentFormat.MARKDOWN,
        "text/x-markdown": DocumentFormat.MARKDOWN,
        "text/csv": DocumentFormat.CSV,
        "application/json": DocumentFormat.JSON,
        # Web formats
        "text/html": DocumentFormat.HTML,
        "application/xhtml+xml": DocumentFormat.HTML,
        "application/xml": DocumentFormat.XML,
        "text/xml": DocumentFormat.XML,
        # Document formats
        "application/pdf": DocumentFormat.PDF,
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DocumentFormat.DOCX,
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": DocumentFormat.XLSX,
        "application/vnd.openxmlformats-officedocument.presentationml.presentation": DocumentFormat.PPTX,
        "application/rtf": DocumentFormat.RTF,
        "text/rtf": DocumentFormat.RTF,
        "application/msword": DocumentFormat.OLE2,
        "application/vnd.ms-excel": DocumentFormat.OLE2,
        "application/vnd.ms-powerpoint": DocumentFormat.OLE2,
        "application/x-ole-storage": DocumentFormat.OLE2,
        "application/CDFV2": DocumentFormat.OLE2,
        # Images
        "image/jpeg": DocumentFormat.IMAGE,
        "image/png": DocumentFormat.IMAGE,
        "image/gif": DocumentFormat.IMAGE,
        "image/bmp": DocumentFormat.IMAGE,
        "image/x-ms-bmp": DocumentFormat.IMAGE,
        "image/tiff": DocumentFormat.IMAGE,
        "image/webp": DocumentFormat.IMAGE,
        "image/x-icon": DocumentFormat.IMAGE,
        # Archive formats
        "application/zip": DocumentFormat.ZIP,
        "application/x-tar": DocumentFormat.TAR,
        "application/gzip": DocumentFormat.GZIP,
        "application/x-gzip": DocumentFormat.GZIP,
    }

    # Preferred MIME type per format
    FORMAT_MIME = {
        DocumentFormat.PLAIN_TEXT: "text/plain",
        DocumentFormat.MARKDOWN: "text/markdown",
        DocumentFormat.CSV: "text/csv",
        DocumentFormat.JSON: "application/json",
        DocumentFormat.HTML: "text/html",
        DocumentFormat.XML: "application/xml",
        DocumentFormat.PDF: "application/pdf",
        DocumentFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        DocumentFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        DocumentFormat.PPTX: "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        DocumentFormat.RTF: "application/rtf",
        DocumentFormat.OLE2: "application/x-ole-storage",
        DocumentFormat.ZIP: "application/zip",
        DocumentFormat.TAR: "application/x-tar",
        DocumentFormat.GZIP: "application/gzip",
    }

    # Magic numbers checked before any library: (offset, signature, format)
    SIGNATURES = (
        (0, b"{\\rtf", DocumentFormat.RTF),
        (0, b"PK\x03\x04", DocumentFormat.ZIP),
        (0, b"PK\x05\x06", DocumentFormat.ZIP),
        (0, b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", DocumentFormat.OLE2),
        (0, b"\x1f\x8b", DocumentFormat.GZIP),
        (257, b"ustar", DocumentFormat.TAR),
    )

    # Generic content results a hint may refine, and what it may refine them to
    HINT_FAMILIES: Dict[DocumentFormat, FrozenSet[DocumentFormat]] = {
        DocumentFormat.PLAIN_TEXT: frozenset(
            {
                DocumentFormat.MARKDOWN,
                DocumentFormat.CSV,
                DocumentFormat.JSON,
                DocumentFormat.HTML,
                DocumentFormat.XML,
            }
        ),
        DocumentFormat.ZIP: frozenset(
            {DocumentFormat.DOCX, DocumentFormat.XLSX, DocumentFormat.PPTX}
        ),
    }

    # Part names that identify OOXML packages
    OOXML_MARKERS = (
        ("word/document.xml", DocumentFormat.DOCX),
        ("ppt/presentation.xml", DocumentFormat.PPTX),
        ("xl/workbook.xml", DocumentFormat.XLSX),
    )

    def __init__(
        self,
        sniff_size: Optional[int] = None,
        hint_policy: Optional[str] = None,
        settings: Optional[ExtractionSettings] = None,
    ) -> None:
        """Initialize the format detector.

        Args:
            sniff_size: Prefix length inspected (default from settings)
            hint_policy: 'tiebreak' or 'ignore' (default from settings)
            settings: Settings supplying the defaults (default: cached settings)
        """
        settings = settings or get_settings()
        self.sniff_size = sniff_size or settings.sniff_size
        self.hint_policy = hint_policy or settings.hint_policy
        if self.hint_policy not in ("tiebreak", "ignore"):
            raise ValueError(f"Unknown hint policy: {self.hint_policy}")

        self._magic = None
        if magic is not None:
            try:
                self._magic = magic.Magic(mime=True)
            except Exception:
                # libmagic might be missing or unusable on this system
                self._magic = None

    def detect(
        self, stream: BinaryIO, metadata: Optional[Metadata] = None
    ) -> DetectionResult:
        """Detect the format of a stream without consuming it.

        Args:
            stream: Seekable binary stream positioned at the document start
            metadata: Metadata carrying optional name/content-type hints

        Returns:
            DetectionResult
        """
        prefix = peek(stream, self.sniff_size)
        content_format, content_mime = self._detect_from_content(prefix)

        directory_read = False
        if content_format == DocumentFormat.ZIP:
            if is_seekable(stream):
                content_format, content_mime = self._detect_zip_package(stream)
                directory_read = True
            else:
                content_format, content_mime = self._detect_zip_prefix(prefix)

        return self._apply_hints(content_format, content_mime, metadata, directory_read)

    def detect_bytes(
        self, data: bytes, metadata: Optional[Metadata] = None
    ) -> DetectionResult:
        """Detect the format of an in-memory document prefix."""
        prefix = data[: self.sniff_size]
        content_format, content_mime = self._detect_from_content(prefix)
        if content_format == DocumentFormat.ZIP:
            content_format, content_mime = self._detect_zip_prefix(prefix)
        return self._apply_hints(content_format, content_mime, metadata)

    def _detect_from_content(self, prefix: bytes) -> Tuple[DocumentFormat, str]:
        """Detect format from the byte prefix."""
        if not prefix:
            return DocumentFormat.UNKNOWN, OCTET_STREAM

        for offset, signature, format_type in self.SIGNATURES:
            if prefix[offset : offset + len(signature)] == signature:
                return format_type, self.FORMAT_MIME[format_type]

        # PDF headers may be preceded by a little junk
        if b"%PDF-" in prefix[:1024]:
            return DocumentFormat.PDF, self.FORMAT_MIME[DocumentFormat.PDF]

        # filetype library (fast, pure Python)
        kind = filetype.guess(prefix)
        if kind:
            format_type = self.MIME_MAPPING.get(kind.mime, DocumentFormat.UNKNOWN)
            if format_type != DocumentFormat.UNKNOWN:
                return format_type, kind.mime
            if not self._is_text(prefix):
                # Known binary type we have no parser family for
                return DocumentFormat.UNKNOWN, kind.mime

        # python-magic if available
        if self._magic:
            try:
                mime_type = self._magic.from_buffer(prefix)
            except Exception:
                mime_type = None
            format_type = self.MIME_MAPPING.get(mime_type or "", DocumentFormat.UNKNOWN)
            if format_type not in (DocumentFormat.UNKNOWN, DocumentFormat.PLAIN_TEXT):
                return format_type, mime_type

        if self._is_text(prefix):
            return self._detect_text_format(prefix)

        return DocumentFormat.UNKNOWN, OCTET_STREAM

    def _detect_zip_package(self, stream: BinaryIO) -> Tuple[DocumentFormat, str]:
        """Tell OOXML packages from plain ZIP archives by their directory."""
        position = stream.tell()
        try:
            with zipfile.ZipFile(stream) as zf:
                names = set(zf.namelist())
        except (zipfile.BadZipFile, OSError, ValueError, EOFError):
            logger.debug("zip_directory_unreadable")
            return DocumentFormat.ZIP, self.FORMAT_MIME[DocumentFormat.ZIP]
        finally:
            stream.seek(position)

        for marker, format_type in self.OOXML_MARKERS:
            if marker in names:
                return format_type, self.FORMAT_MIME[format_type]
        return DocumentFormat.ZIP, self.FORMAT_MIME[DocumentFormat.ZIP]

    def _detect_zip_prefix(self, prefix: bytes) -> Tuple[DocumentFormat, str]:
        """Best effort OOXML detection from local file headers in the prefix."""
        if b"[Content_Types].xml" in prefix:
            for marker, format_type in self.OOXML_MARKERS:
                if marker.split("/")[0].encode() + b"/" in prefix:
                    return format_type, self.FORMAT_MIME[format_type]
        return DocumentFormat.ZIP, self.FORMAT_MIME[DocumentFormat.ZIP]

    def _is_text(self, data: bytes) -> bool:
        """Check if data appears to be text."""
        if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
            return True

        if b"\x00" in data:
            return False

        # Valid UTF-8, tolerating a multi-byte sequence cut by the prefix
        try:
            codecs.getincrementaldecoder("utf-8")().decode(data, final=False)
            return True
        except UnicodeDecodeError:
            pass

        # Single-byte encodings: reject when control characters are common
        control = sum(1 for b in data if b < 0x20 and b not in b"\t\n\r\f\x0b\x1b")
        return control <= len(data) * 0.05

    def _detect_text_format(self, header: bytes) -> Tuple[DocumentFormat, str]:
        """Detect specific text format from content."""
        text = ""
        for encoding in ["utf-8-sig", "utf-16", "latin-1"]:
            try:
                text = header.decode(encoding)
                break
            except UnicodeDecodeError:
                continue

        stripped = text.lstrip()
        head = stripped[:1024].lower()

        # Check for XML / HTML
        if head.startswith("<"):
            if "<html" in head or head.startswith("<!doctype html"):
                return DocumentFormat.HTML, self.FORMAT_MIME[DocumentFormat.HTML]
            if head.startswith("<?xml"):
                return DocumentFormat.XML, self.FORMAT_MIME[DocumentFormat.XML]

        # Check for JSON (only provable when the whole document fits the prefix)
        if stripped.startswith(("{", "[")) and len(header) < self.sniff_size:
            try:
                json.loads(text)
                return DocumentFormat.JSON, self.FORMAT_MIME[DocumentFormat.JSON]
            except ValueError:
                pass

        return DocumentFormat.PLAIN_TEXT, self.FORMAT_MIME[DocumentFormat.PLAIN_TEXT]

    def _detect_from_hints(
        self, metadata: Optional[Metadata]
    ) -> Tuple[Optional[DocumentFormat], Optional[str]]:
        """Read the caller's declared content type or resource name."""
        if metadata is None:
            return None, None

        declared = metadata.get(keys.CONTENT_TYPE_HINT)
        if declared:
            mime_type = declared.split(";")[0].strip().lower()
            format_type = self.MIME_MAPPING.get(mime_type)
            if format_type:
                return format_type, mime_type

        name = metadata.get(keys.RESOURCE_NAME)
        if name:
            _, ext = posixpath.splitext(name.replace("\\", "/"))
            format_type = DocumentFormat.from_extension(ext)
            if format_type != DocumentFormat.UNKNOWN:
                return format_type, self.FORMAT_MIME.get(format_type, OCTET_STREAM)

        return None, None

    def _apply_hints(
        self,
        content_format: DocumentFormat,
        content_mime: str,
        metadata: Optional[Metadata],
        directory_read: bool = False,
    ) -> DetectionResult:
        hint_format, hint_mime = self._detect_from_hints(metadata)
        result = DetectionResult(
            format=content_format, mime_type=content_mime, hint_format=hint_format
        )

        if self.hint_policy == "ignore" or hint_format is None:
            return result

        family = self.HINT_FAMILIES.get(content_format, frozenset())
        if directory_read and content_format == DocumentFormat.ZIP:
            # A ZIP whose directory was read is known not to be OOXML
            family = frozenset()
        if hint_format in family:
            logger.debug(
                "format_hint_applied",
                content_format=content_format.value,
                hint_format=hint_format.value,
            )
            return DetectionResult(
                format=hint_format,
                mime_type=hint_mime or self.FORMAT_MIME.get(hint_format, OCTET_STREAM),
                source=DetectionSource.HINT,
                hint_format=hint_format,
            )

        return result

    def get_mime_for_format(self, format_type: DocumentFormat) -> str:
        """Get MIME type for a format."""
        return self.FORMAT_MIME.get(format_type, OCTET_STREAM)
