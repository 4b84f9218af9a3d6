"""Container parsers: ZIP, TAR and GZIP.

Members are handed back to whatever ``ContentParser`` the context carries,
so a DOCX inside a ZIP inside a TAR comes out as text.
"""

import gzip
import tarfile
import zipfile
from pathlib import PurePosixPath
from typing import BinaryIO, Optional

import structlog

from docsift.core.exceptions import (
    MalformedInputError,
    ResourceAcquisitionError,
    UnsupportedFormatError,
)
from docsift.documents import metadata as keys
from docsift.documents.format_detector import FormatDetector
from docsift.documents.handlers import (
    ContentHandler,
    EmbeddedContentHandler,
    StructuredContentWriter,
)
from docsift.documents.metadata import Metadata
from docsift.documents.models import DocumentFormat
from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext

logger = structlog.get_logger()


class ArchiveParser(ContentParser):
    """Parser for archive files (ZIP, TAR, GZIP)."""

    SUPPORTED_FORMATS = frozenset(
        {DocumentFormat.ZIP, DocumentFormat.TAR, DocumentFormat.GZIP}
    )

    # Files to skip in archives
    SKIP_EXTENSIONS = {
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".bin",
        ".o",
        ".a",
    }

    @property
    def name(self) -> str:
        return "archive"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        xhtml = StructuredContentWriter(handler)
        xhtml.start_document()

        format_type = FormatDetector.MIME_MAPPING.get(
            metadata.get(keys.CONTENT_TYPE, ""), DocumentFormat.ZIP
        )
        if format_type == DocumentFormat.ZIP:
            self._parse_zip(stream, xhtml, metadata, context)
        elif format_type == DocumentFormat.TAR:
            self._parse_tar(stream, xhtml, metadata, context)
        else:
            self._parse_gzip(stream, xhtml, metadata, context)

        xhtml.end_document()

    def _parse_zip(
        self,
        stream: BinaryIO,
        xhtml: StructuredContentWriter,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        with zipfile.ZipFile(stream, "r") as zf:
            for info in zf.infolist():
                if info.is_dir() or self._skipped(info.filename):
                    continue
                with zf.open(info) as member:
                    self._parse_member(member, info.filename, xhtml, metadata, context)

    def _parse_tar(
        self,
        stream: BinaryIO,
        xhtml: StructuredContentWriter,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        with tarfile.open(fileobj=stream, mode="r:") as tf:
            for info in tf:
                if not info.isfile() or self._skipped(info.name):
                    continue
                member = tf.extractfile(info)
                if member is None:
                    continue
                with member:
                    self._parse_member(member, info.name, xhtml, metadata, context)

    def _parse_gzip(
        self,
        stream: BinaryIO,
        xhtml: StructuredContentWriter,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        with gzip.GzipFile(fileobj=stream, mode="rb") as member:
            name = self._gzip_member_name(metadata.get(keys.RESOURCE_NAME))
            self._parse_member(member, name, xhtml, metadata, context)

    def _gzip_member_name(self, resource_name: Optional[str]) -> str:
        """Name of the single compressed member (``a.txt.gz`` -> ``a.txt``)."""
        if not resource_name:
            return "content"
        path = PurePosixPath(resource_name)
        if path.suffix.lower() == ".tgz":
            return path.stem + ".tar"
        if path.suffix.lower() == ".gz":
            return path.stem
        return path.name

    def _skipped(self, name: str) -> bool:
        return PurePosixPath(name).suffix.lower() in self.SKIP_EXTENSIONS

    def _parse_member(
        self,
        member: BinaryIO,
        name: str,
        xhtml: StructuredContentWriter,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        """Emit one member's name, then its content through the dispatcher."""
        xhtml.start_element("div", {"class": "embedded", "id": name})
        xhtml.element("h1", name)

        dispatcher = context.get(ContentParser)
        if dispatcher is not None and context.settings.extract_embedded:
            self._dispatch_member(dispatcher, member, name, xhtml, metadata, context)

        xhtml.end_element("div")

    def _dispatch_member(
        self,
        dispatcher: ContentParser,
        member: BinaryIO,
        name: str,
        xhtml: StructuredContentWriter,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        parent_path = metadata.get(keys.EMBEDDED_RESOURCE_PATH, "")
        child = Metadata()
        child.set(keys.RESOURCE_NAME, PurePosixPath(name).name)
        child.set(keys.EMBEDDED_RESOURCE_PATH, f"{parent_path}/{name}")

        try:
            dispatcher.parse(
                member,
                EmbeddedContentHandler(xhtml.handler),
                child,
                context.nested(),
            )
        except (UnsupportedFormatError, MalformedInputError, ResourceAcquisitionError) as e:
            # One bad or unreadable member does not sink the whole archive
            metadata.add(keys.EMBEDDED_EXCEPTION, f"{name}: {e}")
            logger.warning(
                "embedded_document_skipped",
                member=name,
                error_type=type(e).__name__,
                error=str(e),
            )
