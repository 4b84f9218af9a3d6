"""Office document parsers (DOCX, XLSX, PPTX)."""

import re
from typing import Any, BinaryIO, Iterable, Optional

from docx import Document as DocxDocument
from docx.table import Table as DocxTable
from docx.text.paragraph import Paragraph as DocxParagraph
from openpyxl import load_workbook
from pptx import Presentation
from pptx.shapes.group import GroupShape

from docsift.documents import metadata as keys
from docsift.documents.handlers import ContentHandler, StructuredContentWriter
from docsift.documents.metadata import Metadata
from docsift.documents.models import DocumentFormat
from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext

_HEADING_RE = re.compile(r"^Heading (\d)$")


def _write_core_properties(core_props: Any, metadata: Metadata) -> None:
    """Copy OPC core properties shared by DOCX and PPTX."""
    metadata.set(keys.TITLE, core_props.title or None)
    metadata.set(keys.CREATOR, core_props.author or None)
    metadata.set(keys.SUBJECT, core_props.subject or None)
    metadata.set(keys.KEYWORDS, core_props.keywords or None)
    metadata.set(keys.DESCRIPTION, core_props.comments or None)
    metadata.set(keys.LANGUAGE, core_props.language or None)
    metadata.set(keys.LAST_AUTHOR, core_props.last_modified_by or None)
    metadata.set(keys.CREATED, core_props.created)
    metadata.set(keys.MODIFIED, core_props.modified)


class DocxParser(ContentParser):
    """Parser for Word documents (.docx).

    Body paragraphs and tables come out in document order, with headers
    before and footers after the body.
    """

    SUPPORTED_FORMATS = frozenset({DocumentFormat.DOCX})

    @property
    def name(self) -> str:
        return "docx"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        doc = DocxDocument(stream)
        _write_core_properties(doc.core_properties, metadata)

        xhtml = StructuredContentWriter(handler)
        xhtml.start_document()

        for section in doc.sections:
            if not section.header.is_linked_to_previous:
                self._write_block(xhtml, "header", section.header.iter_inner_content())

        for item in doc.iter_inner_content():
            self._write_item(xhtml, item)

        for section in doc.sections:
            if not section.footer.is_linked_to_previous:
                self._write_block(xhtml, "footer", section.footer.iter_inner_content())

        xhtml.end_document()

    def _write_block(
        self, xhtml: StructuredContentWriter, css_class: str, items: Iterable[Any]
    ) -> None:
        xhtml.start_element("div", {"class": css_class})
        for item in items:
            self._write_item(xhtml, item)
        xhtml.end_element("div")

    def _write_item(self, xhtml: StructuredContentWriter, item: Any) -> None:
        if isinstance(item, DocxParagraph):
            xhtml.element(self._paragraph_tag(item), item.text)
        elif isinstance(item, DocxTable):
            self._write_table(xhtml, item)

    def _paragraph_tag(self, para: DocxParagraph) -> str:
        """Map Word heading styles to hN, everything else to p."""
        style = para.style
        if style is not None and style.name:
            match = _HEADING_RE.match(style.name)
            if match:
                return f"h{match.group(1)}"
            if style.name == "Title":
                return "h1"
        return "p"

    def _write_table(self, xhtml: StructuredContentWriter, table: DocxTable) -> None:
        """Emit a table row by row."""
        xhtml.start_element("table")
        for row in table.rows:
            xhtml.table_row(cell.text.strip() for cell in row.cells)
        xhtml.end_element("table")


class XlsxParser(ContentParser):
    """Parser for Excel spreadsheets (.xlsx)."""

    SUPPORTED_FORMATS = frozenset({DocumentFormat.XLSX})

    @property
    def name(self) -> str:
        return "xlsx"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        wb = load_workbook(stream, read_only=True, data_only=True)
        try:
            props = wb.properties
            metadata.set(keys.TITLE, props.title or None)
            metadata.set(keys.CREATOR, props.creator or None)
            metadata.set(keys.SUBJECT, props.subject or None)
            metadata.set(keys.KEYWORDS, props.keywords or None)
            metadata.set(keys.LAST_AUTHOR, props.lastModifiedBy or None)
            metadata.set(keys.CREATED, props.created)
            metadata.set(keys.MODIFIED, props.modified)
            metadata.set(keys.SHEET_COUNT, len(wb.sheetnames))

            xhtml = StructuredContentWriter(handler)
            xhtml.start_document()
            for sheet in wb.worksheets:
                xhtml.start_element("div", {"class": "sheet"})
                xhtml.element("h1", sheet.title)
                xhtml.start_element("table")
                for row in sheet.iter_rows(values_only=True):
                    values = ["" if value is None else str(value) for value in row]
                    if any(values):
                        xhtml.table_row(values)
                xhtml.end_element("table")
                xhtml.end_element("div")
            xhtml.end_document()
        finally:
            wb.close()


class PptxParser(ContentParser):
    """Parser for PowerPoint presentations (.pptx).

    Each slide emits its title first, then the remaining shapes in shape
    order, then its speaker notes.
    """

    SUPPORTED_FORMATS = frozenset({DocumentFormat.PPTX})

    @property
    def name(self) -> str:
        return "pptx"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        prs = Presentation(stream)
        _write_core_properties(prs.core_properties, metadata)
        metadata.set(keys.SLIDE_COUNT, len(prs.slides))

        xhtml = StructuredContentWriter(handler)
        xhtml.start_document()

        for slide in prs.slides:
            xhtml.start_element("div", {"class": "slide"})

            title = slide.shapes.title
            title_id = None
            if title is not None:
                title_id = title.shape_id
                if title.has_text_frame:
                    title_text = title.text_frame.text.replace("\v", " ").strip()
                    if title_text:
                        xhtml.element("h1", title_text)

            self._write_shapes(xhtml, slide.shapes, skip_id=title_id)

            if slide.has_notes_slide:
                notes = slide.notes_slide.notes_text_frame
                if notes is not None and notes.text.strip():
                    xhtml.start_element("div", {"class": "slide-notes"})
                    xhtml.paragraphs(
                        line for line in notes.text.splitlines() if line.strip()
                    )
                    xhtml.end_element("div")

            xhtml.end_element("div")

        xhtml.end_document()

    def _write_shapes(
        self,
        xhtml: StructuredContentWriter,
        shapes: Iterable[Any],
        skip_id: Optional[int] = None,
    ) -> None:
        for shape in shapes:
            if skip_id is not None and shape.shape_id == skip_id:
                continue

            if isinstance(shape, GroupShape):
                self._write_shapes(xhtml, shape.shapes)
            elif shape.has_text_frame:
                for para in shape.text_frame.paragraphs:
                    self._write_paragraph(xhtml, para.text)
            elif getattr(shape, "has_table", False):
                xhtml.start_element("table")
                for row in shape.table.rows:
                    xhtml.table_row(cell.text.strip() for cell in row.cells)
                xhtml.end_element("table")

    def _write_paragraph(self, xhtml: StructuredContentWriter, text: str) -> None:
        # python-pptx renders <a:br/> soft breaks as vertical tabs
        lines = [line.strip() for line in text.split("\v")]
        lines = [line for line in lines if line]
        if not lines:
            return
        xhtml.start_element("p")
        for i, line in enumerate(lines):
            if i:
                xhtml.newline()
            xhtml.characters(line)
        xhtml.end_element("p")
