"""Format parser tests."""

import io
import zipfile

import pytest
from pptx import Presentation

from conftest import make_tar_gz, make_zip
from docsift.core.exceptions import (
    EncryptedDocumentError,
    MalformedInputError,
    TextExtractionError,
)
from docsift.documents import metadata as keys
from docsift.documents.parsers.pdf_parser import parse_pdf_date
from docsift.documents.parsers.text_parser import decode_text
from docsift.extractor import TextExtractor


@pytest.fixture
def extractor(settings):
    return TextExtractor(settings=settings)


class TestPdfParser:
    """Test PDF extraction."""

    def test_pages_in_order(self, extractor, pdf_bytes):
        result = extractor.extract_bytes(pdf_bytes)

        assert "A Simple PDF File" in result.text
        assert "And more text. And more text." in result.text
        assert result.text.index("A Simple PDF File") < result.text.index("Simple PDF File 2")
        assert result.text.index("Simple PDF File 2") < result.text.index("continued from page 1")

    def test_metadata(self, extractor, pdf_bytes):
        result = extractor.extract_bytes(pdf_bytes)

        assert result.content_type == "application/pdf"
        assert result.metadata.get(keys.PAGE_COUNT) == "2"
        assert result.metadata.get(keys.TITLE) == "Sample PDF"
        assert result.metadata.get(keys.CREATOR) == "docsift"
        assert result.metadata.get_values(keys.PARSED_BY) == ["pymupdf"]

    def test_encrypted_with_password(self, extractor, encrypted_pdf_bytes):
        result = extractor.extract_bytes(encrypted_pdf_bytes, password="secret")
        assert "Confidential figures" in result.text

    def test_encrypted_without_password(self, extractor, encrypted_pdf_bytes):
        with pytest.raises(TextExtractionError) as exc_info:
            extractor.extract_bytes(encrypted_pdf_bytes)

        assert isinstance(exc_info.value.cause, EncryptedDocumentError)
        assert isinstance(exc_info.value.cause, MalformedInputError)

    def test_parse_pdf_date(self):
        parsed = parse_pdf_date("D:20240301123000+02'00'")

        assert parsed.year == 2024
        assert parsed.hour == 12
        assert parsed.utcoffset().total_seconds() == 7200
        assert parse_pdf_date("D:2024").month == 1
        assert parse_pdf_date("not a date") is None
        assert parse_pdf_date(None) is None


class TestOfficeParsers:
    """Test DOCX, PPTX and XLSX extraction."""

    def test_docx_body_and_table(self, extractor, docx_bytes):
        result = extractor.extract_bytes(docx_bytes)

        assert "Demonstration of DOCX support in calibre" in result.text
        assert "Format\tSupported" in result.text
        # Body order: heading, paragraph, table, closing paragraph
        assert result.text.index("demonstrates paragraph") < result.text.index("Format")
        assert result.text.index("Format") < result.text.index("Closing paragraph")

    def test_docx_core_properties(self, extractor, docx_bytes):
        result = extractor.extract_bytes(docx_bytes)

        assert result.metadata.get(keys.TITLE) == "DOCX Demo"
        assert result.metadata.get(keys.CREATOR) == "docsift"

    def test_pptx_title_before_body(self, extractor, pptx_bytes):
        result = extractor.extract_bytes(pptx_bytes)

        assert "Sample PowerPoint File" in result.text
        assert "Here is an outline of bulleted points" in result.text
        assert result.text.index("Sample PowerPoint File") < result.text.index(
            "Here is an outline"
        )
        assert result.text.count("Sample PowerPoint File") == 1
        assert result.metadata.get(keys.SLIDE_COUNT) == "1"

    def test_xlsx_sheets_and_rows(self, extractor, xlsx_bytes):
        result = extractor.extract_bytes(xlsx_bytes)

        assert "Budget" in result.text
        assert "Paper\t12" in result.text
        assert "Reviewed by finance" in result.text
        assert result.metadata.get(keys.SHEET_COUNT) == "2"

    def test_pptx_soft_line_breaks(self, extractor):
        """Test a line break inside a paragraph separates the words around it."""
        prs = Presentation()
        slide = prs.slides.add_slide(prs.slide_layouts[1])
        slide.shapes.title.text = "Title"
        slide.placeholders[1].text_frame.text = "first line\vsecond line"
        buffer = io.BytesIO()
        prs.save(buffer)

        result = extractor.extract_bytes(buffer.getvalue())

        assert "first line\nsecond line" in result.text
        assert "first linesecond line" not in result.text

    def test_corrupt_ooxml_is_malformed(self, extractor):
        data = make_zip({"word/document.xml": b"<broken"})

        with pytest.raises(TextExtractionError) as exc_info:
            extractor.extract_bytes(data)

        assert isinstance(exc_info.value.cause, MalformedInputError)
        assert exc_info.value.cause.parser == "docx"


class TestRtfParser:
    """Test RTF extraction."""

    def test_text_and_unicode(self, extractor, rtf_bytes):
        result = extractor.extract_bytes(rtf_bytes)

        assert "Bold text." in result.text
        assert "öt árvíztűrő ütvefúrógép" in result.text

    def test_info_group(self, extractor, rtf_bytes):
        result = extractor.extract_bytes(rtf_bytes)

        assert result.metadata.get(keys.TITLE) == "Sample RTF"
        assert result.metadata.get(keys.CREATOR) == "docsift"
        assert result.metadata.get(keys.ENCODING) == "cp1250"
        assert "Sample RTF" not in result.text


class TestImageParser:
    """Test image metadata extraction."""

    def test_no_text(self, extractor, jpeg_bytes):
        result = extractor.extract_bytes(jpeg_bytes)

        assert result.text.strip() == ""
        assert result.content_type == "image/jpeg"

    def test_dimensions_and_exif(self, extractor, jpeg_bytes):
        result = extractor.extract_bytes(jpeg_bytes)

        assert result.metadata.get(keys.IMAGE_WIDTH) == "64"
        assert result.metadata.get(keys.IMAGE_LENGTH) == "48"
        assert result.metadata.get(keys.IMAGE_FORMAT) == "JPEG"
        assert result.metadata.get("exif:Make") == "docsift camera"

    def test_truncated_image_is_malformed(self, extractor, jpeg_bytes):
        with pytest.raises(TextExtractionError) as exc_info:
            extractor.extract_bytes(jpeg_bytes[: len(jpeg_bytes) // 2])

        assert isinstance(exc_info.value.cause, MalformedInputError)


class TestTextParsers:
    """Test plain text, HTML and XML extraction."""

    def test_plain_text_lines(self, extractor):
        result = extractor.extract_bytes(b"line one\nline two\n")

        assert result.text == "line one\nline two\n"
        assert result.metadata.get(keys.ENCODING) == "utf-8"

    def test_utf16_with_bom(self, extractor):
        data = "\ufeffHello UTF-16 world".encode("utf-16-le")
        result = extractor.extract_bytes(data)

        assert "Hello UTF-16 world" in result.text

    def test_cp1252_fallback(self, extractor):
        result = extractor.extract_bytes("Price: 5 € only\n".encode("cp1252"))

        assert "5 € only" in result.text
        assert result.metadata.get(keys.ENCODING) == "cp1252"

    def test_decode_text_bom(self):
        text, encoding = decode_text("\ufeffBOM text".encode("utf-8"))

        assert text == "BOM text"
        assert encoding == "utf-8-sig"

    def test_csv_by_name(self, extractor):
        result = extractor.extract_bytes(b"Quarterly totals follow.\n", resource_name="t.csv")

        assert result.content_type == "text/csv"
        assert "Quarterly totals follow." in result.text

    def test_html(self, extractor, html_bytes):
        result = extractor.extract_bytes(html_bytes)

        assert "Version 2" in result.text
        assert "Faster detection." in result.text
        assert "script text" not in result.text
        assert "color: red" not in result.text
        assert result.metadata.get(keys.TITLE) == "Release Notes"
        assert result.metadata.get(keys.CREATOR) == "docsift team"
        assert result.metadata.get(keys.LANGUAGE) == "en"

    def test_html_inline_markup_stays_on_one_line(self, extractor):
        data = (
            b"<html><body><p>A Simple <b>PDF</b> File</p>"
            b"<p>Second <i>block</i>.<br>After break</p></body></html>"
        )
        result = extractor.extract_bytes(data)

        assert result.text == "A Simple PDF File\nSecond block.\nAfter break\n"

    def test_html_block_layout(self, extractor, html_bytes):
        result = extractor.extract_bytes(html_bytes)
        assert result.text == "Release Notes\nVersion 2\nFaster detection.\n"

    def test_xml_inline_markup_stays_on_one_line(self, extractor):
        data = (
            b"<?xml version='1.0'?><doc><p>A Simple <b>PDF</b> File</p>"
            b"<p>Next</p></doc>"
        )
        result = extractor.extract_bytes(data)

        assert result.text == "A Simple PDF File\nNext\n"

    def test_xml_character_data(self, extractor):
        data = b"<?xml version='1.0'?><catalog><book><title>Dune</title></book></catalog>"
        result = extractor.extract_bytes(data)

        assert "Dune" in result.text
        assert "<title>" not in result.text

    def test_broken_xml_is_malformed(self, extractor):
        with pytest.raises(TextExtractionError) as exc_info:
            extractor.extract_bytes(b"<?xml version='1.0'?><catalog><book>")

        assert isinstance(exc_info.value.cause, MalformedInputError)


class TestArchiveParser:
    """Test container recursion."""

    def test_members_are_extracted(self, extractor, zip_bytes):
        result = extractor.extract_bytes(zip_bytes)

        assert "notes.txt" in result.text
        assert "Archive member text" in result.text
        assert "Demonstration of DOCX support in calibre" in result.text
        assert "tool.exe" not in result.text

    def test_unsupported_member_is_recorded(self, extractor, zip_bytes):
        result = extractor.extract_bytes(zip_bytes)

        errors = result.metadata.get_values(keys.EMBEDDED_EXCEPTION)
        assert len(errors) == 1
        assert errors[0].startswith("blob.dat:")
        assert result.metadata.get_values(keys.PARSED_BY) == ["archive"]

    def test_tar_gz(self, extractor, docx_bytes):
        data = make_tar_gz({"docs/readme.txt": b"Packed readme", "b.docx": docx_bytes})
        result = extractor.extract_bytes(data, resource_name="bundle.tar.gz")

        assert result.content_type == "application/gzip"
        assert "bundle.tar" in result.text
        assert "Packed readme" in result.text
        assert "Demonstration of DOCX support in calibre" in result.text

    def test_embedded_extraction_can_be_disabled(self, settings):
        settings.extract_embedded = False
        extractor = TextExtractor(settings=settings)
        result = extractor.extract_bytes(make_zip({"notes.txt": b"Archive member text"}))

        assert "notes.txt" in result.text
        assert "Archive member text" not in result.text

    def test_nesting_depth_is_bounded(self, settings):
        settings.max_embedding_depth = 1
        extractor = TextExtractor(settings=settings)
        inner = make_zip({"deep.txt": b"Too deep to reach"})
        outer = make_zip({"inner.zip": inner, "top.txt": b"Top level text"})

        result = extractor.extract_bytes(outer)

        assert "Top level text" in result.text
        assert "deep.txt" in result.text
        assert "Too deep to reach" not in result.text

    def test_nested_archive(self, extractor):
        inner = make_zip({"deep.txt": b"Nested member text"})
        outer = make_zip({"inner.zip": inner})

        result = extractor.extract_bytes(outer)

        assert "Nested member text" in result.text

    def test_unreadable_member_is_recorded(self, extractor):
        """Test a member failing its checksum is skipped, not fatal."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_STORED) as zf:
            zf.writestr("broken.txt", b"Checksum will not match")
            zf.writestr("notes.txt", b"Archive member text")
        data = buffer.getvalue().replace(
            b"Checksum will not match", b"Checksum will NOT match"
        )

        result = extractor.extract_bytes(data)

        assert "Archive member text" in result.text
        errors = result.metadata.get_values(keys.EMBEDDED_EXCEPTION)
        assert len(errors) == 1
        assert errors[0].startswith("broken.txt:")
