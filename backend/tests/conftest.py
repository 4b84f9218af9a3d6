"""Shared fixtures: sample documents generated in-process."""

import gzip
import io
import tarfile
import zipfile

import fitz
import pytest
from docx import Document as DocxDocument
from openpyxl import Workbook
from PIL import Image
from pptx import Presentation

from docsift.config import ExtractionSettings

RTF_SAMPLE = (
    r"{\rtf1\ansi\ansicpg1250\deff0{\fonttbl{\f0 Times New Roman;}}"
    "\n"
    r"{\info{\title Sample RTF}{\author docsift}}"
    "\n"
    r"\f0 {\b Bold text.}\par"
    "\n"
    r"\u246?t \u225?rv\u237?zt\u369?r\u337? \u252?tvef\u250?r\u243?g\u233?p\par"
    "\n}"
).encode("ascii")


class TrackingStream(io.BytesIO):
    """BytesIO that counts close calls and can fail on close."""

    def __init__(self, data: bytes = b"", fail_on_close: bool = False):
        super().__init__(data)
        self.close_calls = 0
        self.fail_on_close = fail_on_close

    def close(self):
        self.close_calls += 1
        super().close()
        if self.fail_on_close and self.close_calls == 1:
            raise OSError("close failed")


class NonSeekableStream(io.RawIOBase):
    """Forward-only reader, like a socket or pipe."""

    def __init__(self, data: bytes):
        super().__init__()
        self._buffer = io.BytesIO(data)

    def readable(self):
        return True

    def seekable(self):
        return False

    def readinto(self, b):
        chunk = self._buffer.read(len(b))
        b[: len(chunk)] = chunk
        return len(chunk)


class FailingSink(io.RawIOBase):
    """Output sink whose writes always fail."""

    def writable(self):
        return True

    def write(self, b):
        raise OSError("disk full")


@pytest.fixture
def settings():
    """Settings independent of the environment."""
    return ExtractionSettings(_env_file=None)


@pytest.fixture
def pdf_bytes():
    """Two-page PDF with distinct text on each page."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "A Simple PDF File", fontsize=16)
    page.insert_text((72, 110), "And more text. And more text.")
    page = doc.new_page()
    page.insert_text((72, 72), "Simple PDF File 2", fontsize=16)
    page.insert_text((72, 110), "...continued from page 1.")
    doc.set_metadata({"title": "Sample PDF", "author": "docsift"})
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def encrypted_pdf_bytes():
    """Single-page PDF requiring the user password 'secret'."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Confidential figures")
    data = doc.tobytes(
        encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner", user_pw="secret"
    )
    doc.close()
    return data


@pytest.fixture
def docx_bytes():
    """Word document with a heading, body text and a table."""
    document = DocxDocument()
    document.core_properties.title = "DOCX Demo"
    document.core_properties.author = "docsift"
    document.add_heading("Demonstration of DOCX support in calibre", level=1)
    document.add_paragraph("This document demonstrates paragraph extraction.")
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Format"
    table.cell(0, 1).text = "Supported"
    table.cell(1, 0).text = "DOCX"
    table.cell(1, 1).text = "Yes"
    document.add_paragraph("Closing paragraph after the table.")
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def pptx_bytes():
    """Presentation with one title-and-content slide."""
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = "Sample PowerPoint File"
    slide.placeholders[1].text = "Here is an outline of bulleted points"
    prs.core_properties.title = "PPTX Demo"
    buffer = io.BytesIO()
    prs.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def xlsx_bytes():
    """Workbook with two small sheets."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Budget"
    ws.append(["Item", "Cost"])
    ws.append(["Paper", 12])
    ws.append(["Toner", 85])
    other = wb.create_sheet("Notes")
    other.append(["Reviewed by finance"])
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def rtf_bytes():
    return RTF_SAMPLE


@pytest.fixture
def jpeg_bytes():
    """Photograph-like JPEG with no text and a camera maker EXIF tag."""
    img = Image.new("RGB", (64, 48), color=(200, 120, 40))
    exif = Image.Exif()
    exif[0x010F] = "docsift camera"
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", exif=exif)
    return buffer.getvalue()


@pytest.fixture
def html_bytes():
    return (
        b"<!DOCTYPE html><html lang='en'><head><title>Release Notes</title>"
        b"<meta name='author' content='docsift team'>"
        b"<style>body { color: red; }</style>"
        b"<script>var hidden = 'script text';</script></head>"
        b"<body><h1>Version 2</h1><p>Faster detection.</p></body></html>"
    )


def make_zip(members):
    """Build a ZIP archive from a {name: bytes} mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def make_tar_gz(members):
    """Build a gzip-compressed TAR archive from a {name: bytes} mapping."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return gzip.compress(buffer.getvalue())


@pytest.fixture
def zip_bytes(docx_bytes):
    """Archive mixing a text file, a DOCX, a skipped binary and junk."""
    return make_zip(
        {
            "notes.txt": b"Archive member text",
            "docs/report.docx": docx_bytes,
            "tool.exe": b"MZ\x90\x00",
            "blob.dat": b"\x00\x01\x02\xff" * 64,
        }
    )
