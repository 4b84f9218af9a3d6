"""Raster image parser using Pillow.

Images carry no text layer here (OCR is out of scope); the parser emits an
empty document and records dimensions and EXIF tags as metadata.
"""

from typing import BinaryIO

from PIL import ExifTags, Image

from docsift.documents import metadata as keys
from docsift.documents.handlers import ContentHandler, StructuredContentWriter
from docsift.documents.metadata import Metadata
from docsift.documents.models import DocumentFormat
from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext

# EXIF tags copied into metadata, under "exif:<TagName>"
EXIF_TAGS = (
    "Make",
    "Model",
    "Orientation",
    "DateTime",
    "Software",
    "Artist",
    "Copyright",
    "ImageDescription",
)


class ImageParser(ContentParser):
    """Parser for raster images (JPEG, PNG, GIF, BMP, TIFF, WEBP)."""

    SUPPORTED_FORMATS = frozenset({DocumentFormat.IMAGE})

    @property
    def name(self) -> str:
        return "image"

    def parse(
        self,
        stream: BinaryIO,
        handler: ContentHandler,
        metadata: Metadata,
        context: ParseContext,
    ) -> None:
        with Image.open(stream) as img:
            # Decode fully so truncated files fail here rather than later
            img.load()

            width, height = img.size
            metadata.set(keys.IMAGE_WIDTH, width)
            metadata.set(keys.IMAGE_LENGTH, height)
            metadata.set(keys.IMAGE_FORMAT, img.format)
            metadata.set(keys.IMAGE_MODE, img.mode)
            if getattr(img, "n_frames", 1) > 1:
                metadata.set("image:frames", img.n_frames)

            exif = img.getexif()
            for tag_id, value in exif.items():
                tag = ExifTags.TAGS.get(tag_id)
                if tag in EXIF_TAGS and value not in (None, ""):
                    if isinstance(value, bytes):
                        value = value.decode("latin-1", errors="replace")
                    metadata.set(f"exif:{tag}", str(value).strip("\x00 "))

        xhtml = StructuredContentWriter(handler)
        xhtml.start_document()
        xhtml.end_document()
