"""Document data models for the extraction pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DocumentFormat(str, Enum):
    """Document formats the detector can name."""

    # Text formats
    PLAIN_TEXT = "txt"
    MARKDOWN = "md"
    CSV = "csv"
    JSON = "json"

    # Web formats
    HTML = "html"
    XML = "xml"

    # Document formats
    PDF = "pdf"
    DOCX = "docx"
    XLSX = "xlsx"
    PPTX = "pptx"
    RTF = "rtf"

    # Legacy OLE2 compound documents (.doc, .xls, .ppt)
    OLE2 = "ole2"

    # Raster images
    IMAGE = "image"

    # Archive formats
    ZIP = "zip"
    TAR = "tar"
    GZIP = "gz"

    # Unknown
    UNKNOWN = "unknown"

    @classmethod
    def from_extension(cls, ext: str) -> DocumentFormat:
        """Get format from file extension."""
        ext = ext.lower().lstrip(".")
        mapping = {
            "txt": cls.PLAIN_TEXT,
            "text": cls.PLAIN_TEXT,
            "md": cls.MARKDOWN,
            "markdown": cls.MARKDOWN,
            "csv": cls.CSV,
            "json": cls.JSON,
            "html": cls.HTML,
            "htm": cls.HTML,
            "xhtml": cls.HTML,
            "xml": cls.XML,
            "pdf": cls.PDF,
            "docx": cls.DOCX,
            "xlsx": cls.XLSX,
            "pptx": cls.PPTX,
            "rtf": cls.RTF,
            "doc": cls.OLE2,
            "xls": cls.OLE2,
            "ppt": cls.OLE2,
            "jpg": cls.IMAGE,
            "jpeg": cls.IMAGE,
            "png": cls.IMAGE,
            "gif": cls.IMAGE,
            "bmp": cls.IMAGE,
            "tif": cls.IMAGE,
            "tiff": cls.IMAGE,
            "webp": cls.IMAGE,
            "zip": cls.ZIP,
            "tar": cls.TAR,
            "gz": cls.GZIP,
            "tgz": cls.GZIP,
        }
        return mapping.get(ext, cls.UNKNOWN)


class DetectionSource(str, Enum):
    """Which evidence decided a detection result."""

    CONTENT = "content"
    HINT = "hint"


class DetectionResult(BaseModel):
    """Outcome of format detection for one input."""

    format: DocumentFormat = Field(..., description="Detected document format")
    mime_type: str = Field(
        default="application/octet-stream", description="Detected media type"
    )
    source: DetectionSource = Field(
        default=DetectionSource.CONTENT, description="Evidence that decided the format"
    )
    hint_format: Optional[DocumentFormat] = Field(
        default=None, description="Format suggested by the caller's hints, if any"
    )

    @property
    def is_known(self) -> bool:
        return self.format != DocumentFormat.UNKNOWN
