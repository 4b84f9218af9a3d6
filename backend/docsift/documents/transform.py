"""Flat-text serializer for structural content events."""

import codecs
from typing import BinaryIO, Optional

import structlog
from pydantic import BaseModel, Field, field_validator

from docsift.core.exceptions import ConfigurationError, TransformIOError
from docsift.documents.handlers import Attributes, ContentHandler

logger = structlog.get_logger()


class TextTransformOptions(BaseModel):
    """Serializer output properties.

    Only the flat-text configuration exists; the fields are kept so the
    transform is a configured serializer rather than a special case.
    """

    method: str = Field(default="text", description="Output method")
    indent: str = Field(default="no", description="Indent nested elements")
    encoding: str = Field(default="utf-8", description="Output byte encoding")

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            return codecs.lookup(v).name
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e


class TextContentTransform(ContentHandler):
    """Serialize content events as flat text into a byte sink.

    Text runs are written verbatim in arrival order; element boundaries
    write nothing. ``end_document`` flushes the sink but never closes it,
    the sink belongs to the caller.
    """

    def __init__(
        self, sink: BinaryIO, options: Optional[TextTransformOptions] = None
    ) -> None:
        """Bind the transform to an output sink.

        Args:
            sink: Writable binary stream owned by the caller
            options: Output properties (default: text, no indent, utf-8)

        Raises:
            ConfigurationError: If the options ask for anything but flat text
        """
        options = options or TextTransformOptions()
        if options.method != "text":
            raise ConfigurationError(f"Unsupported output method: {options.method}")
        if options.indent != "no":
            raise ConfigurationError(f"Unsupported indent setting: {options.indent}")

        self.sink = sink
        self.options = options
        self.bytes_written = 0
        self._encoder = codecs.getincrementalencoder(options.encoding)(errors="replace")

    def start_element(self, name: str, attributes: Optional[Attributes] = None) -> None:
        pass

    def end_element(self, name: str) -> None:
        pass

    def characters(self, text: str) -> None:
        self._write(text)

    def ignorable_whitespace(self, text: str) -> None:
        self._write(text)

    def end_document(self) -> None:
        self._write_bytes(self._encoder.encode("", final=True))
        try:
            self.sink.flush()
        except Exception as e:
            raise TransformIOError(f"Failed to flush output sink: {e}") from e
        logger.debug("text_transform_flushed", bytes_written=self.bytes_written)

    def _write(self, text: str) -> None:
        if text:
            self._write_bytes(self._encoder.encode(text))

    def _write_bytes(self, data: bytes) -> None:
        if not data:
            return
        try:
            self.sink.write(data)
        except Exception as e:
            # Any sink failure is an output error, never a parse error
            raise TransformIOError(f"Failed to write to output sink: {e}") from e
        self.bytes_written += len(data)
