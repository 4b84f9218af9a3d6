"""In-memory convenience wrapper around StreamTextExtractor."""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

from docsift.config import ExtractionSettings, get_settings
from docsift.core.orchestrator import InputFactory, StreamTextExtractor
from docsift.documents import metadata as keys
from docsift.documents.metadata import Metadata


@dataclass
class TextExtractionResult:
    """Extracted text together with the document's metadata."""

    text: str
    content_type: Optional[str]
    metadata: Metadata


class TextExtractor:
    """Extract text from bytes, files or streams into a string.

    Output is buffered in memory, so this suits documents that fit there;
    use ``StreamTextExtractor`` directly to write to a file or socket.

    Example:
        ```python
        result = TextExtractor().extract_file("slides.pptx")
        print(result.content_type, result.text)
        ```
    """

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        extractor: Optional[StreamTextExtractor] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.extractor = extractor or StreamTextExtractor(settings=self.settings)

    def extract_bytes(
        self,
        data: bytes,
        resource_name: Optional[str] = None,
        content_type: Optional[str] = None,
        password: Optional[str] = None,
    ) -> TextExtractionResult:
        """Extract text from an in-memory document.

        ``resource_name`` and ``content_type`` are hints only; the bytes decide.
        """

        def open_input(metadata: Metadata) -> BinaryIO:
            metadata.set(keys.RESOURCE_NAME, resource_name)
            metadata.set(keys.CONTENT_TYPE_HINT, content_type)
            return io.BytesIO(data)

        return self._run(open_input, password)

    def extract_file(
        self, path: Union[str, Path], password: Optional[str] = None
    ) -> TextExtractionResult:
        """Extract text from a file on disk."""
        path = Path(path)

        def open_input(metadata: Metadata) -> BinaryIO:
            metadata.set(keys.RESOURCE_NAME, path.name)
            return path.open("rb")

        return self._run(open_input, password)

    def extract_stream(
        self,
        stream: BinaryIO,
        resource_name: Optional[str] = None,
        password: Optional[str] = None,
    ) -> TextExtractionResult:
        """Extract text from an open binary stream.

        The stream is closed once extraction finishes, successfully or not.
        """

        def open_input(metadata: Metadata) -> BinaryIO:
            metadata.set(keys.RESOURCE_NAME, resource_name)
            return stream

        return self._run(open_input, password)

    def _run(
        self, input_factory: InputFactory, password: Optional[str]
    ) -> TextExtractionResult:
        sink = io.BytesIO()
        metadata = self.extractor.extract(input_factory, sink, password=password)
        text = sink.getvalue().decode(self.extractor.transform_options.encoding)
        return TextExtractionResult(
            text=text,
            content_type=metadata.get(keys.CONTENT_TYPE),
            metadata=metadata,
        )
