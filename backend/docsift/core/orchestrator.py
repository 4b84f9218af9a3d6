"""Extraction orchestrator - main entry point for stream-to-text extraction."""

import time
import uuid
from enum import Enum
from typing import Any, BinaryIO, Callable, Optional

import structlog

from docsift.config import ExtractionSettings, get_settings
from docsift.core.exceptions import ResourceAcquisitionError, TextExtractionError
from docsift.documents import metadata as keys
from docsift.documents.metadata import Metadata
from docsift.documents.parsers.base import ContentParser
from docsift.documents.parsers.context import ParseContext
from docsift.documents.parsers.dispatcher import AutoDetectParser
from docsift.documents.transform import TextContentTransform, TextTransformOptions

logger = structlog.get_logger()

InputFactory = Callable[[Metadata], BinaryIO]


class ExtractionState(str, Enum):
    """Lifecycle of a single extract call."""

    IDLE = "idle"
    STREAM_ACQUIRED = "stream_acquired"
    PARSING = "parsing"
    COMPLETED = "completed"
    FAILED = "failed"
    STREAM_RELEASED = "stream_released"


StateListener = Callable[[ExtractionState], None]


class _StateReporter:
    """Reports the states of one extract call.

    A failing listener never interrupts the pipeline; its first error is kept
    and surfaced once the input stream has been released.
    """

    def __init__(self, listener: Optional[StateListener], log: Any) -> None:
        self.listener = listener
        self.log = log
        self.error: Optional[Exception] = None

    def enter(self, state: ExtractionState) -> None:
        self.log.debug("extraction_state", state=state.value)
        if self.listener is None:
            return
        try:
            self.listener(state)
        except Exception as e:
            self.log.warning(
                "state_listener_failed", state=state.value, error=str(e)
            )
            if self.error is None:
                self.error = e


class StreamTextExtractor:
    """Turn a document stream into flat text plus metadata.

    Each ``extract`` call:
    1. Allocates fresh metadata
    2. Calls the input factory once and owns the returned stream
    3. Binds a flat-text transform to the caller's output sink
    4. Builds a parse context exposing the dispatcher as ``ContentParser``
    5. Parses, pushing content events into the transform
    6. Closes the input stream, whatever happened before
    7. Returns read-only metadata, or raises ``TextExtractionError``

    Calls share nothing mutable, so one instance serves many threads as long
    as each call brings its own stream and sink.

    Example:
        ```python
        extractor = StreamTextExtractor()
        sink = io.BytesIO()
        metadata = extractor.extract(lambda md: open("report.pdf", "rb"), sink)
        print(sink.getvalue().decode("utf-8"))
        ```
    """

    def __init__(
        self,
        parser: Optional[ContentParser] = None,
        settings: Optional[ExtractionSettings] = None,
        state_listener: Optional[StateListener] = None,
        transform_options: Optional[TextTransformOptions] = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            parser: Top-level parser (default: AutoDetectParser over the global registry)
            settings: Extraction settings (default: cached settings)
            state_listener: Called with each state the extraction enters; if it
                raises, the call fails with phase "notify" once the stream is released
            transform_options: Output properties (default: text in the configured encoding)
        """
        self.settings = settings or get_settings()
        self.parser = parser or AutoDetectParser(settings=self.settings)
        self.state_listener = state_listener
        self.transform_options = transform_options or TextTransformOptions(
            encoding=self.settings.output_encoding
        )

    def extract(
        self,
        input_factory: InputFactory,
        output_sink: BinaryIO,
        password: Optional[str] = None,
    ) -> Metadata:
        """Extract flat text from the factory's stream into ``output_sink``.

        The sink is written to but never closed. On failure it may already
        hold partial output.

        Args:
            input_factory: Called once with the fresh metadata; may record hints
                (``resourceName``, ``Content-Type-Hint``) before returning a stream
            output_sink: Writable binary stream owned by the caller
            password: Password for encrypted documents

        Returns:
            Frozen metadata describing the document

        Raises:
            TextExtractionError: On any failure, chained to the original error
        """
        log = logger.bind(extraction_id=uuid.uuid4().hex[:12])
        start_time = time.time()

        metadata = Metadata()
        states = _StateReporter(self.state_listener, log)
        states.enter(ExtractionState.IDLE)

        try:
            stream = self._acquire(input_factory, metadata)
        except ResourceAcquisitionError as e:
            log.info("extraction_failed", phase="acquire", error=str(e))
            raise TextExtractionError(cause=e, phase="acquire") from e

        phase = "transform"
        primary: Optional[Exception] = None
        try:
            states.enter(ExtractionState.STREAM_ACQUIRED)
            transform = TextContentTransform(output_sink, self.transform_options)

            phase = "context"
            context = ParseContext(settings=self.settings, password=password)
            # Keyed by the capability, not AutoDetectParser, so container
            # parsers can find it for their members
            context.set(ContentParser, self.parser)

            phase = "parse"
            states.enter(ExtractionState.PARSING)
            self.parser.parse(stream, transform, metadata, context)
            states.enter(ExtractionState.COMPLETED)
        except Exception as e:
            primary = e
            states.enter(ExtractionState.FAILED)
        finally:
            close_error = self._release(stream)
            states.enter(ExtractionState.STREAM_RELEASED)

        if primary is not None:
            if close_error is not None:
                log.warning(
                    "stream_close_failed",
                    error=str(close_error),
                    suppressed_by=type(primary).__name__,
                )
            log.info(
                "extraction_failed",
                phase=phase,
                error_type=type(primary).__name__,
                error=str(primary),
            )
            raise TextExtractionError(cause=primary, phase=phase) from primary

        if close_error is not None:
            log.info("extraction_failed", phase="release", error=str(close_error))
            raise TextExtractionError(cause=close_error, phase="release") from close_error

        if states.error is not None:
            log.info("extraction_failed", phase="notify", error=str(states.error))
            raise TextExtractionError(cause=states.error, phase="notify") from states.error

        metadata.freeze()
        log.info(
            "extraction_completed",
            content_type=metadata.get(keys.CONTENT_TYPE),
            parsed_by=metadata.get_values(keys.PARSED_BY),
            bytes_written=transform.bytes_written,
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return metadata

    def _acquire(self, input_factory: InputFactory, metadata: Metadata) -> BinaryIO:
        """Call the input factory exactly once.

        Raises:
            ResourceAcquisitionError: If the factory fails or returns no stream
        """
        try:
            stream = input_factory(metadata)
        except Exception as e:
            raise ResourceAcquisitionError(f"Input source failed: {e}") from e

        if stream is None:
            raise ResourceAcquisitionError("Input source returned no stream")
        if not callable(getattr(stream, "read", None)):
            self._release(stream)
            raise ResourceAcquisitionError(
                f"Input source returned an unreadable object: {type(stream).__name__}"
            )
        return stream

    def _release(self, stream: BinaryIO) -> Optional[Exception]:
        """Close the input stream, returning (not raising) any close failure."""
        close = getattr(stream, "close", None)
        if close is None:
            return None
        try:
            close()
        except Exception as e:
            return e
        return None

