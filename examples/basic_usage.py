"""
Example: Basic docsift Usage

This example demonstrates how to extract flat text and metadata from
documents whose format is not known in advance.
"""

import io
import sys
import zipfile
from pathlib import Path

from docsift import (
    ExtractionState,
    StreamTextExtractor,
    TextExtractionError,
    TextExtractor,
    configure_logging,
)


def file_example(paths):
    """Extract every file given on the command line."""
    print("=" * 60)
    print("File Extraction Example")
    print("=" * 60)

    extractor = TextExtractor()
    for path in paths:
        try:
            result = extractor.extract_file(path)
        except TextExtractionError as e:
            print(f"\n✗ {path}: {e.cause} (phase: {e.phase})")
            continue

        print(f"\n✓ {path}")
        print(f"✓ Content type: {result.content_type}")
        print(f"✓ Parsed by: {', '.join(result.metadata.get_values('X-Parsed-By'))}")
        print(f"✓ Text ({len(result.text):,} chars):")
        print(result.text[:500])


def archive_example():
    """Extract an in-memory ZIP, recursing into its members."""
    print("\n" + "=" * 60)
    print("Archive Example")
    print("=" * 60)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("readme.txt", "Release notes for version 2.")
        zf.writestr("page.html", "<html><body><p>Faster detection.</p></body></html>")

    result = TextExtractor().extract_bytes(buffer.getvalue(), resource_name="bundle.zip")

    print(f"✓ Content type: {result.content_type}")
    print(result.text)


def streaming_example():
    """Stream text straight into a sink while watching lifecycle states."""
    print("\n" + "=" * 60)
    print("Streaming Example")
    print("=" * 60)

    def on_state(state: ExtractionState) -> None:
        print(f"  [{state.value}]")

    def open_input(metadata):
        # Hints recorded here only break ties; the bytes decide the format
        metadata.set("resourceName", "notes.md")
        return io.BytesIO(b"# Notes\n\nStreaming keeps memory flat.\n")

    sink = io.BytesIO()
    metadata = StreamTextExtractor(state_listener=on_state).extract(open_input, sink)

    print(f"✓ Content type: {metadata.get('Content-Type')}")
    print(f"✓ Output: {sink.getvalue().decode('utf-8')!r}")


def main():
    """Run all examples."""
    configure_logging()

    paths = [Path(arg) for arg in sys.argv[1:]]
    if paths:
        file_example(paths)
    archive_example()
    streaming_example()

    print("\n" + "=" * 60)
    print("All examples completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
