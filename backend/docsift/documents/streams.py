"""Input stream helpers: read-ahead and spooling."""

import shutil
import tempfile
from typing import BinaryIO, Tuple

from docsift.core.exceptions import ResourceAcquisitionError

_COPY_BUFFER = 64 * 1024


def is_seekable(stream: BinaryIO) -> bool:
    seekable = getattr(stream, "seekable", None)
    if seekable is None:
        return False
    try:
        return bool(seekable())
    except (OSError, ValueError):
        return False


def ensure_seekable(stream: BinaryIO, max_memory: int) -> Tuple[BinaryIO, bool]:
    """Return a seekable view of ``stream``.

    Seekable streams are returned as is. Anything else is copied into a
    ``SpooledTemporaryFile`` that stays in memory up to ``max_memory`` bytes.

    Args:
        stream: Readable binary stream
        max_memory: In-memory limit for the spool in bytes

    Returns:
        Tuple of (seekable stream, whether the caller owns and must close it)

    Raises:
        ResourceAcquisitionError: If the input cannot be read
    """
    if is_seekable(stream):
        return stream, False

    spool = tempfile.SpooledTemporaryFile(max_size=max_memory, mode="w+b")
    try:
        shutil.copyfileobj(stream, spool, _COPY_BUFFER)
        spool.seek(0)
    except Exception as e:
        # Decompressing readers (archive members) raise their own error types
        spool.close()
        raise ResourceAcquisitionError(f"Failed to read input stream: {e}") from e
    return spool, True


def peek(stream: BinaryIO, size: int) -> bytes:
    """Read up to ``size`` bytes from a seekable stream without consuming them."""
    try:
        position = stream.tell()
        data = stream.read(size)
        stream.seek(position)
    except Exception as e:
        raise ResourceAcquisitionError(f"Failed to read input stream: {e}") from e
    return data or b""


def read_all(stream: BinaryIO) -> bytes:
    """Read the rest of a stream, for decoders that need the whole buffer."""
    data = stream.read()
    return data or b""
