"""One pull interface over the different body shapes a download can return.

botocore hands back a ``StreamingBody`` that is read with ``read(n)``; httpx
streams yield chunks from an iterator. Both are adapted to
:class:`ByteSource` so the draining loop is written once.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, BinaryIO, Protocol, runtime_checkable

from s3_vault.core.exceptions import BackupErrorKind, S3BackupError
from s3_vault.storage.progress import ProgressReporter

CHUNK_SIZE = 64 * 1024


@runtime_checkable
class ByteSource(Protocol):
    def read_chunk(self) -> bytes:
        """Return the next chunk, or ``b""`` once the body is exhausted."""
        ...


class ReaderByteSource:
    """Pull-based bodies exposing ``read(n)``."""

    def __init__(self, reader: Any, chunk_size: int = CHUNK_SIZE) -> None:
        self._reader = reader
        self._chunk_size = chunk_size

    def read_chunk(self) -> bytes:
        return self._reader.read(self._chunk_size) or b""


class IterableByteSource:
    """Iterator/push-style bodies yielding chunks as they arrive."""

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self._chunks: Iterator[bytes] = iter(chunks)

    def read_chunk(self) -> bytes:
        for chunk in self._chunks:
            # Empty keep-alive chunks must not read as end of stream.
            if chunk:
                return bytes(chunk)
        return b""


def as_byte_source(body: Any) -> ByteSource:
    """Adapt a response body to :class:`ByteSource`.

    Raises:
        S3BackupError: ``DOWNLOAD_FAILED`` for unsupported body types.
    """
    if isinstance(body, ByteSource):
        return body
    if callable(getattr(body, "read", None)):
        return ReaderByteSource(body)
    if isinstance(body, Iterable) and not isinstance(body, (bytes, bytearray, str)):
        return IterableByteSource(body)
    raise S3BackupError(BackupErrorKind.DOWNLOAD_FAILED, "Unsupported stream type")


def drain(source: ByteSource, sink: BinaryIO, reporter: ProgressReporter) -> int:
    """Copy ``source`` into ``sink`` chunk by chunk; return bytes written."""
    written = 0
    while chunk := source.read_chunk():
        sink.write(chunk)
        written += len(chunk)
        reporter.advance(len(chunk))
    return written
