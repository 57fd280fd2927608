"""Frame reader: lazily unpacks rows from a compressed block."""

from __future__ import annotations

import io
import logging
import struct
from typing import Callable, Iterator, TypeVar

from ..compression import CompressionCodec, DecompressingStream
from ..exceptions import MalformedStreamError
from ..guard import SizeGuard
from ..row import UnsafeRow
from .writer import END_OF_BLOCK, LENGTH_FORMAT, LENGTH_SIZE, resolve_codec

logger = logging.getLogger(__name__)

T = TypeVar("T")

DRAIN_CHUNK_SIZE = 64 << 10


class RowIterator(Iterator[UnsafeRow]):
    """Forward-only iterator over the rows of one block.

    The iterator always holds the length of the next frame, read ahead of time,
    so ``has_next()`` never touches the stream. Each ``__next__`` accounts the
    peeked length, reads that row's payload, then peeks the following length.

    On the sentinel the rest of the compressed stream is drained, so a damaged
    trailer is reported by the call that reaches it. On the sentinel, or on
    any failure, the decompressing source is closed and iteration stops. Rows
    already returned remain valid after a failure.

    Attributes:
        guard: Size accounting for this decode call (read-only for callers)
    """

    def __init__(self, num_fields: int, source: DecompressingStream, guard: SizeGuard) -> None:
        self.num_fields = num_fields
        self.guard = guard
        self._source = source
        self._rows_read = 0
        self._size_of_next_row = END_OF_BLOCK
        self._size_of_next_row = self._guarded(self._read_length)

    def has_next(self) -> bool:
        """Return True if another row is available."""
        return self._size_of_next_row >= 0

    def __iter__(self) -> RowIterator:
        return self

    def __next__(self) -> UnsafeRow:
        if not self.has_next():
            self.close()
            raise StopIteration
        return self._guarded(self._take_next)

    def _take_next(self) -> UnsafeRow:
        size = self._size_of_next_row
        self.guard.account(size)
        payload = self._read_fully(size, what="row payload")
        row = UnsafeRow.point_to(self.num_fields, payload, size)
        self._rows_read += 1
        self._size_of_next_row = self._read_length()
        return row

    def _guarded(self, step: Callable[[], T]) -> T:
        # Any failure ends iteration and releases the decompressor
        try:
            return step()
        except BaseException:
            self.close()
            raise

    def _read_length(self) -> int:
        raw = self._read_fully(LENGTH_SIZE, what="frame length")
        (length,) = struct.unpack(LENGTH_FORMAT, raw)
        if length < END_OF_BLOCK:
            raise MalformedStreamError(f"Invalid frame length {length} after row {self._rows_read}")
        if length == END_OF_BLOCK:
            logger.debug(
                "Decoded %d rows (%d bytes uncompressed)", self._rows_read, self.guard.total_bytes_seen
            )
            self._drain()
        return length

    def _drain(self) -> None:
        # Read through the compression trailer so a damaged one is reported
        while self._source.read(DRAIN_CHUNK_SIZE):
            pass
        self._source.close()

    def _read_fully(self, size: int, *, what: str) -> bytes:
        chunks = bytearray()
        while len(chunks) < size:
            chunk = self._source.read(size - len(chunks))
            if not chunk:
                raise MalformedStreamError(
                    f"Truncated {what} after row {self._rows_read}: "
                    f"expected {size} bytes, got {len(chunks)} bytes"
                )
            chunks.extend(chunk)
        return bytes(chunks)

    def close(self) -> None:
        """Release the decompressing source. Safe to call more than once."""
        self._size_of_next_row = END_OF_BLOCK
        self._source.close()

    def __enter__(self) -> RowIterator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def decode_rows(
    num_fields: int,
    data: bytes,
    *,
    codec: str | CompressionCodec = "lz4",
    max_bytes: int | None = None,
) -> RowIterator:
    """Unpack a block produced by encode_rows() into a lazy row iterator.

    The first frame length is read immediately, so an invalid or empty stream
    fails here rather than on first iteration.

    Args:
        num_fields: Structural descriptor used to rebuild each row
        data: Compressed block bytes
        codec: Compression codec or its short name (must match the encoder)
        max_bytes: Ceiling on cumulative uncompressed row bytes, or None

    Returns:
        RowIterator yielding UnsafeRow instances in encode order

    Raises:
        MalformedStreamError: If the stream is truncated or structurally invalid
        CompressionError: If the data is not a valid stream for the codec
        ValueError: If num_fields is negative

    Example:
        >>> from rowblock import UnsafeRow, encode_rows
        >>> block = encode_rows([UnsafeRow(1, b"x" * 8)], codec="gzip")
        >>> list(decode_rows(1, block.data, codec="gzip"))
        [UnsafeRow(num_fields=1, size_in_bytes=8)]
    """
    if num_fields < 0:
        raise ValueError(f"num_fields must be >= 0, got {num_fields}")

    compression = resolve_codec(codec)
    source = compression.compressed_input_stream(io.BytesIO(data))
    return RowIterator(num_fields, source, SizeGuard(max_bytes))
