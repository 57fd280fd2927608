"""Frame writer: packs rows into one compressed, length-prefixed block.

The block structure (before compression) is:
- [Length (4 bytes, signed big-endian)] [Row bytes] ... repeated ...
- [Sentinel: -1 (4 bytes)]
"""

from __future__ import annotations

import io
import logging
import struct
from typing import Iterable, NamedTuple

from ..compression import CompressionCodec, create_codec
from ..exceptions import CompressionError, SizeLimitExceededError
from ..guard import SizeGuard
from ..row import RowLike

logger = logging.getLogger(__name__)

LENGTH_FORMAT = ">i"
LENGTH_SIZE = struct.calcsize(LENGTH_FORMAT)
END_OF_BLOCK = -1
MAX_ROW_SIZE = 2**31 - 1

# Scratch space handed to each row's write_to_stream()
SCRATCH_BUFFER_SIZE = 4 << 10


class EncodedBlock(NamedTuple):
    """Result of encode_rows().

    Attributes:
        count: Number of rows written (sentinel excluded)
        data: Compressed serialization of all frames plus the sentinel
    """

    count: int
    data: bytes


def resolve_codec(codec: str | CompressionCodec) -> CompressionCodec:
    """Return ``codec`` unchanged, or create one if given a short name."""
    if isinstance(codec, CompressionCodec):
        return codec
    return create_codec(codec)


def encode_rows(
    rows: Iterable[RowLike],
    limit: int = -1,
    *,
    codec: str | CompressionCodec = "lz4",
    max_bytes: int | None = None,
) -> EncodedBlock:
    """Pack rows into a single compressed block.

    Rows are pulled from ``rows`` one at a time. The row-count limit is checked
    before the next row is requested, so the iterator is never advanced past
    the last row that is written.

    Args:
        rows: Rows to encode (any iterable of RowLike)
        limit: Maximum number of rows to write; negative means unlimited
        codec: Compression codec or its short name
        max_bytes: Ceiling on cumulative uncompressed row bytes, or None

    Returns:
        EncodedBlock with the row count and compressed bytes

    Raises:
        SizeLimitExceededError: If cumulative row size exceeds max_bytes.
            ``rows_written`` holds the number of rows written before the trigger.
        CompressionError: If the compressor fails
        ValueError: If a row is larger than a 4-byte length can describe, or
            writes a different number of bytes than its size_in_bytes

    Example:
        >>> from rowblock import UnsafeRow
        >>> block = encode_rows([UnsafeRow(1, b"a" * 16)], codec="gzip")
        >>> block.count
        1
    """
    compression = resolve_codec(codec)
    guard = SizeGuard(max_bytes)
    buffer = bytearray(SCRATCH_BUFFER_SIZE)
    bos = io.BytesIO()
    count = 0

    out = compression.compressed_output_stream(bos)
    try:
        iterator = iter(rows)
        # Check the limit before pulling, so no row past the limit is consumed
        while limit < 0 or count < limit:
            try:
                row = next(iterator)
            except StopIteration:
                break

            size = row.size_in_bytes
            if size > MAX_ROW_SIZE:
                raise ValueError(f"Row size {size} exceeds maximum frame length {MAX_ROW_SIZE}")

            try:
                guard.account(size)
            except SizeLimitExceededError as e:
                e.rows_written = count
                raise

            out.write(struct.pack(LENGTH_FORMAT, size))
            start = out.bytes_written
            row.write_to_stream(out, buffer)
            written = out.bytes_written - start
            if written != size:
                raise ValueError(
                    f"Row {count} wrote {written} bytes but reported size_in_bytes={size}"
                )
            count += 1

        out.write(struct.pack(LENGTH_FORMAT, END_OF_BLOCK))
    except BaseException:
        # Release the compressor without masking the original error
        try:
            out.close()
        except CompressionError:
            logger.debug("Ignoring compressor close failure during abort", exc_info=True)
        raise

    # Closing flushes the compressor and writes its trailer
    out.close()

    data = bos.getvalue()
    logger.debug(
        "Encoded %d rows (%d bytes uncompressed, %d bytes compressed) with %s",
        count,
        guard.total_bytes_seen,
        len(data),
        compression.name,
    )
    return EncodedBlock(count, data)
