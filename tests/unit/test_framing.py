"""Unit tests for row block framing."""

from __future__ import annotations

import gzip
import io
import struct
from typing import BinaryIO, Callable, Iterator

import lz4.frame
import pytest

from rowblock import (
    END_OF_BLOCK,
    CompressionCodec,
    CompressionError,
    MalformedStreamError,
    RowBlockError,
    RowIterator,
    SizeGuard,
    SizeLimitExceededError,
    UnsafeRow,
    create_codec,
    decode_rows,
    encode_rows,
)


RowFactory = Callable[..., list[UnsafeRow]]


def gzip_frames(*parts: bytes) -> bytes:
    """Compress hand-built frame bytes with gzip."""
    return gzip.compress(b"".join(parts))


def length(value: int) -> bytes:
    return struct.pack(">i", value)


class BrokenTrailerCodec(CompressionCodec):
    """Codec whose compressor fails while writing its trailer."""

    name = "broken"
    library_errors = (RuntimeError,)

    class _Writer:
        def write(self, data: bytes) -> int:
            return len(data)

        def flush(self) -> None:
            pass

        def close(self) -> None:
            raise RuntimeError("trailer write failed")

    def _open_writer(self, out: BinaryIO) -> BinaryIO:
        return self._Writer()  # type: ignore[return-value]

    def _open_reader(self, src: BinaryIO) -> BinaryIO:
        return src


class TestWireFormat:
    """Test the uncompressed layout of a block."""

    def test_frames_and_sentinel(self) -> None:
        """Test each row is length-prefixed and the block ends with -1."""
        rows = [UnsafeRow(1, b"abc"), UnsafeRow(1, b""), UnsafeRow(1, b"hello")]
        block = encode_rows(rows, codec="gzip")

        raw = gzip.decompress(block.data)
        assert raw == (
            length(3) + b"abc" + length(0) + length(5) + b"hello" + length(END_OF_BLOCK)
        )
        assert block.count == 3

    def test_empty_block_is_only_sentinel(self) -> None:
        """Test encoding nothing produces a compressed lone sentinel."""
        block = encode_rows([])
        assert block.count == 0
        assert lz4.frame.decompress(block.data) == b"\xff\xff\xff\xff"

    def test_default_codec_is_lz4(self) -> None:
        """Test the default block is an lz4 frame."""
        block = encode_rows([UnsafeRow(1, b"xyz")])
        assert lz4.frame.decompress(block.data) == length(3) + b"xyz" + length(-1)


class TestEncodeRows:
    """Test the frame writer."""

    def test_count_and_tuple_unpacking(self, sample_rows: list[UnsafeRow]) -> None:
        """Test the result unpacks as (count, bytes)."""
        count, data = encode_rows(sample_rows)
        assert count == 3
        assert isinstance(data, bytes)

    def test_limit_caps_rows(self, rows_factory: RowFactory) -> None:
        """Test limit writes exactly that many rows and a sentinel."""
        rows = rows_factory(1, 2, 3, 4, 5)
        block = encode_rows(rows, limit=2, codec="gzip")

        assert block.count == 2
        raw = gzip.decompress(block.data)
        assert raw == length(1) + rows[0].data + length(2) + rows[1].data + length(-1)

    def test_limit_does_not_consume_next_row(self, rows_factory: RowFactory) -> None:
        """Test the row after the limit is left in the source iterator."""
        pulled: list[int] = []

        def source() -> Iterator[UnsafeRow]:
            for index, row in enumerate(rows_factory(4, 4, 4, 4, 4)):
                pulled.append(index)
                yield row

        iterator = source()
        block = encode_rows(iterator, limit=2)

        assert block.count == 2
        assert pulled == [0, 1]
        assert next(iterator) == rows_factory(4, 4, 4, 4, 4)[2]

    def test_zero_limit(self, sample_rows: list[UnsafeRow]) -> None:
        """Test limit=0 writes only the sentinel."""
        block = encode_rows(sample_rows, limit=0)
        assert block.count == 0
        assert list(decode_rows(1, block.data)) == []

    def test_limit_larger_than_input(self, sample_rows: list[UnsafeRow]) -> None:
        """Test limit beyond the input simply exhausts it."""
        assert encode_rows(sample_rows, limit=100).count == 3

    def test_size_limit_exceeded(self, rows_factory: RowFactory) -> None:
        """Test [10, 10, 10] against a 25-byte ceiling fails on the third row."""
        with pytest.raises(SizeLimitExceededError) as exc_info:
            encode_rows(rows_factory(10, 10, 10), max_bytes=25)

        assert exc_info.value.rows_written == 2
        assert exc_info.value.total_bytes == 30
        assert exc_info.value.max_bytes == 25

    def test_size_limit_stops_pulling_rows(self, rows_factory: RowFactory) -> None:
        """Test no rows are pulled after the offending one."""
        pulled: list[int] = []

        def source() -> Iterator[UnsafeRow]:
            for index, row in enumerate(rows_factory(10, 10, 10, 10)):
                pulled.append(index)
                yield row

        with pytest.raises(SizeLimitExceededError):
            encode_rows(source(), max_bytes=15)
        assert pulled == [0, 1]

    def test_size_limit_exact_fit(self, rows_factory: RowFactory) -> None:
        """Test reaching the ceiling exactly succeeds."""
        assert encode_rows(rows_factory(10, 10, 10), max_bytes=30).count == 3

    def test_limit_takes_priority_over_size(self, rows_factory: RowFactory) -> None:
        """Test rows past the count limit are never accounted."""
        block = encode_rows(rows_factory(10, 10, 10), limit=2, max_bytes=25)
        assert block.count == 2

    def test_independent_calls_do_not_share_totals(self, rows_factory: RowFactory) -> None:
        """Test each encode call starts from zero."""
        rows = rows_factory(20)
        assert encode_rows(rows, max_bytes=25).count == 1
        assert encode_rows(rows, max_bytes=25).count == 1

    def test_input_rows_unchanged(self, sample_rows: list[UnsafeRow]) -> None:
        """Test encoding does not mutate the rows."""
        before = [row.data for row in sample_rows]
        encode_rows(sample_rows)
        assert [row.data for row in sample_rows] == before

    def test_row_larger_than_frame_length(self) -> None:
        """Test rows whose size cannot fit a 4-byte length are rejected."""

        class HugeRow:
            size_in_bytes = 2**31

            def write_to_stream(self, out: object, buffer: bytearray) -> None:
                raise AssertionError("should not be written")

        with pytest.raises(ValueError, match="exceeds maximum frame length"):
            encode_rows([HugeRow()])

    def test_accepts_codec_instance(self, sample_rows: list[UnsafeRow]) -> None:
        """Test a codec object can be passed instead of a name."""
        codec = create_codec("zstd")
        block = encode_rows(sample_rows, codec=codec)
        assert list(decode_rows(1, block.data, codec=codec)) == sample_rows

    def test_row_writing_wrong_byte_count(self) -> None:
        """Test a row whose payload disagrees with its reported size."""

        class ShortRow:
            size_in_bytes = 5

            def write_to_stream(self, out: BinaryIO, buffer: bytearray) -> None:
                out.write(b"ab")

        with pytest.raises(ValueError, match="wrote 2 bytes but reported size_in_bytes=5"):
            encode_rows([ShortRow()])

    def test_compressor_close_failure_does_not_mask_size_limit(
        self, rows_factory: RowFactory
    ) -> None:
        """Test the size-limit error survives a failing compressor close."""
        with pytest.raises(SizeLimitExceededError) as exc_info:
            encode_rows(rows_factory(10, 10, 10), codec=BrokenTrailerCodec(), max_bytes=25)
        assert exc_info.value.rows_written == 2

    def test_compressor_close_failure_on_success_path(self, sample_rows: list[UnsafeRow]) -> None:
        """Test a failing close is reported when nothing else went wrong."""
        with pytest.raises(CompressionError, match="trailer write failed"):
            encode_rows(sample_rows, codec=BrokenTrailerCodec())


class TestDecodeRows:
    """Test the lazy frame reader."""

    def test_roundtrip(self, rows_factory: RowFactory, codec_name: str) -> None:
        """Test decoded rows match encoded rows in order."""
        rows = rows_factory(0, 1, 8, 4096, 10000, num_fields=3)
        block = encode_rows(rows, codec=codec_name)

        decoded = list(decode_rows(3, block.data, codec=codec_name))
        assert decoded == rows
        assert all(row.num_fields == 3 for row in decoded)

    def test_empty(self) -> None:
        """Test an empty block decodes to no rows."""
        rows = decode_rows(1, encode_rows([]).data)
        assert rows.has_next() is False
        assert list(rows) == []

    def test_has_next_does_not_consume(self, sample_rows: list[UnsafeRow]) -> None:
        """Test repeated has_next() calls are side-effect free."""
        rows = decode_rows(1, encode_rows(sample_rows).data)
        assert rows.has_next()
        assert rows.has_next()
        assert rows.guard.total_bytes_seen == 0
        assert next(rows) == sample_rows[0]
        assert rows.guard.total_bytes_seen == 10

    def test_forward_only(self, sample_rows: list[UnsafeRow]) -> None:
        """Test iteration cannot restart."""
        rows = decode_rows(1, encode_rows(sample_rows).data)
        assert len(list(rows)) == 3
        assert list(rows) == []
        with pytest.raises(StopIteration):
            next(rows)

    def test_size_limit_exceeded_mid_iteration(self, sample_rows: list[UnsafeRow]) -> None:
        """Test a 15-byte ceiling allows row 1 and fails on row 2."""
        block = encode_rows(sample_rows)
        rows = decode_rows(1, block.data, max_bytes=15)

        first = next(rows)
        assert first == sample_rows[0]

        with pytest.raises(SizeLimitExceededError) as exc_info:
            next(rows)
        assert exc_info.value.total_bytes == 20
        assert exc_info.value.max_bytes == 15

        # Already returned rows stay valid; iteration is over
        assert first.data == sample_rows[0].data
        assert rows.has_next() is False
        with pytest.raises(StopIteration):
            next(rows)

    def test_decode_guard_is_fresh_per_call(self, sample_rows: list[UnsafeRow]) -> None:
        """Test separate decode calls do not share totals."""
        data = encode_rows(sample_rows).data
        for _ in range(2):
            rows = decode_rows(1, data, max_bytes=30)
            assert list(rows) == sample_rows
            assert rows.guard.total_bytes_seen == 30

    def test_encode_limit_does_not_carry_into_decode(self, rows_factory: RowFactory) -> None:
        """Test encode and decode account independently."""
        rows = rows_factory(10, 10)
        block = encode_rows(rows, max_bytes=20)
        assert list(decode_rows(1, block.data, max_bytes=20)) == rows

    def test_negative_num_fields_rejected(self, sample_rows: list[UnsafeRow]) -> None:
        """Test the descriptor is validated before any row is read."""
        with pytest.raises(ValueError, match="num_fields"):
            decode_rows(-1, encode_rows(sample_rows).data)

    def test_row_rebuild_failure_ends_iteration(self, sample_rows: list[UnsafeRow]) -> None:
        """Test a failure outside the codec closes the iterator and charges the guard once."""
        source = create_codec("gzip").compressed_input_stream(
            io.BytesIO(encode_rows(sample_rows, codec="gzip").data)
        )
        rows = RowIterator(-1, source, SizeGuard(max_bytes=100))

        with pytest.raises(ValueError):
            next(rows)

        assert rows.has_next() is False
        assert source.closed
        with pytest.raises(StopIteration):
            next(rows)
        assert rows.guard.total_bytes_seen == 10

    def test_context_manager_closes(self, sample_rows: list[UnsafeRow]) -> None:
        """Test leaving the context stops iteration."""
        with decode_rows(1, encode_rows(sample_rows).data) as rows:
            next(rows)
        assert rows.has_next() is False

    def test_trailing_bytes_after_sentinel_ignored(self) -> None:
        """Test reading stops at the sentinel."""
        data = gzip_frames(length(2), b"ok", length(-1), b"junk")
        assert list(decode_rows(1, data, codec="gzip")) == [UnsafeRow(1, b"ok")]


class TestMalformedStreams:
    """Test structural decode failures."""

    def test_invalid_negative_length(self) -> None:
        """Test lengths below -1 are rejected."""
        data = gzip_frames(length(-2))
        with pytest.raises(MalformedStreamError, match="Invalid frame length -2"):
            decode_rows(1, data, codec="gzip")

    def test_invalid_negative_length_mid_stream(self) -> None:
        """Test a bad length after a valid row."""
        data = gzip_frames(length(1), b"a", length(-7))
        rows = decode_rows(1, data, codec="gzip")
        with pytest.raises(MalformedStreamError, match="after row 1"):
            next(rows)

    def test_empty_stream(self) -> None:
        """Test a stream with no sentinel at all."""
        with pytest.raises(MalformedStreamError, match="Truncated frame length"):
            decode_rows(1, gzip_frames(), codec="gzip")

    def test_truncated_length(self) -> None:
        """Test a partial 4-byte length."""
        with pytest.raises(MalformedStreamError, match="expected 4 bytes, got 2 bytes"):
            decode_rows(1, gzip_frames(b"\x00\x00"), codec="gzip")

    def test_truncated_payload(self) -> None:
        """Test a payload shorter than its declared length."""
        rows = decode_rows(1, gzip_frames(length(10), b"abcd"), codec="gzip")
        assert rows.has_next()
        with pytest.raises(MalformedStreamError, match="Truncated row payload"):
            next(rows)
        assert rows.has_next() is False

    def test_missing_sentinel(self) -> None:
        """Test a stream that ends right after a row."""
        rows = decode_rows(1, gzip_frames(length(3), b"abc"), codec="gzip")
        with pytest.raises(MalformedStreamError):
            next(rows)

    def test_not_compressed(self, codec_name: str) -> None:
        """Test raw bytes are rejected by every codec."""
        with pytest.raises(CompressionError):
            decode_rows(1, b"\x00\x00\x00\x01a\xff\xff\xff\xff" * 4, codec=codec_name)

    def test_wrong_codec(self, rows_factory: RowFactory) -> None:
        """Test decoding with a different codec than the encoder used."""
        block = encode_rows(rows_factory(8), codec="lz4")
        with pytest.raises(CompressionError):
            decode_rows(1, block.data, codec="gzip")

    def test_truncated_compressed_block(self, rows_factory: RowFactory) -> None:
        """Test a compressed block cut short."""
        block = encode_rows(rows_factory(5000, 5000), codec="gzip")
        with pytest.raises(MalformedStreamError):
            list(decode_rows(1, block.data[: len(block.data) // 2], codec="gzip"))

    @pytest.mark.parametrize("codec", ["gzip", "lz4"])
    def test_truncated_trailer(self, rows_factory: RowFactory, codec: str) -> None:
        """Test a block missing the last bytes of its compression trailer."""
        block = encode_rows(rows_factory(10, 10, 10), codec=codec)
        with pytest.raises(MalformedStreamError):
            list(decode_rows(1, block.data[:-4], codec=codec))

    def test_corrupted_gzip_trailer(self, rows_factory: RowFactory) -> None:
        """Test a gzip block whose length check no longer matches."""
        block = encode_rows(rows_factory(10, 10, 10), codec="gzip")
        damaged = block.data[:-1] + bytes([block.data[-1] ^ 0xFF])
        with pytest.raises(RowBlockError):
            list(decode_rows(1, damaged, codec="gzip"))

    def test_intact_trailer_fully_consumed(self, sample_rows: list[UnsafeRow]) -> None:
        """Test reaching the sentinel drains and closes the source."""
        source = create_codec("lz4").compressed_input_stream(
            io.BytesIO(encode_rows(sample_rows).data)
        )
        rows = RowIterator(1, source, SizeGuard())
        assert list(rows) == sample_rows
        assert source.closed
