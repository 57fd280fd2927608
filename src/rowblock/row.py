"""Opaque row buffers exchanged through row blocks.

The codec never looks inside a row: it only needs the row's exact size, a way
to copy the row's bytes to a stream, and a way to rebuild a row from raw
bytes plus a field-count descriptor. UnsafeRow provides all three; any other
object satisfying RowLike can be encoded as well.
"""

from __future__ import annotations

from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class RowLike(Protocol):
    """Structural type accepted by the frame writer."""

    @property
    def size_in_bytes(self) -> int: ...

    def write_to_stream(self, out: BinaryIO, buffer: bytearray) -> None: ...


class UnsafeRow:
    """Immutable fixed-boundary binary record.

    Equality and hashing consider the payload bytes only, so a row rebuilt from
    a block compares equal to the row that was encoded regardless of the
    descriptor used to rebuild it.

    Attributes:
        num_fields: Structural descriptor supplied by the row's producer
        data: Raw row payload

    Example:
        >>> row = UnsafeRow(2, b"\\x00" * 24)
        >>> row.size_in_bytes
        24
    """

    __slots__ = ("_num_fields", "_data")

    def __init__(self, num_fields: int, data: bytes = b"") -> None:
        if num_fields < 0:
            raise ValueError(f"num_fields must be >= 0, got {num_fields}")
        self._num_fields = num_fields
        self._data = bytes(data)

    @classmethod
    def point_to(cls, num_fields: int, buf: bytes | bytearray, size: int | None = None) -> UnsafeRow:
        """Rebuild a row from the first ``size`` bytes of ``buf``.

        Args:
            num_fields: Structural descriptor for the row
            buf: Raw payload buffer
            size: Number of bytes belonging to the row (default: all of buf)

        Raises:
            ValueError: If size is negative or larger than the buffer
        """
        if size is None:
            size = len(buf)
        if not 0 <= size <= len(buf):
            raise ValueError(f"Row size {size} out of range for {len(buf)}-byte buffer")
        return cls(num_fields, bytes(buf[:size]))

    @property
    def num_fields(self) -> int:
        return self._num_fields

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def size_in_bytes(self) -> int:
        return len(self._data)

    def write_to_stream(self, out: BinaryIO, buffer: bytearray) -> None:
        """Copy the row's bytes to ``out`` through the scratch ``buffer``.

        Args:
            out: Destination stream
            buffer: Reusable scratch space; its length bounds each write
        """
        if not buffer:
            raise ValueError("Scratch buffer must not be empty")

        view = memoryview(self._data)
        chunk = len(buffer)
        for offset in range(0, len(view), chunk):
            piece = view[offset : offset + chunk]
            buffer[: len(piece)] = piece
            out.write(memoryview(buffer)[: len(piece)])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnsafeRow):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"UnsafeRow(num_fields={self._num_fields}, size_in_bytes={len(self._data)})"
