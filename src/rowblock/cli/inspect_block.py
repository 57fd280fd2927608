"""Block inspection CLI command."""

from __future__ import annotations

from pathlib import Path

from ..compression import create_codec
from ..framing import decode_rows
from ..utils.sizing import bytes_to_string


def inspect_file(
    file_path: Path,
    *,
    codec: str = "lz4",
    num_fields: int = 0,
    max_bytes: int | None = None,
) -> int:
    """Decode a row block file and print a per-row size breakdown.

    Args:
        file_path: Path to a file containing one compressed block
        codec: Compression codec short name used when the block was written
        num_fields: Field-count descriptor for rebuilt rows
        max_bytes: Optional ceiling on cumulative decoded size

    Returns:
        Number of rows decoded

    Raises:
        RowBlockError: If the block cannot be decoded or exceeds max_bytes
    """
    data = file_path.read_bytes()

    print("|" * 7, "rowblock: Size-Limited Compressed Row Blocks", "|" * 7)
    print(f"{file_path.name}: {len(data)} bytes compressed ({codec})")
    if max_bytes is not None:
        print(f"Size limit: {bytes_to_string(max_bytes)}")
    print()

    count = 0
    with decode_rows(num_fields, data, codec=create_codec(codec), max_bytes=max_bytes) as rows:
        for row in rows:
            print(f"  row {count:<6} {row.size_in_bytes:>10} bytes")
            count += 1
        total = rows.guard.total_bytes_seen

    print()
    print(f"{count} row{'s' if count != 1 else ''} decoded.")
    print(f"Total uncompressed size: {bytes_to_string(total)} ({total} bytes)")
    return count
