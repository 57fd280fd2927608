#!/usr/bin/env python3
"""Basic usage example for rowblock.

This example demonstrates:
1. Packing rows into a compressed block
2. Lazily unpacking a block
3. Enforcing a cumulative size limit on the decoding side
"""

from __future__ import annotations

import logging
import struct

from rowblock import (
    CodecConfig,
    SizeLimitExceededError,
    SizeLimitingRowConverter,
    UnsafeRow,
    bytes_to_string,
)


def make_row(key: int, value: int) -> UnsafeRow:
    """Build a two-field row: 8-byte null bitset plus two 8-byte slots."""
    return UnsafeRow(2, struct.pack(">3q", 0, key, value))


def main() -> None:
    """Run the basic usage example."""
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("rowblock Basic Usage Example")
    print("=" * 60)

    rows = [make_row(i, 100 * i) for i in range(1000)]

    worker = SizeLimitingRowConverter(CodecConfig(codec="zstd"))
    block = worker.encode_rows(rows)
    raw = sum(row.size_in_bytes for row in rows)
    print(f"\nEncoded {block.count} rows: {bytes_to_string(raw)} -> {bytes_to_string(len(block.data))}")

    decoded = list(worker.decode_rows(2, block.data))
    print(f"Decoded {len(decoded)} rows, round-trip ok: {decoded == rows}")

    coordinator = SizeLimitingRowConverter(CodecConfig(codec="zstd", max_collect_size="8k"))
    kept = []
    try:
        for row in coordinator.decode_rows(2, block.data):
            kept.append(row)
    except SizeLimitExceededError as e:
        print(f"\nCoordinator stopped after {len(kept)} rows: {e}")


if __name__ == "__main__":
    main()
