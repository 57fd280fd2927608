"""rowblock: Size-Limited Compressed Row Blocks

A Python library for packing batches of fixed-format binary rows into a single
compressed block and lazily unpacking them again, while enforcing a ceiling on
the cumulative uncompressed size of the rows materialized by each call.

Key Features:
- Length-prefixed framing terminated by a -1 sentinel
- Pluggable stream compression (lz4, zstd, gzip)
- Per-call size accounting with fail-fast limit enforcement
- Lazy, forward-only decoding

Quick Start:
    >>> from rowblock import UnsafeRow, encode_rows, decode_rows
    >>>
    >>> rows = [UnsafeRow(2, bytes(24)), UnsafeRow(2, bytes(24))]
    >>> block = encode_rows(rows, max_bytes=1024)
    >>> block.count
    2
    >>> decoded = list(decode_rows(2, block.data, max_bytes=1024))
    >>> decoded == rows
    True
"""

from __future__ import annotations

from .compression import CompressionCodec, GzipCodec, Lz4Codec, ZstdCodec, create_codec
from .config import CodecConfig
from .converter import SizeLimitingRowConverter
from .exceptions import (
    CompressionError,
    ConfigError,
    MalformedStreamError,
    RowBlockError,
    SizeLimitExceededError,
)
from .framing import END_OF_BLOCK, EncodedBlock, RowIterator, decode_rows, encode_rows
from .guard import SizeGuard
from .row import RowLike, UnsafeRow
from .utils import byte_string_as_bytes, bytes_to_string

__version__ = "0.1.0"

__all__ = [
    # Core API
    "encode_rows",
    "decode_rows",
    "EncodedBlock",
    "RowIterator",
    "END_OF_BLOCK",
    "SizeLimitingRowConverter",
    # Rows
    "UnsafeRow",
    "RowLike",
    # Size accounting
    "SizeGuard",
    # Configuration
    "CodecConfig",
    # Compression
    "CompressionCodec",
    "Lz4Codec",
    "ZstdCodec",
    "GzipCodec",
    "create_codec",
    # Exceptions
    "RowBlockError",
    "ConfigError",
    "SizeLimitExceededError",
    "MalformedStreamError",
    "CompressionError",
    # Sizing
    "bytes_to_string",
    "byte_string_as_bytes",
    # Version
    "__version__",
]
