"""Compression adapters for rowblock.

This module provides the pluggable stream codecs used to compress framed rows.
"""

from __future__ import annotations

from .codecs import (
    CompressingStream,
    CompressionCodec,
    DecompressingStream,
    GzipCodec,
    Lz4Codec,
    ZstdCodec,
    available_codecs,
    create_codec,
)

__all__ = [
    "CompressionCodec",
    "CompressingStream",
    "DecompressingStream",
    "Lz4Codec",
    "ZstdCodec",
    "GzipCodec",
    "available_codecs",
    "create_codec",
]
