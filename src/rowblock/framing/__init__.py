"""Row block framing for rowblock.

This module provides the frame writer and the lazy frame reader.
"""

from __future__ import annotations

from .reader import RowIterator, decode_rows
from .writer import END_OF_BLOCK, EncodedBlock, encode_rows

__all__ = [
    "encode_rows",
    "decode_rows",
    "EncodedBlock",
    "RowIterator",
    "END_OF_BLOCK",
]
