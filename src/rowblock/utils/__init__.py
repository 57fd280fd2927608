"""Utility functions for rowblock.

This module provides human-readable size formatting and parsing.
"""

from __future__ import annotations

from .sizing import byte_string_as_bytes, bytes_to_string

__all__ = [
    "bytes_to_string",
    "byte_string_as_bytes",
]
