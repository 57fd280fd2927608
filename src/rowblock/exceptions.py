"""Exception hierarchy for rowblock.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from RowBlockError for easy catching of any rowblock-specific error.
"""

from __future__ import annotations


class RowBlockError(Exception):
    """Base exception for all rowblock errors."""

    pass


class ConfigError(RowBlockError):
    """Raised when codec configuration is invalid.

    Examples:
        - Unknown compression codec name
        - Malformed size string (e.g. "12xb")
        - Compression level out of range
    """

    pass


class SizeLimitExceededError(RowBlockError):
    """Raised when the cumulative uncompressed row size exceeds the configured limit.

    Attributes:
        total_bytes: Cumulative size observed, including the row that triggered the error
        max_bytes: Configured ceiling
        rows_written: Rows fully written before the trigger (encode only, else None)
    """

    def __init__(
        self,
        message: str,
        *,
        total_bytes: int,
        max_bytes: int,
        rows_written: int | None = None,
    ) -> None:
        super().__init__(message)
        self.total_bytes = total_bytes
        self.max_bytes = max_bytes
        self.rows_written = rows_written


class MalformedStreamError(RowBlockError):
    """Raised when a decoded frame stream violates the wire format.

    Examples:
        - Negative length other than the -1 sentinel
        - Truncated length or payload
        - Stream ends before the sentinel
        - Compressed stream ends before its end-of-frame marker
    """

    pass


class CompressionError(RowBlockError):
    """Raised when the compression library rejects input or fails to produce output."""

    pass
