"""Cumulative size accounting for a single encode or decode call.

A SizeGuard is created fresh by every encode and decode call and is never
shared between calls. It sums the uncompressed size of each row it is told
about and fails as soon as the optional ceiling is exceeded.
"""

from __future__ import annotations

import logging

from .exceptions import SizeLimitExceededError
from .utils.sizing import bytes_to_string

logger = logging.getLogger(__name__)


class SizeGuard:
    """Running total of uncompressed row bytes with an optional ceiling.

    Attributes:
        max_bytes: Ceiling in bytes, or None for unlimited (advisory counting only)
        total_bytes_seen: Sum of every size accounted so far

    Example:
        >>> guard = SizeGuard(max_bytes=25)
        >>> guard.account(10)
        >>> guard.account(10)
        >>> guard.total_bytes_seen
        20
        >>> guard.account(10)
        Traceback (most recent call last):
        ...
        rowblock.exceptions.SizeLimitExceededError: Total size of uncompressed results ...
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        if max_bytes is not None and max_bytes < 0:
            raise ValueError(f"max_bytes must be >= 0, got {max_bytes}")
        self.max_bytes = max_bytes
        self.total_bytes_seen = 0

    @property
    def exceeded(self) -> bool:
        """True once the ceiling has been crossed; the guard should not be reused."""
        return self.max_bytes is not None and self.total_bytes_seen > self.max_bytes

    def account(self, size: int) -> None:
        """Add ``size`` bytes to the running total and enforce the ceiling.

        The total is updated before the comparison, so the raised error reports
        the post-addition total.

        Args:
            size: Uncompressed size of the next row in bytes

        Raises:
            ValueError: If size is negative
            SizeLimitExceededError: If the new total exceeds max_bytes
        """
        if size < 0:
            raise ValueError(f"Row size must be >= 0, got {size}")

        self.total_bytes_seen += size

        max_bytes = self.max_bytes
        if max_bytes is not None and self.total_bytes_seen > max_bytes:
            msg = (
                f"Total size of uncompressed results "
                f"({bytes_to_string(self.total_bytes_seen)}) is bigger than the limit "
                f"({bytes_to_string(max_bytes)}). Please reduce the amount of data "
                f"or check the rowblock.driver.maxCollectSize configuration"
            )
            logger.error(msg)
            raise SizeLimitExceededError(msg, total_bytes=self.total_bytes_seen, max_bytes=max_bytes)

    def __repr__(self) -> str:
        return f"SizeGuard(max_bytes={self.max_bytes}, total_bytes_seen={self.total_bytes_seen})"
