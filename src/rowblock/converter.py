"""Configuration-bound converter between rows and compressed blocks."""

from __future__ import annotations

from typing import Iterable

from .compression import create_codec
from .config import CodecConfig
from .framing import EncodedBlock, RowIterator, decode_rows, encode_rows
from .row import RowLike


class SizeLimitingRowConverter:
    """Encode and decode row blocks with a configured codec and size limit.

    The converter holds configuration only. Every encode_rows() and
    decode_rows() call gets its own SizeGuard, so totals never carry over
    from one call to the next.

    Attributes:
        config: Codec configuration
        codec: Compression codec created from the configuration

    Examples:
        ```python
        from rowblock import CodecConfig, SizeLimitingRowConverter, UnsafeRow

        converter = SizeLimitingRowConverter(CodecConfig(max_collect_size="1m"))
        block = converter.encode_rows(rows)
        for row in converter.decode_rows(num_fields=3, data=block.data):
            ...
        ```
    """

    def __init__(self, config: CodecConfig | None = None) -> None:
        self.config = config if config is not None else CodecConfig()
        self.codec = create_codec(config=self.config)

    @property
    def max_collect_size(self) -> int | None:
        return self.config.max_collect_size

    def encode_rows(self, rows: Iterable[RowLike], limit: int = -1) -> EncodedBlock:
        """Pack up to ``limit`` rows (all if negative) into one compressed block."""
        return encode_rows(rows, limit, codec=self.codec, max_bytes=self.max_collect_size)

    def decode_rows(self, num_fields: int, data: bytes) -> RowIterator:
        """Lazily unpack a block produced by encode_rows()."""
        return decode_rows(num_fields, data, codec=self.codec, max_bytes=self.max_collect_size)
