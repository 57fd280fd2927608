"""Pluggable stream compression codecs.

Each codec wraps a raw output stream with a compressing writer and a raw input
stream with a decompressing reader. Library-specific failures are translated
into rowblock exceptions at the stream boundary so callers only ever see
CompressionError or MalformedStreamError.

Design Pattern: Strategy Pattern
- CompressionCodec: Abstract interface (algorithm-agnostic)
- Lz4Codec, ZstdCodec, GzipCodec: Concrete algorithms selected by name
"""

from __future__ import annotations

import gzip
import zlib
from abc import ABC, abstractmethod
from typing import BinaryIO, Callable, ClassVar

import lz4.frame
import zstandard as zstd

from ..config import CodecConfig
from ..exceptions import CompressionError, ConfigError, MalformedStreamError


class CompressionCodec(ABC):
    """Abstract interface for byte-stream compression algorithms.

    Streams returned by this interface never close the raw stream they wrap;
    closing them only finalizes (or discards) the compression state.

    Examples:
        ```python
        import io
        from rowblock.compression import create_codec

        codec = create_codec("lz4")
        sink = io.BytesIO()
        with codec.compressed_output_stream(sink) as out:
            out.write(b"hello")

        with codec.compressed_input_stream(io.BytesIO(sink.getvalue())) as src:
            assert src.read(5) == b"hello"
        ```
    """

    name: ClassVar[str]
    library_errors: ClassVar[tuple[type[Exception], ...]] = ()

    @abstractmethod
    def _open_writer(self, out: BinaryIO) -> BinaryIO:
        """Return a library stream that compresses into ``out``."""
        pass

    @abstractmethod
    def _open_reader(self, src: BinaryIO) -> BinaryIO:
        """Return a library stream that decompresses from ``src``."""
        pass

    def compressed_output_stream(self, out: BinaryIO) -> CompressingStream:
        """Wrap ``out`` so everything written is compressed before reaching it.

        Raises:
            CompressionError: If the compressor cannot be created
        """
        try:
            writer = self._open_writer(out)
        except self.library_errors as e:
            raise CompressionError(f"Could not create {self.name} compressor: {e}") from e
        return CompressingStream(writer, self)

    def compressed_input_stream(self, src: BinaryIO) -> DecompressingStream:
        """Wrap ``src`` so reads return decompressed bytes.

        Raises:
            CompressionError: If the decompressor cannot be created
        """
        try:
            reader = self._open_reader(src)
        except self.library_errors as e:
            raise CompressionError(f"Could not create {self.name} decompressor: {e}") from e
        return DecompressingStream(reader, self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CompressingStream:
    """Write-only stream that forwards to a library compressor.

    ``close()`` finalizes the compression trailer exactly once.
    ``bytes_written`` counts uncompressed bytes accepted so far.
    """

    def __init__(self, writer: BinaryIO, codec: CompressionCodec) -> None:
        self._writer = writer
        self._codec = codec
        self.closed = False
        self.bytes_written = 0

    def write(self, data: bytes | bytearray | memoryview) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed compressed stream")
        try:
            self._writer.write(data)
        except self._codec.library_errors as e:
            raise CompressionError(f"{self._codec.name} compression failed: {e}") from e
        size = memoryview(data).nbytes
        self.bytes_written += size
        return size

    def flush(self) -> None:
        if self.closed:
            return
        try:
            self._writer.flush()
        except self._codec.library_errors as e:
            raise CompressionError(f"{self._codec.name} flush failed: {e}") from e

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._writer.close()
        except self._codec.library_errors as e:
            raise CompressionError(f"{self._codec.name} compression failed: {e}") from e

    def __enter__(self) -> CompressingStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class DecompressingStream:
    """Read-only stream that pulls decompressed bytes from a library reader.

    ``read(size)`` may return fewer than ``size`` bytes; an empty result means
    the compressed stream is exhausted.
    """

    def __init__(self, reader: BinaryIO, codec: CompressionCodec) -> None:
        self._reader = reader
        self._codec = codec
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        if self.closed:
            raise ValueError("I/O operation on closed decompressed stream")
        try:
            return self._reader.read(size)
        except EOFError as e:
            raise MalformedStreamError(
                f"{self._codec.name} stream ended before the end-of-stream marker"
            ) from e
        except self._codec.library_errors as e:
            raise CompressionError(f"{self._codec.name} decompression failed: {e}") from e

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._reader.close()
        except self._codec.library_errors as e:
            raise CompressionError(f"{self._codec.name} decompression failed: {e}") from e

    def __enter__(self) -> DecompressingStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Lz4Codec(CompressionCodec):
    """LZ4 frame format via ``lz4.frame``."""

    name = "lz4"
    library_errors = (RuntimeError,)

    def __init__(self, compression_level: int = 0) -> None:
        self.compression_level = compression_level

    def _open_writer(self, out: BinaryIO) -> BinaryIO:
        return lz4.frame.LZ4FrameFile(out, mode="wb", compression_level=self.compression_level)

    def _open_reader(self, src: BinaryIO) -> BinaryIO:
        return lz4.frame.LZ4FrameFile(src, mode="rb")

    def __repr__(self) -> str:
        return f"Lz4Codec(compression_level={self.compression_level})"


class ZstdCodec(CompressionCodec):
    """Zstandard frames via ``zstandard`` stream readers and writers."""

    name = "zstd"
    library_errors = (zstd.ZstdError,)

    def __init__(self, level: int = 1) -> None:
        self.level = level

    def _open_writer(self, out: BinaryIO) -> BinaryIO:
        return zstd.ZstdCompressor(level=self.level).stream_writer(out, closefd=False)

    def _open_reader(self, src: BinaryIO) -> BinaryIO:
        return zstd.ZstdDecompressor().stream_reader(src, closefd=False)

    def __repr__(self) -> str:
        return f"ZstdCodec(level={self.level})"


class GzipCodec(CompressionCodec):
    """gzip/DEFLATE via the standard library (no native dependency)."""

    name = "gzip"
    library_errors = (OSError, zlib.error)

    def __init__(self, level: int = 6) -> None:
        if not 0 <= level <= 9:
            raise ValueError(f"gzip level must be 0..9, got {level}")
        self.level = level

    def _open_writer(self, out: BinaryIO) -> BinaryIO:
        return gzip.GzipFile(fileobj=out, mode="wb", compresslevel=self.level, mtime=0)

    def _open_reader(self, src: BinaryIO) -> BinaryIO:
        return gzip.GzipFile(fileobj=src, mode="rb")

    def __repr__(self) -> str:
        return f"GzipCodec(level={self.level})"


_CODEC_FACTORIES: dict[str, Callable[[CodecConfig], CompressionCodec]] = {
    "lz4": lambda config: Lz4Codec(compression_level=config.lz4_compression_level),
    "zstd": lambda config: ZstdCodec(level=config.zstd_level),
    "gzip": lambda config: GzipCodec(level=config.gzip_level),
}


def available_codecs() -> list[str]:
    """Return the short names accepted by create_codec()."""
    return sorted(_CODEC_FACTORIES)


def create_codec(name: str | None = None, config: CodecConfig | None = None) -> CompressionCodec:
    """Create a compression codec by short name.

    Args:
        name: Codec short name ("lz4", "zstd", "gzip"). Defaults to config.codec.
        config: Codec configuration supplying compression levels (default: CodecConfig())

    Returns:
        New codec instance

    Raises:
        ConfigError: If the codec name is unknown

    Example:
        >>> create_codec("zstd")
        ZstdCodec(level=1)
    """
    if config is None:
        config = CodecConfig()
    if name is None:
        name = config.codec

    factory = _CODEC_FACTORIES.get(name.lower())
    if factory is None:
        raise ConfigError(
            f"Unknown compression codec: {name!r}. Must be one of {', '.join(available_codecs())}"
        )
    return factory(config)
