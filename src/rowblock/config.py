"""Codec configuration.

CodecConfig is a Pydantic model holding the compression codec name, the
optional cumulative size ceiling, and per-codec compression levels. It can be
built directly or from a flat mapping of string properties.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigError
from .utils.sizing import byte_string_as_bytes

CodecName = Literal["lz4", "zstd", "gzip"]


class CodecConfig(BaseModel):
    """Configuration for encoding and decoding row blocks.

    Attributes:
        codec: Compression codec short name (default "lz4")
        max_collect_size: Ceiling on cumulative uncompressed row bytes per call,
            or None for unlimited. Accepts an int or a size string like "1g".
        zstd_level: zstd compression level (1-22)
        lz4_compression_level: lz4 frame compression level (0-16, 0 = fast mode)
        gzip_level: gzip compression level (0-9)

    Example:
        >>> config = CodecConfig(codec="zstd", max_collect_size="512m")
        >>> config.max_collect_size
        536870912
    """

    model_config = ConfigDict(
        # Validate on assignment
        validate_assignment=True,
        # Forbid extra fields not defined in schema
        extra="forbid",
    )

    # Property keys understood by from_properties()
    PROPERTY_KEYS: ClassVar[dict[str, str]] = {
        "rowblock.io.compression.codec": "codec",
        "rowblock.driver.maxCollectSize": "max_collect_size",
        "rowblock.io.compression.zstd.level": "zstd_level",
        "rowblock.io.compression.lz4.level": "lz4_compression_level",
        "rowblock.io.compression.gzip.level": "gzip_level",
    }

    codec: CodecName = "lz4"
    max_collect_size: int | None = Field(default=None, ge=0)
    zstd_level: int = Field(default=1, ge=1, le=22)
    lz4_compression_level: int = Field(default=0, ge=0, le=16)
    gzip_level: int = Field(default=6, ge=0, le=9)

    @field_validator("codec", mode="before")
    @classmethod
    def _normalize_codec(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("max_collect_size", mode="before")
    @classmethod
    def _parse_size(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return byte_string_as_bytes(value)
            except ConfigError as e:
                raise ValueError(str(e)) from e
        return value

    @classmethod
    def from_properties(cls, properties: Mapping[str, str]) -> CodecConfig:
        """Build a config from string properties.

        Unrecognized keys are ignored so a full engine configuration can be
        passed in unchanged.

        Args:
            properties: Mapping of property key to string value

        Returns:
            Validated configuration

        Raises:
            ConfigError: If any recognized property has an invalid value

        Example:
            >>> CodecConfig.from_properties({
            ...     "rowblock.io.compression.codec": "gzip",
            ...     "rowblock.driver.maxCollectSize": "4m",
            ... }).max_collect_size
            4194304
        """
        values = {
            field: properties[key] for key, field in cls.PROPERTY_KEYS.items() if key in properties
        }
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid rowblock configuration: {e}") from e
