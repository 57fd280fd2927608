"""Human-readable byte size formatting and parsing.

These helpers are used for diagnostic messages (``bytes_to_string``) and for
reading size limits from string configuration (``byte_string_as_bytes``).
"""

from __future__ import annotations

import re

from ..exceptions import ConfigError

KiB = 1 << 10
MiB = 1 << 20
GiB = 1 << 30
TiB = 1 << 40
PiB = 1 << 50
EiB = 1 << 60

# Largest unit first; a unit is used once the size reaches twice its value
_UNITS: tuple[tuple[int, str], ...] = (
    (EiB, "EiB"),
    (PiB, "PiB"),
    (TiB, "TiB"),
    (GiB, "GiB"),
    (MiB, "MiB"),
    (KiB, "KiB"),
)

_SUFFIXES: dict[str, int] = {
    "b": 1,
    "k": KiB,
    "kb": KiB,
    "m": MiB,
    "mb": MiB,
    "g": GiB,
    "gb": GiB,
    "t": TiB,
    "tb": TiB,
    "p": PiB,
    "pb": PiB,
}

_SIZE_PATTERN = re.compile(r"([0-9]+)([a-z]+)?")
_FRACTION_PATTERN = re.compile(r"([0-9]+\.[0-9]+)([a-z]+)?")


def bytes_to_string(size: int) -> str:
    """Convert a byte count to a short human-readable string.

    Args:
        size: Number of bytes

    Returns:
        Formatted size with one decimal place and a binary unit

    Example:
        >>> bytes_to_string(20)
        '20.0 B'
        >>> bytes_to_string(4096)
        '4.0 KiB'
        >>> bytes_to_string(3 * 1024 * 1024)
        '3.0 MiB'
    """
    if size >= (1 << 11) * EiB:
        # Too large for any unit, fall back to scientific notation
        return f"{size:.2e} B"

    for unit_size, unit in _UNITS:
        if size >= 2 * unit_size:
            return f"{size / unit_size:.1f} {unit}"

    return f"{float(size):.1f} B"


def byte_string_as_bytes(text: str) -> int:
    """Parse a size string such as "512m" or "1g" into a number of bytes.

    A bare number is interpreted as bytes. Suffixes are case-insensitive and
    use binary multiples (k = 1024).

    Args:
        text: Size string to parse

    Returns:
        Size in bytes

    Raises:
        ConfigError: If the string is not a valid size

    Example:
        >>> byte_string_as_bytes("100k")
        102400
        >>> byte_string_as_bytes("42")
        42
    """
    lower = text.strip().lower()

    match = _SIZE_PATTERN.fullmatch(lower)
    if match is not None:
        value, suffix = match.groups()
        if suffix is not None and suffix not in _SUFFIXES:
            raise ConfigError(f"Invalid suffix: {suffix!r} in size string {text!r}")
        return int(value) * _SUFFIXES[suffix or "b"]

    if _FRACTION_PATTERN.fullmatch(lower) is not None:
        raise ConfigError(f"Fractional values are not supported in size string {text!r}")

    raise ConfigError(
        f"Size must be specified as bytes (b), kibibytes (k), mebibytes (m), "
        f"gibibytes (g), tebibytes (t), or pebibytes (p), got {text!r}"
    )
