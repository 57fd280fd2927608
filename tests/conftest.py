"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Callable

import pytest

from rowblock import UnsafeRow

RowFactory = Callable[..., list[UnsafeRow]]


def make_rows(*sizes: int, num_fields: int = 1) -> list[UnsafeRow]:
    """Build rows with the given sizes and distinct, recognizable payloads."""
    return [
        UnsafeRow(num_fields, bytes((index + offset) % 256 for offset in range(size)))
        for index, size in enumerate(sizes)
    ]


@pytest.fixture
def rows_factory() -> RowFactory:
    """Factory building rows of the given byte sizes."""
    return make_rows


@pytest.fixture
def sample_rows() -> list[UnsafeRow]:
    """Three 10-byte rows."""
    return make_rows(10, 10, 10)


@pytest.fixture(params=["lz4", "zstd", "gzip"])
def codec_name(request: pytest.FixtureRequest) -> str:
    """Every built-in compression codec."""
    return request.param
