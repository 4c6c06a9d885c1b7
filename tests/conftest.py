"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import io

import pytest

from podwire import CodecRegistry, Endianness, PodConfig


@pytest.fixture
def registry() -> CodecRegistry:
    """Fresh registry, so custom codecs and conversions do not leak between tests."""
    return CodecRegistry()


@pytest.fixture
def big_endian_registry() -> CodecRegistry:
    """Registry whose root types default to big-endian."""
    return CodecRegistry(defaults=PodConfig(endianness=Endianness.BIG))


@pytest.fixture
def little_endian_registry() -> CodecRegistry:
    """Registry whose root types default to little-endian."""
    return CodecRegistry(defaults=PodConfig(endianness=Endianness.LITTLE))


@pytest.fixture
def sink() -> io.BytesIO:
    """In-memory binary file object."""
    return io.BytesIO()
