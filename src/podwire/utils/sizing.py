"""Message size calculation utilities.

This module provides functions to calculate the encoded size of values
without actually encoding them.
"""

from __future__ import annotations

from typing import Any, Optional

from ..codec.record import RecordCodec
from ..codec.registry import CodecRegistry, default_registry
from ..codec.union import UnionCodec
from ..exceptions import SchemaError


def encoded_size(value: Any, registry: Optional[CodecRegistry] = None) -> int:
    """Calculate the encoded size of a value in bytes.

    Sequences make the size depend on the value, so unlike a fixed layout this
    takes an instance rather than a class.

    Args:
        value: Record or tagged-union variant instance
        registry: Registry compiling the value's type (default_registry if None)

    Returns:
        Number of bytes encode() produces for value

    Raises:
        SchemaError: If the value's type is malformed

    Example:
        >>> class Status(Record):
        ...     vehicle_id: U8
        ...     readings: list[U16] = PodField(size_type="u8")
        >>> encoded_size(Status(vehicle_id=42, readings=[1, 2, 3]))
        8
    """
    registry = registry if registry is not None else default_registry
    return registry.codec_for(type(value)).size(value)


def field_sizes(value: Any, registry: Optional[CodecRegistry] = None) -> dict[str, int]:
    """Get the encoded size in bytes of each field of a value.

    Magic markers and the union discriminant are not counted.

    Args:
        value: Record or tagged-union variant instance
        registry: Registry compiling the value's type (default_registry if None)

    Returns:
        Dictionary mapping field names to their size in bytes

    Raises:
        SchemaError: If the value's type is malformed or handled by a custom codec

    Example:
        >>> field_sizes(Status(vehicle_id=42, readings=[1, 2, 3]))
        {'vehicle_id': 1, 'readings': 7}
    """
    registry = registry if registry is not None else default_registry
    codec = registry.codec_for(type(value))
    if not isinstance(codec, (RecordCodec, UnionCodec)):
        raise SchemaError(f"{type(value).__name__} is encoded by a custom codec without fields")
    return codec.field_sizes(value)
