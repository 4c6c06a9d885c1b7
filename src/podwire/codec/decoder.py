"""Binary decoder for podwire types.

This module provides the decode() and decode_from() functions that read a
Record or TaggedUnion value back from its plain-old-data layout.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Optional, TypeVar

from ..exceptions import DecodeError
from .registry import CodecRegistry, default_registry
from .stream import ByteReader

T = TypeVar("T")


def decode(
    cls: type[T],
    data: bytes,
    *,
    context: Any = None,
    registry: Optional[CodecRegistry] = None,
) -> T:
    """Decode a value of type cls from the start of data.

    Bytes after the value are left unread.

    Args:
        cls: Record, tagged-union root or variant class to decode
        data: Binary data to decode
        context: Context handed to the type's codec
        registry: Registry compiling cls (default_registry if None)

    Returns:
        Decoded value. For a union root this is an instance of one of its variants.

    Raises:
        SchemaError: If cls is malformed
        StreamError: If data is truncated
        FormatError: If data violates the layout (magic, discriminant, framing)
        DecodeError: If the decoded values are rejected, or data holds a
            different variant than the one requested

    Examples:
        ```python
        from podwire import decode

        point = decode(Point, b"\\x00\\x01\\x00\\x00\\x00\\x02")
        shape = decode(Shape, data)  # Circle(...) or Square(...)
        ```
    """
    return _decode(cls, ByteReader(data), context, registry)


def decode_from(
    cls: type[T],
    source: BinaryIO,
    *,
    context: Any = None,
    registry: Optional[CodecRegistry] = None,
) -> T:
    """Decode a value of type cls from a binary file object.

    Exactly the bytes of one value are consumed, so consecutive calls read
    consecutive values.

    Args:
        cls: Record, tagged-union root or variant class to decode
        source: Object with a ``read(n)`` method
        context: Context handed to the type's codec
        registry: Registry compiling cls (default_registry if None)

    Returns:
        Decoded value

    Raises:
        SchemaError: If cls is malformed
        StreamError: If the source runs out of data or fails
        DecodeError: If the data does not describe a valid value
    """
    return _decode(cls, ByteReader(source), context, registry)


def _decode(
    cls: type[T], reader: ByteReader, context: Any, registry: Optional[CodecRegistry]
) -> T:
    registry = registry if registry is not None else default_registry
    codec = registry.codec_for(cls)
    value = codec.decode(reader, context)
    if not isinstance(value, cls):
        raise DecodeError(f"Expected {cls.__name__}, decoded {type(value).__name__}")
    return value
