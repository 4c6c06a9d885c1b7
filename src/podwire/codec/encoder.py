"""Binary encoder for podwire types.

This module provides the encode() and encode_to() functions that write a
Record or TaggedUnion value in its plain-old-data layout.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Optional

from .registry import CodecRegistry, default_registry
from .stream import ByteWriter


def encode(
    value: Any, *, context: Any = None, registry: Optional[CodecRegistry] = None
) -> bytes:
    """Encode a value to bytes.

    Fields are written in declaration order, each primitive in the byte order
    configured for it, without padding.

    Args:
        value: Record or tagged-union variant instance to encode
        context: Context handed to the value's codec
        registry: Registry compiling the value's type (default_registry if None)

    Returns:
        Encoded bytes

    Raises:
        SchemaError: If the value's type is malformed
        EncodeError: If a field value cannot be represented

    Examples:
        ```python
        from podwire import Record, U16, U32, encode

        class Point(Record):
            pod_directives = {"endianness": "big"}

            x: U16
            y: U32

        encode(Point(x=1, y=2))  # b"\\x00\\x01\\x00\\x00\\x00\\x02"
        ```
    """
    writer = ByteWriter()
    _encode(value, writer, context, registry)
    return writer.getvalue()


def encode_to(
    value: Any,
    sink: BinaryIO,
    *,
    context: Any = None,
    registry: Optional[CodecRegistry] = None,
) -> int:
    """Encode a value into a binary file object.

    On failure the sink may already hold part of the value.

    Args:
        value: Record or tagged-union variant instance to encode
        sink: Object with a ``write(bytes)`` method
        context: Context handed to the value's codec
        registry: Registry compiling the value's type (default_registry if None)

    Returns:
        Number of bytes written

    Raises:
        SchemaError: If the value's type is malformed
        EncodeError: If a field value cannot be represented
        StreamError: If the sink fails
    """
    writer = ByteWriter(sink)
    _encode(value, writer, context, registry)
    return writer.position


def _encode(
    value: Any, writer: ByteWriter, context: Any, registry: Optional[CodecRegistry]
) -> None:
    registry = registry if registry is not None else default_registry
    codec = registry.codec_for(type(value))
    codec.encode(value, writer, context)
