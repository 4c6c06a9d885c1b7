"""Abstract codec interface.

Every type podwire knows how to put on the wire is handled by a Codec: the
compiled codecs of records and tagged unions, the per-field codecs they are
assembled from, and hand-written codecs registered for custom leaf types.

Design Pattern: Strategy Pattern
- Codec: the (size, decode, encode) triple of one type
- RecordCodec / UnionCodec: compiled from a schema
- User codecs: registered with CodecRegistry.register()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .stream import ByteReader, ByteWriter


class Codec(ABC):
    """The (size, decode, encode) triple of one type.

    Attributes:
        context_type: Type of the context value this codec expects. The unit
            context (NoneType) means the codec ignores its context.

    Examples:
        ```python
        from podwire import Codec, default_registry
        from podwire.codec.primitives import PRIMITIVES, Endianness, read_primitive, write_primitive

        class Celsius(float):
            pass

        class CentiCelsiusCodec(Codec):
            '''Celsius stored as i16 hundredths of a degree.'''

            def size(self, value):
                return 2

            def decode(self, reader, context=None):
                raw = read_primitive(reader, PRIMITIVES["i16"], Endianness.BIG)
                return Celsius(raw / 100)

            def encode(self, value, writer, context=None):
                write_primitive(writer, round(value * 100), PRIMITIVES["i16"], Endianness.BIG)

        default_registry.register(Celsius, CentiCelsiusCodec())
        ```
    """

    context_type: type = type(None)

    @abstractmethod
    def size(self, value: Any) -> int:
        """Return the number of bytes encode() writes for value."""

    @abstractmethod
    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        """Read one value from reader.

        Raises:
            StreamError: If the source runs out of data
            DecodeError: If the data does not describe a valid value
        """

    @abstractmethod
    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        """Write value to writer.

        Raises:
            StreamError: If the sink fails
            EncodeError: If value cannot be represented
        """
