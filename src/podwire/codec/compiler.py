"""Field codec compiler.

Turns a field's type shape and resolved configuration into a Codec. Leaf
scalars go straight to the primitive layer; sequences, arrays and tuples are
compiled recursively; nested named types and registered custom types are
delegated to their own codecs, bridged to the context currently in scope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Sequence

from ..exceptions import EncodeError, FormatError, SchemaError
from .base import Codec
from .config import PodConfig
from .context import ContextBridge, is_identity
from .primitives import Endianness, PrimitiveType, read_primitive, write_primitive
from .schema import (
    ArrayShape,
    CustomShape,
    NamedShape,
    OptionalShape,
    PrimitiveShape,
    SequenceShape,
    Shape,
    TupleShape,
    UnitShape,
)
from .stream import ByteReader, ByteWriter

if TYPE_CHECKING:
    from .registry import CodecRegistry


class PrimitiveCodec(Codec):
    """Fixed-width scalar in a configured byte order."""

    def __init__(self, ptype: PrimitiveType, endianness: Endianness) -> None:
        self.ptype = ptype
        self.endianness = endianness

    def size(self, value: Any) -> int:
        return self.ptype.width

    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        return read_primitive(reader, self.ptype, self.endianness)

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        write_primitive(writer, value, self.ptype, self.endianness)


class RetainedTagCodec(PrimitiveCodec):
    """First field of a keep_tag variant: the discriminant, shifted by keep_diff.

    Inside a union the value is taken from the discriminant the union already read;
    on its own the field reads like a normal primitive.
    """

    def __init__(self, ptype: PrimitiveType, endianness: Endianness, keep_diff: int) -> None:
        super().__init__(ptype, endianness)
        self.keep_diff = keep_diff

    def from_discriminant(self, discriminant: Any) -> Any:
        if self.ptype.kind == "bool":
            return bool(discriminant)
        return discriminant - self.keep_diff

    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        return self.from_discriminant(super().decode(reader, context))

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        if self.keep_diff:
            value = value + self.keep_diff
        super().encode(value, writer, context)


class SkipCodec(Codec):
    """Field absent from the wire: size 0, decodes to a default."""

    def __init__(self, default: Callable[[], Any]) -> None:
        self._default = default

    def size(self, value: Any) -> int:
        return 0

    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        return self._default()

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        return None


class MagicCodec(Codec):
    """Writes a constant before the wrapped codec and validates it on decode."""

    def __init__(
        self, inner: Codec, ptype: PrimitiveType, value: Any, endianness: Endianness
    ) -> None:
        self.inner = inner
        self.ptype = ptype
        self.value = value
        self.endianness = endianness

    @property
    def context_type(self) -> type:  # type: ignore[override]
        return self.inner.context_type

    def size(self, value: Any) -> int:
        return self.ptype.width + self.inner.size(value)

    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        check_magic(reader, self.ptype, self.value, self.endianness)
        return self.inner.decode(reader, context)

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        write_primitive(writer, self.value, self.ptype, self.endianness)
        self.inner.encode(value, writer, context)


def check_magic(
    reader: ByteReader, ptype: PrimitiveType, expected: Any, endianness: Endianness
) -> None:
    """Read a magic value and compare it to the expected constant.

    Raises:
        FormatError: On mismatch, with expected and observed values
    """
    observed = read_primitive(reader, ptype, endianness)
    if observed != expected:
        raise FormatError(
            f"Magic value {_hex(expected)} expected, found {_hex(observed)}",
            expected=expected,
            observed=observed,
        )


def _hex(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return hex(value)
    return repr(value)


class _LengthPrefix:
    """Reads and writes sequence length prefixes."""

    def __init__(self, size_type: PrimitiveType, endianness: Endianness, size_is_next: bool):
        self.size_type = size_type
        self.endianness = endianness
        self.size_is_next = size_is_next

    @property
    def width(self) -> int:
        return self.size_type.width

    def read(self, reader: ByteReader) -> int:
        stored = read_primitive(reader, self.size_type, self.endianness)
        length = stored - 1 if self.size_is_next else stored
        if length < 0:
            raise FormatError(f"Invalid length prefix {stored}", observed=stored)
        return length

    def write(self, writer: ByteWriter, length: int) -> None:
        stored = length + 1 if self.size_is_next else length
        if not self.size_type.contains(stored):
            raise EncodeError(f"Length prefix {stored} does not fit {self.size_type}")
        write_primitive(writer, stored, self.size_type, self.endianness)


class SequenceCodec(Codec):
    """Length-prefixed sequence, framed by item count or by byte count."""

    def __init__(self, item: Codec, prefix: _LengthPrefix, byte_sized: bool) -> None:
        self.item = item
        self.prefix = prefix
        self.byte_sized = byte_sized

    def size(self, value: Any) -> int:
        return self.prefix.width + sum(self.item.size(v) for v in value)

    def decode(self, reader: ByteReader, context: Any = None) -> list[Any]:
        length = self.prefix.read(reader)
        if not self.byte_sized:
            return [self.item.decode(reader, context) for _ in range(length)]

        items = []
        remaining = length
        while remaining > 0:
            item = self.item.decode(reader, context)
            item_size = self.item.size(item)
            if item_size == 0 or item_size > remaining:
                raise FormatError(
                    f"Sequence item of {item_size} bytes does not fit the "
                    f"{remaining} bytes left of a {length}-byte sequence",
                    expected=remaining,
                    observed=item_size,
                )
            remaining -= item_size
            items.append(item)
        return items

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        if self.byte_sized:
            length = sum(self.item.size(v) for v in value)
        else:
            length = len(value)
        self.prefix.write(writer, length)
        for item in value:
            self.item.encode(item, writer, context)


class ByteSequenceCodec(Codec):
    """Length-prefixed run of raw bytes, read and written in one piece."""

    def __init__(self, prefix: _LengthPrefix, as_bytes: bool) -> None:
        self.prefix = prefix
        self.as_bytes = as_bytes

    def size(self, value: Any) -> int:
        return self.prefix.width + len(value)

    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        data = reader.read(self.prefix.read(reader))
        return data if self.as_bytes else list(data)

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        data = _to_bytes(value)
        self.prefix.write(writer, len(data))
        writer.write(data)


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    try:
        return bytes(value)
    except (TypeError, ValueError) as err:
        raise EncodeError(f"Cannot encode {value!r} as bytes: {err}") from err


class ArrayCodec(Codec):
    """Exactly ``length`` items, no prefix."""

    def __init__(self, item: Codec, length: int) -> None:
        self.item = item
        self.length = length

    def size(self, value: Any) -> int:
        return sum(self.item.size(v) for v in value)

    def decode(self, reader: ByteReader, context: Any = None) -> list[Any]:
        return [self.item.decode(reader, context) for _ in range(self.length)]

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        if len(value) != self.length:
            raise EncodeError(f"Expected {self.length} items, got {len(value)} items")
        for item in value:
            self.item.encode(item, writer, context)


class ByteArrayCodec(Codec):
    """Exactly ``length`` raw bytes, no prefix."""

    def __init__(self, length: int, as_bytes: bool) -> None:
        self.length = length
        self.as_bytes = as_bytes

    def size(self, value: Any) -> int:
        return self.length

    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        data = reader.read(self.length)
        return data if self.as_bytes else list(data)

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        data = _to_bytes(value)
        if len(data) != self.length:
            raise EncodeError(f"Expected {self.length} bytes, got {len(data)} bytes")
        writer.write(data)


class TupleCodec(Codec):
    """Fixed tuple: components in order."""

    def __init__(self, items: Sequence[Codec]) -> None:
        self.items = tuple(items)

    def size(self, value: Any) -> int:
        return sum(codec.size(v) for codec, v in zip(self.items, value))

    def decode(self, reader: ByteReader, context: Any = None) -> tuple[Any, ...]:
        return tuple(codec.decode(reader, context) for codec in self.items)

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        if len(value) != len(self.items):
            raise EncodeError(f"Expected a {len(self.items)}-tuple, got {len(value)} items")
        for codec, item in zip(self.items, value):
            codec.encode(item, writer, context)


def _is_byte(shape: Shape) -> bool:
    return isinstance(shape, PrimitiveShape) and shape.ptype.name == "u8"


def compile_field(
    shape: Shape,
    config: PodConfig,
    registry: CodecRegistry,
    context_type: type,
    where: str,
) -> Codec:
    """Compile the codec of one field.

    Args:
        shape: Type shape of the field
        config: Resolved field configuration
        registry: Registry resolving nested and custom types
        context_type: Type of the context in scope at this field
        where: Field description for error messages

    Returns:
        The field codec, wrapped with its magic marker if configured

    Raises:
        SchemaError: If the field cannot be compiled
    """
    if config.skip:
        raise SchemaError(f"{where}: skipped fields are compiled by the record assembler")

    codec = _compile_shape(shape, config, registry, context_type, where)
    if config.magic is not None:
        ptype, value = config.magic
        codec = MagicCodec(codec, ptype, value, config.endianness)
    return codec


def _compile_shape(
    shape: Shape,
    config: PodConfig,
    registry: CodecRegistry,
    context_type: type,
    where: str,
) -> Codec:
    if isinstance(shape, PrimitiveShape):
        return PrimitiveCodec(shape.ptype, config.endianness)

    if isinstance(shape, (UnitShape, OptionalShape)):
        return SkipCodec(lambda: None)

    if isinstance(shape, SequenceShape):
        if config.size_type is None:
            raise SchemaError(f"{where}: size_type directive is mandatory for {shape}")
        prefix = _LengthPrefix(config.size_type, config.endianness, config.size_is_next)
        if _is_byte(shape.item):
            return ByteSequenceCodec(prefix, shape.as_bytes)
        item = _compile_shape(shape.item, config.derive(), registry, context_type, where)
        return SequenceCodec(item, prefix, config.byte_sized)

    if isinstance(shape, ArrayShape):
        if _is_byte(shape.item):
            return ByteArrayCodec(shape.length, shape.as_bytes)
        item = _compile_shape(shape.item, config.derive(), registry, context_type, where)
        return ArrayCodec(item, shape.length)

    if isinstance(shape, TupleShape):
        item_config = config.derive()
        return TupleCodec(
            [
                _compile_shape(item, item_config, registry, context_type, where)
                for item in shape.items
            ]
        )

    if isinstance(shape, NamedShape):
        return _bridge(registry.codec_for(shape.model), registry, context_type, where)

    if isinstance(shape, CustomShape):
        return _bridge(registry.custom_codec(shape.custom_type), registry, context_type, where)

    raise SchemaError(f"{where}: unsupported shape {shape}")


def _bridge(codec: Codec, registry: CodecRegistry, context_type: type, where: str) -> Codec:
    try:
        conversion = registry.context_converter(context_type, codec.context_type)
    except SchemaError as err:
        raise SchemaError(f"{where}: {err}") from err
    if is_identity(conversion):
        return codec
    return ContextBridge(codec, conversion)
