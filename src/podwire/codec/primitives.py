"""Fixed-width primitive encoding for booleans, integers and floats.

Every primitive has a fixed width on the wire and is written in one of three
byte orders. Integers up to 64 bits and floats go through ``struct``; 128-bit
integers go through ``int.to_bytes`` since ``struct`` has no format code for them.
"""

from __future__ import annotations

import enum
import struct
import sys
from dataclasses import dataclass
from typing import Any, Annotated, get_args, get_origin

from ..exceptions import EncodeError, SchemaError
from .stream import ByteReader, ByteWriter


class Endianness(enum.Enum):
    """Byte order used by primitive codecs."""

    BIG = "big"
    LITTLE = "little"
    NATIVE = "native"

    @property
    def struct_prefix(self) -> str:
        return {"big": ">", "little": "<", "native": "="}[self.value]

    @property
    def byteorder(self) -> str:
        """Byte order name accepted by int.to_bytes/from_bytes."""
        if self is Endianness.NATIVE:
            return sys.byteorder
        return self.value


@dataclass(frozen=True)
class PrimitiveType:
    """A fixed-width wire type.

    Attributes:
        name: Type name (u8, i16, f32, bool, ...)
        width: Encoded width in bytes
        kind: One of "bool", "uint", "int", "float"
        struct_code: struct format character, or "" for 128-bit integers
    """

    name: str
    width: int
    kind: str
    struct_code: str

    @property
    def python_type(self) -> type:
        return {"bool": bool, "uint": int, "int": int, "float": float}[self.kind]

    @property
    def is_integer(self) -> bool:
        return self.kind in ("uint", "int")

    @property
    def min_value(self) -> int | None:
        if self.kind == "uint":
            return 0
        if self.kind == "int":
            return -(1 << (self.width * 8 - 1))
        return None

    @property
    def max_value(self) -> int | None:
        if self.kind == "uint":
            return (1 << (self.width * 8)) - 1
        if self.kind == "int":
            return (1 << (self.width * 8 - 1)) - 1
        return None

    def contains(self, value: Any) -> bool:
        """Return True if value can be encoded as this type."""
        if self.kind == "bool":
            return isinstance(value, bool) or value in (0, 1)
        if self.kind == "float":
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if not isinstance(value, int) or isinstance(value, bool):
            return False
        return self.min_value <= value <= self.max_value  # type: ignore[operator]

    def __str__(self) -> str:
        return self.name


PRIMITIVES: dict[str, PrimitiveType] = {
    p.name: p
    for p in (
        PrimitiveType("bool", 1, "bool", "?"),
        PrimitiveType("u8", 1, "uint", "B"),
        PrimitiveType("u16", 2, "uint", "H"),
        PrimitiveType("u32", 4, "uint", "I"),
        PrimitiveType("u64", 8, "uint", "Q"),
        PrimitiveType("u128", 16, "uint", ""),
        PrimitiveType("i8", 1, "int", "b"),
        PrimitiveType("i16", 2, "int", "h"),
        PrimitiveType("i32", 4, "int", "i"),
        PrimitiveType("i64", 8, "int", "q"),
        PrimitiveType("i128", 16, "int", ""),
        PrimitiveType("f32", 4, "float", "f"),
        PrimitiveType("f64", 8, "float", "d"),
    )
}


def primitive_type(spec: Any) -> PrimitiveType:
    """Normalize a primitive type specification.

    Args:
        spec: A type name ("u16"), a PrimitiveType, an Annotated alias such as U16,
            or the builtins bool/float

    Returns:
        The matching PrimitiveType

    Raises:
        SchemaError: If spec does not name a primitive type
    """
    if isinstance(spec, PrimitiveType):
        return spec
    if isinstance(spec, str):
        try:
            return PRIMITIVES[spec]
        except KeyError:
            raise SchemaError(
                f"Unknown primitive type {spec!r}. Supported: {', '.join(PRIMITIVES)}"
            ) from None
    if spec is bool:
        return PRIMITIVES["bool"]
    if spec is float:
        return PRIMITIVES["f64"]
    if get_origin(spec) is Annotated:
        for meta in get_args(spec)[1:]:
            if isinstance(meta, PrimitiveType):
                return meta
    raise SchemaError(f"{spec!r} is not a primitive type")


def encode_primitive(value: Any, ptype: PrimitiveType, endianness: Endianness) -> bytes:
    """Encode a value to exactly ptype.width bytes.

    Raises:
        EncodeError: If value has the wrong type or is out of range
    """
    if not ptype.contains(value):
        if ptype.is_integer and isinstance(value, int) and not isinstance(value, bool):
            raise EncodeError(
                f"Value {value} out of range for {ptype} "
                f"[{ptype.min_value}, {ptype.max_value}]"
            )
        raise EncodeError(f"Cannot encode {type(value).__name__} {value!r} as {ptype}")

    if ptype.kind == "bool":
        return b"\x01" if value else b"\x00"
    if not ptype.struct_code:
        return int(value).to_bytes(
            ptype.width, endianness.byteorder, signed=ptype.kind == "int"
        )
    try:
        return struct.pack(endianness.struct_prefix + ptype.struct_code, value)
    except (struct.error, OverflowError) as err:
        raise EncodeError(f"Cannot encode {value!r} as {ptype}: {err}") from err


def decode_primitive(data: bytes, ptype: PrimitiveType, endianness: Endianness) -> Any:
    """Decode exactly ptype.width bytes to a value."""
    if len(data) != ptype.width:
        raise ValueError(f"{ptype} needs {ptype.width} bytes, got {len(data)}")

    if ptype.kind == "bool":
        return data[0] != 0
    if not ptype.struct_code:
        return int.from_bytes(data, endianness.byteorder, signed=ptype.kind == "int")
    return struct.unpack(endianness.struct_prefix + ptype.struct_code, data)[0]


def read_primitive(reader: ByteReader, ptype: PrimitiveType, endianness: Endianness) -> Any:
    """Read one primitive from a reader.

    Raises:
        StreamError: If fewer than ptype.width bytes are available
    """
    return decode_primitive(reader.read(ptype.width), ptype, endianness)


def write_primitive(
    writer: ByteWriter, value: Any, ptype: PrimitiveType, endianness: Endianness
) -> None:
    """Write one primitive to a writer."""
    writer.write(encode_primitive(value, ptype, endianness))
