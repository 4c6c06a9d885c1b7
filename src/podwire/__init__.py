"""podwire: declarative binary codecs for plain-old-data types

A Python library that reads and writes records and tagged unions in a compact,
unpadded binary layout. Types are declared as Pydantic models annotated with
directives (byte order, discriminants, magic values, length prefixes, ...);
podwire compiles each type into a codec once and reuses it for every call.

Key Features:
- Pydantic-based type modeling
- Tagged unions with literal, range and catch-all discriminants
- Per-node byte order, inherited through the type tree
- Length-prefixed sequences counted in items or bytes
- Magic values, skipped fields and variants, context-dependent custom codecs

Quick Start:
    >>> from podwire import Record, TaggedUnion, PodField, U8, U16, encode, decode
    >>>
    >>> class Reading(Record):
    ...     pod_directives = {"endianness": "big"}
    ...
    ...     sensor: U8
    ...     samples: list[U16] = PodField(size_type="u8")
    >>>
    >>> data = encode(Reading(sensor=3, samples=[1, 2]))
    >>> data
    b'\\x03\\x02\\x00\\x01\\x00\\x02'
    >>> decode(Reading, data)
    Reading(sensor=3, samples=[1, 2])
"""

from __future__ import annotations

# codec must be imported before models: models.fields uses codec.primitives
from .codec import (
    Codec,
    CodecRegistry,
    Endianness,
    PodConfig,
    TagRange,
    decode,
    decode_from,
    default_registry,
    encode,
    encode_to,
)
from .exceptions import (
    DecodeError,
    EncodeError,
    FormatError,
    PodwireError,
    SchemaError,
    StreamError,
    UnrepresentableError,
)
from .models import (
    F32,
    F64,
    I8,
    I16,
    I32,
    I64,
    I128,
    U8,
    U16,
    U32,
    U64,
    U128,
    Bool,
    FixedBytes,
    FixedList,
    PodField,
    Record,
    TaggedUnion,
)
from .utils import encoded_size, field_sizes

__version__ = "0.1.0"


def compile_codec(cls: type, registry: CodecRegistry | None = None) -> Codec:
    """Compile (or fetch) the codec of a type.

    Types are otherwise compiled on first encode/decode; calling this at import
    time surfaces schema errors early.

    Raises:
        SchemaError: If the type is malformed
    """
    registry = registry if registry is not None else default_registry
    return registry.codec_for(cls)


__all__ = [
    # Core API
    "Record",
    "TaggedUnion",
    "encode",
    "encode_to",
    "decode",
    "decode_from",
    "compile_codec",
    # Field helpers
    "PodField",
    "FixedBytes",
    "FixedList",
    "TagRange",
    # Primitive aliases
    "U8",
    "U16",
    "U32",
    "U64",
    "U128",
    "I8",
    "I16",
    "I32",
    "I64",
    "I128",
    "F32",
    "F64",
    "Bool",
    # Codecs and configuration
    "Codec",
    "CodecRegistry",
    "default_registry",
    "PodConfig",
    "Endianness",
    # Exceptions
    "PodwireError",
    "SchemaError",
    "StreamError",
    "EncodeError",
    "UnrepresentableError",
    "DecodeError",
    "FormatError",
    # Sizing
    "encoded_size",
    "field_sizes",
    # Version
    "__version__",
]
