"""Binary codec for podwire.

This module provides encoding and decoding of plain-old-data types: codecs are
compiled once per type by a CodecRegistry and reused for every call.
"""

from __future__ import annotations

from .base import Codec
from .config import PodConfig, TagRange
from .decoder import decode, decode_from
from .encoder import encode, encode_to
from .primitives import PRIMITIVES, Endianness, PrimitiveType
from .registry import CodecRegistry, default_registry
from .stream import ByteReader, ByteWriter

__all__ = [
    "encode",
    "encode_to",
    "decode",
    "decode_from",
    "Codec",
    "CodecRegistry",
    "default_registry",
    "PodConfig",
    "TagRange",
    "Endianness",
    "PrimitiveType",
    "PRIMITIVES",
    "ByteReader",
    "ByteWriter",
]
