"""Pydantic modeling for podwire.

This module provides the Record and TaggedUnion base classes, the primitive
type aliases and the field helpers used to declare plain-old-data types.
"""

from __future__ import annotations

from .base import PodModel, Record, TaggedUnion
from .fields import (
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
)

__all__ = [
    "PodModel",
    "Record",
    "TaggedUnion",
    "PodField",
    "FixedBytes",
    "FixedList",
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
]
