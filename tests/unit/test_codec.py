"""Unit tests for record encoding/decoding."""

from __future__ import annotations

import io
from typing import Annotated, Optional

import pytest
from pydantic import Field

from podwire import (
    F32,
    I16,
    I32,
    U8,
    U16,
    U32,
    Bool,
    DecodeError,
    EncodeError,
    FixedBytes,
    FixedList,
    FormatError,
    PodField,
    Record,
    SchemaError,
    StreamError,
    compile_codec,
    decode,
    decode_from,
    encode,
    encode_to,
    encoded_size,
    field_sizes,
)


class SimpleMessage(Record):
    """Simple test message."""

    pod_directives = {"endianness": "big"}

    vehicle_id: U8
    depth: U16
    active: bool


class LittleMessage(Record):
    """Same fields, little-endian."""

    pod_directives = {"endianness": "little"}

    vehicle_id: U8
    depth: U16
    active: bool


class MixedEndianMessage(Record):
    """Field-level byte order overrides the record's."""

    pod_directives = {"big_endian": True}

    a: U16
    b: U16 = PodField(little_endian=True)


class MagicMessage(Record):
    """Record with a magic marker."""

    pod_directives = {"big_endian": True, "magic": ("u16", 0xABCD)}

    a: U16


class FieldMagicMessage(Record):
    """Magic marker in front of one field."""

    pod_directives = {"big_endian": True}

    a: U8 = PodField(magic=("u8", 0x7E))
    b: U8


class SequenceMessage(Record):
    """Variable-length sequences."""

    pod_directives = {"big_endian": True}

    counted: list[U16] = PodField(size_type="u8")
    raw: bytes = PodField(size_type="u16")
    sized: list[U16] = PodField(size_type="u8", byte_sized=True)
    next_sized: list[U8] = PodField(size_type="u8", size_is_next=True)


class NextSizedMessage(Record):
    """size_is_next on a non-byte sequence."""

    pod_directives = {"big_endian": True}

    values: list[U16] = PodField(size_type="u8", size_is_next=True)


class InheritedSizeMessage(Record):
    """size_type declared once on the record."""

    pod_directives = {"big_endian": True, "size_type": "u16"}

    a: list[U8]
    b: list[I16]


class ArrayMessage(Record):
    """Fixed-size arrays."""

    pod_directives = {"big_endian": True}

    digest: Annotated[bytes, FixedBytes(length=4)]
    samples: Annotated[list[U16], FixedList(length=3)]
    flags: list[Bool] = PodField(length=2)


class TupleMessage(Record):
    """Tuple fields."""

    pod_directives = {"big_endian": True}

    pair: tuple[U16, U32]
    triple: tuple[U8, bool, F32]


class SkipMessage(Record):
    """Fields absent from the wire."""

    pod_directives = {"big_endian": True}

    a: U8
    scratch: I32 = PodField(skip=True)
    label: U16 = PodField(7, skip=True)
    b: U8


class OptionalMessage(Record):
    """Optional and unit fields are never on the wire."""

    a: U8
    extra: Optional[U32] = None
    nothing: None = None
    b: U8


class Inner(Record):
    """Nested record."""

    pod_directives = {"magic": ("u8", 0x55)}

    x: U8
    y: U8


class Outer(Record):
    """Record containing records."""

    pod_directives = {"big_endian": True}

    first: Inner
    rest: list[Inner] = PodField(size_type="u8")
    tail: U16


class TreeNode(Record):
    """Recursive record."""

    value: U8
    children: list[TreeNode] = PodField(size_type="u8")


class UnsizedSequence(Record):
    """Sequence without size_type."""

    values: list[U8]


class PlainIntMessage(Record):
    """int without a wire width."""

    value: int


class UnequalBounds(Record):
    """Length bounds that do not describe a fixed array."""

    values: Annotated[list[U8], Field(min_length=1, max_length=4)]


class Narrow(Record):
    """Field narrower than its wire type."""

    value: Annotated[U8, Field(le=10)]


class SkipWithoutDefault(Record):
    """Skipped nested record without a default."""

    inner: Inner = PodField(skip=True)


class TestEncodeDecode:
    """Test basic encode/decode functionality."""

    def test_simple_message(self) -> None:
        """Test fields are written in order without padding."""
        msg = SimpleMessage(vehicle_id=42, depth=0x1234, active=True)
        data = encode(msg)

        assert data == b"\x2a\x12\x34\x01"
        assert decode(SimpleMessage, data) == msg

    def test_little_endian(self) -> None:
        """Test record-level byte order."""
        msg = LittleMessage(vehicle_id=42, depth=0x1234, active=False)
        assert encode(msg) == b"\x2a\x34\x12\x00"

    def test_field_overrides_byte_order(self) -> None:
        """Test a field directive overrides the inherited byte order."""
        msg = MixedEndianMessage(a=0x0102, b=0x0102)
        data = encode(msg)
        assert data == b"\x01\x02\x02\x01"
        assert decode(MixedEndianMessage, data) == msg

    def test_trailing_bytes_left_unread(self) -> None:
        """Test decode reads only one value."""
        data = encode(SimpleMessage(vehicle_id=1, depth=2, active=True)) + b"\xff"
        assert decode(SimpleMessage, data).vehicle_id == 1

    def test_truncated(self) -> None:
        """Test truncated data."""
        data = encode(SimpleMessage(vehicle_id=1, depth=2, active=True))
        with pytest.raises(StreamError):
            decode(SimpleMessage, data[:-1])

    def test_wrong_type(self) -> None:
        """Test decoding into a non-podwire type."""
        with pytest.raises(SchemaError):
            decode(int, b"\x00")


class TestMagic:
    """Test magic markers."""

    def test_record_magic(self) -> None:
        """Test the magic comes before the fields."""
        data = encode(MagicMessage(a=0x1234))
        assert data == b"\xab\xcd\x12\x34"
        assert decode(MagicMessage, data) == MagicMessage(a=0x1234)

    def test_magic_mismatch(self) -> None:
        """Test a wrong magic fails before any field is read."""
        with pytest.raises(FormatError, match="Magic value 0xabcd expected, found 0xabce") as exc:
            decode(MagicMessage, b"\xab\xce")
        assert exc.value.expected == 0xABCD
        assert exc.value.observed == 0xABCE

    def test_field_magic(self) -> None:
        """Test a magic marker on a field."""
        msg = FieldMagicMessage(a=1, b=2)
        data = encode(msg)
        assert data == b"\x7e\x01\x02"
        assert encoded_size(msg) == 3
        assert decode(FieldMagicMessage, data) == msg

        with pytest.raises(FormatError):
            decode(FieldMagicMessage, b"\x7f\x01\x02")


class TestSequences:
    """Test length-prefixed sequences."""

    def test_framings(self) -> None:
        """Test item-count, byte-count and size_is_next prefixes."""
        msg = SequenceMessage(counted=[1, 2], raw=b"xyz", sized=[3, 4], next_sized=[9, 8])
        data = encode(msg)

        assert data == (
            b"\x02\x00\x01\x00\x02"  # 2 items
            b"\x00\x03xyz"  # 3 bytes
            b"\x04\x00\x03\x00\x04"  # 4 bytes of items
            b"\x03\x09\x08"  # 2 items, stored as 3
        )
        assert decode(SequenceMessage, data) == msg

    def test_size_is_next(self) -> None:
        """Test 2 items store 3 and a stored 3 reads 2 items."""
        data = encode(NextSizedMessage(values=[1, 2]))
        assert data[0] == 3
        assert decode(NextSizedMessage, b"\x03\x00\x05\x00\x06").values == [5, 6]

    def test_size_is_next_zero_prefix(self) -> None:
        """Test a stored 0 cannot be a size_is_next length."""
        with pytest.raises(FormatError, match="Invalid length prefix 0"):
            decode(NextSizedMessage, b"\x00")

    def test_empty(self) -> None:
        """Test empty sequences."""
        msg = SequenceMessage(counted=[], raw=b"", sized=[], next_sized=[])
        data = encode(msg)
        assert data == b"\x00\x00\x00\x00\x01"
        assert decode(SequenceMessage, data) == msg

    def test_byte_sized_overrun(self) -> None:
        """Test an item crossing the byte budget is a format error."""
        data = b"\x00\x00\x00\x03\x00\x01\x00\x02\x01"
        with pytest.raises(FormatError, match="does not fit"):
            decode(SequenceMessage, data)

    def test_inherited_size_type(self) -> None:
        """Test size_type inherited from the record."""
        msg = InheritedSizeMessage(a=[1, 2, 3], b=[-1])
        data = encode(msg)
        assert data == b"\x00\x03\x01\x02\x03\x00\x01\xff\xff"
        assert decode(InheritedSizeMessage, data) == msg

    def test_prefix_overflow(self) -> None:
        """Test a sequence too long for its prefix."""
        msg = SequenceMessage(counted=list(range(256)), raw=b"", sized=[], next_sized=[])
        with pytest.raises(EncodeError, match="does not fit u8"):
            encode(msg)

    def test_size_is_next_overflow(self) -> None:
        """Test the +1 counts against the prefix range."""
        msg = SequenceMessage(counted=[], raw=b"", sized=[], next_sized=[0] * 255)
        with pytest.raises(EncodeError, match="Length prefix 256 does not fit u8"):
            encode(msg)

    def test_list_of_bytes_decodes_to_list(self) -> None:
        """Test list[U8] keeps its list type."""
        msg = SequenceMessage(counted=[], raw=b"", sized=[], next_sized=[1, 2, 3])
        decoded = decode(SequenceMessage, encode(msg))
        assert decoded.next_sized == [1, 2, 3]
        assert isinstance(decoded.raw, bytes)


class TestArrays:
    """Test fixed-size arrays."""

    def test_arrays(self) -> None:
        """Test arrays have no prefix."""
        msg = ArrayMessage(digest=b"\xde\xad\xbe\xef", samples=[1, 2, 3], flags=[True, False])
        data = encode(msg)
        assert data == b"\xde\xad\xbe\xef\x00\x01\x00\x02\x00\x03\x01\x00"
        assert encoded_size(msg) == 12
        assert decode(ArrayMessage, data) == msg

    def test_wrong_length_on_encode(self) -> None:
        """Test an array of the wrong length cannot be written."""
        msg = ArrayMessage.model_construct(
            digest=b"\x00\x00", samples=[1, 2, 3], flags=[True, False]
        )
        with pytest.raises(EncodeError, match="Expected 4 bytes, got 2 bytes"):
            encode(msg)

        msg = ArrayMessage.model_construct(
            digest=b"\x00" * 4, samples=[1, 2], flags=[True, False]
        )
        with pytest.raises(EncodeError, match="Expected 3 items, got 2 items"):
            encode(msg)

    def test_unequal_bounds(self) -> None:
        """Test min_length != max_length is not an array."""
        with pytest.raises(SchemaError, match="length bounds must be equal"):
            compile_codec(UnequalBounds)


class TestTuples:
    """Test tuple fields."""

    def test_tuple(self) -> None:
        """Test tuple components are written in order."""
        msg = TupleMessage(pair=(1, 2), triple=(3, True, 1.5))
        data = encode(msg)
        assert data == b"\x00\x01\x00\x00\x00\x02\x03\x01\x3f\xc0\x00\x00"
        assert decode(TupleMessage, data) == msg


class TestSkipAndOptional:
    """Test fields that are not on the wire."""

    def test_skip(self) -> None:
        """Test skipped fields take no space and decode to their default."""
        msg = SkipMessage(a=1, scratch=-99, label=100, b=2)
        data = encode(msg)
        assert data == b"\x01\x02"
        assert field_sizes(msg) == {"a": 1, "scratch": 0, "label": 0, "b": 1}

        decoded = decode(SkipMessage, data)
        assert decoded.scratch == 0
        assert decoded.label == 7

    def test_optional_and_unit(self) -> None:
        """Test Optional values are dropped and decode to None."""
        msg = OptionalMessage(a=1, extra=45, b=2)
        data = encode(msg)
        assert data == b"\x01\x02"
        assert encoded_size(msg) == 2

        decoded = decode(OptionalMessage, data)
        assert decoded.extra is None
        assert decoded.nothing is None
        assert decoded.b == 2

    def test_skip_without_default(self) -> None:
        """Test a skipped field needs a value to decode to."""
        with pytest.raises(SchemaError, match="has no zero value"):
            compile_codec(SkipWithoutDefault)


class TestNested:
    """Test nested and recursive records."""

    def test_nested(self) -> None:
        """Test nested records keep their own configuration."""
        msg = Outer(first=Inner(x=1, y=2), rest=[Inner(x=3, y=4)], tail=0x0102)
        data = encode(msg)
        assert data == b"\x55\x01\x02\x01\x55\x03\x04\x01\x02"
        assert encoded_size(msg) == len(data)
        assert field_sizes(msg) == {"first": 3, "rest": 4, "tail": 2}
        assert decode(Outer, data) == msg

    def test_recursive(self) -> None:
        """Test a type that contains itself."""
        tree = TreeNode(
            value=1,
            children=[
                TreeNode(value=2, children=[]),
                TreeNode(value=3, children=[TreeNode(value=4, children=[])]),
            ],
        )
        data = encode(tree)
        assert data == b"\x01\x02\x02\x00\x03\x01\x04\x00"
        assert decode(TreeNode, data) == tree


class TestSchemaErrors:
    """Test malformed types are rejected when compiled."""

    def test_sequence_without_size_type(self) -> None:
        """Test size_type is mandatory for sequences."""
        with pytest.raises(SchemaError, match="size_type directive is mandatory"):
            compile_codec(UnsizedSequence)

    def test_plain_int(self) -> None:
        """Test int needs an explicit width."""
        with pytest.raises(SchemaError, match="needs a wire width"):
            compile_codec(PlainIntMessage)

    def test_compile_is_cached(self) -> None:
        """Test a type compiles once."""
        assert compile_codec(SimpleMessage) is compile_codec(SimpleMessage)


class TestStreams:
    """Test encoding to and decoding from file objects."""

    def test_consecutive_values(self, sink: io.BytesIO) -> None:
        """Test values written back to back read back in order."""
        first = SimpleMessage(vehicle_id=1, depth=2, active=True)
        second = SimpleMessage(vehicle_id=3, depth=4, active=False)
        assert encode_to(first, sink) == 4
        assert encode_to(second, sink) == 4

        sink.seek(0)
        assert decode_from(SimpleMessage, sink) == first
        assert decode_from(SimpleMessage, sink) == second
        with pytest.raises(StreamError):
            decode_from(SimpleMessage, sink)

    def test_validation_failure_on_decode(self) -> None:
        """Test decoded values the model rejects."""
        with pytest.raises(DecodeError, match="Failed to construct Narrow"):
            decode(Narrow, b"\x0b")
