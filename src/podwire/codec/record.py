"""Record assembler.

Sequences the field codecs of a record (or of a tagged-union variant) into
one codec: optional magic marker first, then every field in declaration order.
A field marked is_context replaces the context seen by the fields after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ..exceptions import DecodeError, EncodeError
from ..models.base import PodModel
from .base import Codec
from .compiler import RetainedTagCodec, check_magic
from .config import PodConfig
from .primitives import write_primitive
from .stream import ByteReader, ByteWriter

_logger = logging.getLogger(__name__)

_NO_DISCRIMINANT = object()


@dataclass
class FieldCodec:
    """A compiled field.

    Attributes:
        name: Field name
        codec: Codec of the field
        is_context: The field's value becomes the context of later fields
    """

    name: str
    codec: Codec
    is_context: bool = False

    @property
    def retains_tag(self) -> bool:
        return isinstance(self.codec, RetainedTagCodec)


class RecordCodec(Codec):
    """Codec of a record type.

    The codec is created before its fields are compiled so that recursive
    types can refer to it; CodecRegistry fills in the fields.
    """

    def __init__(self, model: type[PodModel], config: PodConfig) -> None:
        self.model = model
        self.config = config
        self.fields: list[FieldCodec] = []

    @property
    def context_type(self) -> type:  # type: ignore[override]
        return self.config.context_type

    @property
    def name(self) -> str:
        return self.model.__name__

    def size(self, value: Any) -> int:
        total = self.config.magic[0].width if self.config.magic is not None else 0
        for field in self.fields:
            total += field.codec.size(getattr(value, field.name))
        return total

    def field_sizes(self, value: Any) -> dict[str, int]:
        """Size in bytes of each field of value."""
        return {field.name: field.codec.size(getattr(value, field.name)) for field in self.fields}

    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        return self.build(self.decode_fields(reader, context))

    def decode_fields(
        self, reader: ByteReader, context: Any = None, discriminant: Any = _NO_DISCRIMINANT
    ) -> dict[str, Any]:
        """Decode every field in order and return the field values.

        Args:
            reader: Source to read from
            context: Context at the start of the record
            discriminant: Tag already read by the enclosing union, handed to a
                retained-tag first field

        Raises:
            FormatError: If the magic marker does not match
        """
        if self.config.magic is not None:
            ptype, expected = self.config.magic
            check_magic(reader, ptype, expected, self.config.endianness)

        trace = self.config.track_position and _logger.isEnabledFor(logging.DEBUG)
        values: dict[str, Any] = {}
        for field in self.fields:
            if trace:
                _logger.debug("decode %s.%s at offset %d", self.name, field.name, reader.position)
            if field.retains_tag and discriminant is not _NO_DISCRIMINANT:
                value = field.codec.from_discriminant(discriminant)  # type: ignore[attr-defined]
            else:
                value = field.codec.decode(reader, context)
            values[field.name] = value
            if field.is_context:
                context = value
        return values

    def build(self, values: dict[str, Any]) -> Any:
        """Construct the model from decoded field values.

        Raises:
            DecodeError: If the model rejects the values
        """
        try:
            return self.model(**values)
        except ValidationError as err:
            raise DecodeError(f"Failed to construct {self.name}: {err}") from err

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        if not isinstance(value, self.model):
            raise EncodeError(f"Expected {self.name}, got {type(value).__name__}")

        if self.config.magic is not None:
            ptype, magic = self.config.magic
            write_primitive(writer, magic, ptype, self.config.endianness)

        trace = self.config.track_position and _logger.isEnabledFor(logging.DEBUG)
        for field in self.fields:
            if trace:
                _logger.debug("encode %s.%s at offset %d", self.name, field.name, writer.position)
            field_value = getattr(value, field.name)
            field.codec.encode(field_value, writer, context)
            if field.is_context:
                context = field_value
