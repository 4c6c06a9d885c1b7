"""Tagged-union assembler.

A union is encoded as ``[magic?][discriminant][variant fields]``. Decoding
walks an ordered dispatch table of (pattern, variant) pairs and picks the first
pattern matching the discriminant; a variant without a pattern is the
catch-all and can only be the last entry. The same table drives the
compile-time checks and the runtime dispatch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..exceptions import EncodeError, FormatError, SchemaError, UnrepresentableError
from ..models.base import TaggedUnion
from .base import Codec
from .compiler import check_magic
from .config import PodConfig, TagPattern, TagRange
from .primitives import PrimitiveType, read_primitive, write_primitive
from .record import RecordCodec
from .stream import ByteReader, ByteWriter

_logger = logging.getLogger(__name__)


@dataclass
class VariantCodec:
    """One variant of a union.

    Attributes:
        record: Codec of the variant's fields (and variant-level magic)
        pattern: Discriminant pattern, None for the catch-all
        keep_tag: The discriminant is the variant's first field
        skip: The variant cannot appear on the wire
    """

    record: RecordCodec

    @property
    def model(self) -> type:
        return self.record.model

    @property
    def config(self) -> PodConfig:
        return self.record.config

    @property
    def pattern(self) -> Optional[TagPattern]:
        return self.config.tag

    @property
    def keep_tag(self) -> bool:
        return self.config.keep_tag

    @property
    def skip(self) -> bool:
        return self.config.skip

    @property
    def name(self) -> str:
        return self.model.__name__


class UnionCodec(Codec):
    """Codec of a tagged union.

    Like RecordCodec, the codec exists before its variants are compiled;
    CodecRegistry adds the variants and then calls validate().
    """

    def __init__(self, root: type[TaggedUnion], config: PodConfig) -> None:
        if config.tag_type is None:
            raise SchemaError(f"{root.__name__}: tag_type directive is mandatory for tagged unions")
        self.root = root
        self.config = config
        self.tag_type: PrimitiveType = config.tag_type
        self.variants: list[VariantCodec] = []
        self._by_model: dict[type, VariantCodec] = {}
        self._dispatch: list[tuple[Optional[TagPattern], VariantCodec]] = []

    @property
    def context_type(self) -> type:  # type: ignore[override]
        return self.config.context_type

    @property
    def name(self) -> str:
        return self.root.__name__

    def add_variant(self, variant: VariantCodec) -> None:
        self.variants.append(variant)
        self._by_model[variant.model] = variant

    def validate(self) -> None:
        """Check variant patterns and build the dispatch table.

        Raises:
            SchemaError: On a misplaced catch-all, a pattern that cannot be written
                or does not fit tag_type, or an invalid keep_tag variant
        """
        dispatch: list[tuple[Optional[TagPattern], VariantCodec]] = []
        catch_all: Optional[VariantCodec] = None

        for variant in self.variants:
            where = f"{self.name}.{variant.name}"
            if variant.skip:
                continue
            if catch_all is not None:
                raise SchemaError(
                    f"{where}: the variant without a tag ({catch_all.name}) must come last"
                )
            pattern = variant.pattern
            if pattern is None:
                catch_all = variant
            else:
                self._check_pattern(pattern, where)

            if variant.keep_tag:
                self._check_retained_field(variant, where)
            elif pattern is None or not pattern.is_literal:
                raise SchemaError(
                    f"{where}: writing needs a single literal tag; "
                    f"use keep_tag with tag ranges, alternations or a catch-all"
                )
            dispatch.append((pattern, variant))

        self._dispatch = dispatch

    def _check_pattern(self, pattern: TagPattern, where: str) -> None:
        for alternative in pattern.alternatives:
            if isinstance(alternative, TagRange):
                bounds = (alternative.low, alternative.high)
            else:
                bounds = (alternative,)
            for bound in bounds:
                if not self.tag_type.contains(bound):
                    raise SchemaError(f"{where}: tag {bound!r} does not fit {self.tag_type}")

    def _check_retained_field(self, variant: VariantCodec, where: str) -> None:
        fields = variant.record.fields
        if not fields:
            raise SchemaError(f"{where}: cannot keep tag on a variant without fields")
        if not fields[0].retains_tag:
            raise SchemaError(f"{where}: with keep_tag the first field cannot be skipped")

    def variant_for(self, value: Any) -> VariantCodec:
        """Return the variant codec of a union value.

        Raises:
            EncodeError: If value is not a variant of this union
        """
        variant = self._by_model.get(type(value))
        if variant is None:
            raise EncodeError(f"{type(value).__name__} is not a variant of {self.name}")
        return variant

    def size(self, value: Any) -> int:
        variant = self.variant_for(value)
        if variant.skip:
            return 0
        total = self.config.magic[0].width if self.config.magic is not None else 0
        if not variant.keep_tag:
            total += self.tag_type.width
        return total + variant.record.size(value)

    def field_sizes(self, value: Any) -> dict[str, int]:
        """Size in bytes of each field of the value's variant."""
        variant = self.variant_for(value)
        if variant.skip:
            return {field.name: 0 for field in variant.record.fields}
        return variant.record.field_sizes(value)

    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        if self.config.magic is not None:
            ptype, expected = self.config.magic
            check_magic(reader, ptype, expected, self.config.endianness)

        discriminant = read_primitive(reader, self.tag_type, self.config.endianness)
        for pattern, variant in self._dispatch:
            if pattern is None or pattern.matches(discriminant):
                break
        else:
            raise FormatError(
                f"Tag value {discriminant} not found in {self.name}", observed=discriminant
            )

        _logger.debug("%s: tag %r selects %s", self.name, discriminant, variant.name)
        values = variant.record.decode_fields(reader, context, discriminant)
        return variant.record.build(values)

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        variant = self.variant_for(value)
        if variant.skip:
            raise UnrepresentableError(
                f"{self.name}.{variant.name} is marked skip and cannot be written"
            )

        if self.config.magic is not None:
            ptype, magic = self.config.magic
            write_primitive(writer, magic, ptype, self.config.endianness)
        if not variant.keep_tag:
            write_primitive(
                writer,
                variant.pattern.literal,  # type: ignore[union-attr]
                self.tag_type,
                self.config.endianness,
            )
        variant.record.encode(value, writer, context)
