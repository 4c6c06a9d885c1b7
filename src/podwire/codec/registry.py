"""Codec registry.

Compiles Record and TaggedUnion types into codecs on first use and caches the
result. Compilation is two-phase: the codec of a type is created and cached
before its fields are compiled, so a field that refers back to the type being
compiled (directly or through other types) picks up the unfinished codec.

Codecs cached while an outermost compilation is in progress may hold such
unfinished codecs, so a SchemaError anywhere drops all of them from the cache.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ..exceptions import SchemaError
from ..models.base import PodModel, Record, TaggedUnion
from .base import Codec
from .compiler import RetainedTagCodec, SkipCodec, compile_field
from .config import DEFAULT_CONFIG, PodConfig
from .context import ContextConversion, ContextConversions
from .record import FieldCodec, RecordCodec
from .schema import FieldSchema, PrimitiveShape, model_fields_schema
from .union import UnionCodec, VariantCodec

_logger = logging.getLogger(__name__)


class CodecRegistry:
    """Compiled codecs, custom codecs and context conversions.

    Args:
        defaults: Configuration every root type is derived from
            (library default: native byte order, no directives)

    Example:
        >>> registry = CodecRegistry(defaults=PodConfig(endianness=Endianness.BIG))
        >>> registry.register(Celsius, CelsiusCodec())
        >>> codec = registry.codec_for(Reading)
    """

    def __init__(self, defaults: Optional[PodConfig] = None) -> None:
        self.defaults = defaults if defaults is not None else DEFAULT_CONFIG
        self._codecs: dict[type, Codec] = {}
        self._custom: dict[type, Codec] = {}
        self._conversions = ContextConversions()
        self._depth = 0
        self._pending: list[type] = []

    def register(self, py_type: type, codec: Codec) -> None:
        """Register a hand-written codec for a Python type.

        Fields annotated with py_type are encoded by codec from then on.
        Types already compiled by this registry are not recompiled.

        Raises:
            SchemaError: If codec is not a Codec
        """
        if not isinstance(codec, Codec):
            raise SchemaError(f"{codec!r} is not a Codec")
        self._custom[py_type] = codec

    def register_context_conversion(
        self, source: type, target: type, conversion: ContextConversion
    ) -> None:
        """Register how a context of type source is turned into one of type target."""
        self._conversions.register(source, target, conversion)

    def context_converter(self, source: type, target: type) -> ContextConversion:
        return self._conversions.converter(source, target)

    def is_custom(self, py_type: Any) -> bool:
        return isinstance(py_type, type) and py_type in self._custom

    def custom_codec(self, py_type: type) -> Codec:
        try:
            return self._custom[py_type]
        except KeyError:
            raise SchemaError(f"No codec registered for {py_type.__name__}") from None

    def codec_for(self, cls: type) -> Codec:
        """Return the codec of a type, compiling it on first use.

        A variant class resolves to the codec of its union.

        Raises:
            SchemaError: If the type or anything it refers to is malformed
        """
        if cls in self._custom:
            return self._custom[cls]
        codec = self._codecs.get(cls)
        if codec is not None:
            return codec

        if not isinstance(cls, type) or not issubclass(cls, PodModel):
            raise SchemaError(f"{cls!r} is neither a Record, a TaggedUnion nor a registered type")

        self._depth += 1
        try:
            return self._compile(cls)
        except SchemaError:
            if self._depth == 1:
                for pending in self._pending:
                    self._codecs.pop(pending, None)
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._pending.clear()

    def _cache(self, cls: type, codec: Codec) -> None:
        self._codecs[cls] = codec
        self._pending.append(cls)

    def _compile(self, cls: type[PodModel]) -> Codec:
        if issubclass(cls, Record):
            return self._compile_record(cls)
        if issubclass(cls, TaggedUnion) and cls is not TaggedUnion:
            if cls.is_union_root():
                return self._compile_union(cls)
            root = cls.pod_union_root
            if cls not in root.pod_variants:  # type: ignore[union-attr]
                raise SchemaError(
                    f"{cls.__name__} subclasses a variant of {root.__name__}; "  # type: ignore[union-attr]
                    f"variants cannot be extended"
                )
            return self.codec_for(root)  # type: ignore[arg-type]
        raise SchemaError(f"{cls.__name__} must subclass Record or TaggedUnion")

    def _compile_record(self, cls: type[Record]) -> RecordCodec:
        config = self._node_config(self.defaults, cls)
        codec = RecordCodec(cls, config)
        self._cache(cls, codec)
        codec.fields = self._compile_fields(cls, config, union_config=None)
        _logger.debug("Compiled codec for %s (%d fields)", cls.__name__, len(codec.fields))
        return codec

    def _compile_union(self, root: type[TaggedUnion]) -> UnionCodec:
        config = self._node_config(self.defaults, root)
        if root.model_fields:
            raise SchemaError(
                f"{root.__name__}: a union root cannot declare fields, "
                f"declare them on its variants"
            )
        codec = UnionCodec(root, config)
        self._cache(root, codec)
        if not root.pod_variants:
            raise SchemaError(f"{root.__name__} has no variants")
        for variant in root.pod_variants:
            codec.add_variant(VariantCodec(self._compile_variant(variant, codec)))
        codec.validate()
        _logger.debug(
            "Compiled codec for %s (%d variants, tag %s)",
            root.__name__,
            len(codec.variants),
            codec.tag_type,
        )
        return codec

    def _compile_variant(self, variant: type[TaggedUnion], union: UnionCodec) -> RecordCodec:
        config = self._node_config(union.config, variant)
        if config.context_type is not union.config.context_type:
            raise SchemaError(
                f"{union.name}.{variant.__name__}: variants share the context type "
                f"of their union ({union.config.context_type.__name__})"
            )
        if variant.__subclasses__():
            raise SchemaError(
                f"{union.name}.{variant.__name__} is subclassed; variants cannot be extended"
            )
        record = RecordCodec(variant, config)
        retains = config.keep_tag and not config.skip
        record.fields = self._compile_fields(
            variant, config, union_config=union.config if retains else None
        )
        return record

    @staticmethod
    def _node_config(parent: PodConfig, cls: type[PodModel]) -> PodConfig:
        try:
            return parent.derive(cls.local_directives())
        except SchemaError as err:
            raise SchemaError(f"{cls.__name__}: {err}") from err

    def _compile_fields(
        self, cls: type[PodModel], config: PodConfig, union_config: Optional[PodConfig]
    ) -> list[FieldCodec]:
        """Compile every field of a record or variant.

        Args:
            cls: Model whose fields are compiled
            config: Resolved configuration of the model
            union_config: Configuration of the union when the first field retains
                the discriminant
        """
        fields = []
        context_type = config.context_type
        for index, field in enumerate(model_fields_schema(cls, self.is_custom)):
            where = f"Field {cls.__name__}.{field.name}"
            try:
                field_config = config.derive(field.directives)
            except SchemaError as err:
                raise SchemaError(f"{where}: {err}") from err

            if field_config.skip:
                codec: Codec = SkipCodec(_skipped_value(field))
            elif index == 0 and union_config is not None:
                codec = _retained_tag_codec(field, field_config, config, union_config, where)
            else:
                codec = compile_field(field.shape, field_config, self, context_type, where)

            fields.append(FieldCodec(field.name, codec, is_context=field_config.is_context))
            if field_config.is_context:
                context_type = field.shape.python_type
        return fields


def _skipped_value(field: FieldSchema) -> Callable[[], Any]:
    # Raises SchemaError now for a field without a default or zero value
    field.skipped_value()
    return field.skipped_value


def _retained_tag_codec(
    field: FieldSchema,
    field_config: PodConfig,
    config: PodConfig,
    union_config: PodConfig,
    where: str,
) -> RetainedTagCodec:
    """Codec of the field receiving the discriminant of a keep_tag variant.

    The field is written in place of the discriminant, so it must be encoded
    exactly as the union reads the discriminant: same type, same byte order.

    Raises:
        SchemaError: If the field cannot hold the discriminant
    """
    tag_type = union_config.tag_type
    shape = field.shape
    if (
        not isinstance(shape, PrimitiveShape)
        or shape.ptype.width != tag_type.width  # type: ignore[union-attr]
        or field_config.magic is not None
    ):
        raise SchemaError(
            f"{where}: with keep_tag the first field must be a primitive of "
            f"the tag's width ({tag_type.width} bytes)"  # type: ignore[union-attr]
        )
    if shape.ptype != tag_type:
        raise SchemaError(
            f"{where}: with keep_tag the first field must have the tag's type "
            f"{tag_type}, not {shape.ptype}"
        )
    if tag_type.width > 1 and (
        field_config.endianness.byteorder != union_config.endianness.byteorder
    ):
        raise SchemaError(
            f"{where}: with keep_tag the first field must use the union's byte order "
            f"({union_config.endianness.value})"
        )
    return RetainedTagCodec(shape.ptype, field_config.endianness, config.keep_diff)


default_registry = CodecRegistry()
