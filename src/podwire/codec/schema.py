"""Schema introspection for podwire models.

This module analyzes Pydantic models and extracts encoding-relevant information:
the type shape of every field (primitive, sequence, fixed array, tuple, nested
type, ...) and the directives attached to it.
"""

from __future__ import annotations

import types
from dataclasses import dataclass
from typing import Annotated, Any, Callable, ForwardRef, Optional, Union, get_args, get_origin

from pydantic.errors import PydanticUndefinedAnnotation
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

from ..exceptions import SchemaError
from ..models.base import PodModel
from ..models.fields import field_directives
from .primitives import PRIMITIVES, PrimitiveType

MAX_TUPLE_ARITY = 9


class Shape:
    """Base class of field type shapes."""

    python_type: type = object

    def zero_value(self) -> Any:
        """Value produced for a skipped field without a declared default."""
        raise SchemaError(f"{self} has no zero value; give the skipped field a default")


@dataclass(frozen=True)
class PrimitiveShape(Shape):
    ptype: PrimitiveType

    @property
    def python_type(self) -> type:  # type: ignore[override]
        return self.ptype.python_type

    def zero_value(self) -> Any:
        return self.ptype.python_type()

    def __str__(self) -> str:
        return str(self.ptype)


@dataclass(frozen=True)
class UnitShape(Shape):
    python_type = type(None)

    def zero_value(self) -> Any:
        return None

    def __str__(self) -> str:
        return "()"


@dataclass(frozen=True)
class OptionalShape(Shape):
    """Optional[T]: never on the wire, always decodes to None."""

    inner: Any
    python_type = type(None)

    def zero_value(self) -> Any:
        return None

    def __str__(self) -> str:
        return f"Optional[{self.inner}]"


@dataclass(frozen=True)
class SequenceShape(Shape):
    """Variable-length sequence with a length prefix."""

    item: Shape
    as_bytes: bool = False

    @property
    def python_type(self) -> type:  # type: ignore[override]
        return bytes if self.as_bytes else list

    def zero_value(self) -> Any:
        return b"" if self.as_bytes else []

    def __str__(self) -> str:
        return "bytes" if self.as_bytes else f"list[{self.item}]"


@dataclass(frozen=True)
class ArrayShape(Shape):
    """Fixed-size array: exactly ``length`` items, no prefix."""

    item: Shape
    length: int
    as_bytes: bool = False

    @property
    def python_type(self) -> type:  # type: ignore[override]
        return bytes if self.as_bytes else list

    def zero_value(self) -> Any:
        if self.as_bytes:
            return bytes(self.length)
        return [self.item.zero_value() for _ in range(self.length)]

    def __str__(self) -> str:
        return f"[{self.item}; {self.length}]"


@dataclass(frozen=True)
class TupleShape(Shape):
    items: tuple[Shape, ...]
    python_type = tuple

    def zero_value(self) -> Any:
        return tuple(item.zero_value() for item in self.items)

    def __str__(self) -> str:
        return "(" + ", ".join(str(i) for i in self.items) + ")"


@dataclass(frozen=True)
class NamedShape(Shape):
    """Nested Record or TaggedUnion type."""

    model: type[PodModel]

    @property
    def python_type(self) -> type:  # type: ignore[override]
        return self.model

    def __str__(self) -> str:
        return self.model.__name__


@dataclass(frozen=True)
class CustomShape(Shape):
    """Type handled by a codec registered in the CodecRegistry."""

    custom_type: type

    @property
    def python_type(self) -> type:  # type: ignore[override]
        return self.custom_type

    def __str__(self) -> str:
        return self.custom_type.__name__


@dataclass(frozen=True)
class FieldSchema:
    """Schema information for a single field.

    Attributes:
        name: Field name
        shape: Type shape of the field
        directives: podwire directives attached to the field
        default_factory: Produces the field default, None if the field has none
    """

    name: str
    shape: Shape
    directives: Optional[dict[str, Any]]
    default_factory: Optional[Callable[[], Any]]

    def skipped_value(self) -> Any:
        """Value a skipped field decodes to."""
        if self.default_factory is not None:
            return self.default_factory()
        try:
            return self.shape.zero_value()
        except SchemaError as err:
            raise SchemaError(f"Field {self.name}: {err}") from err


def _expand_metadata(extras: tuple[Any, ...]) -> list[Any]:
    metadata: list[Any] = []
    for extra in extras:
        if isinstance(extra, FieldInfo):
            metadata.extend(extra.metadata)
        else:
            metadata.append(extra)
    return metadata


def _fixed_length(metadata: list[Any], where: str) -> Optional[int]:
    """Extract an exact length from min_length/max_length constraints."""
    min_length = None
    max_length = None
    for constraint in metadata:
        if hasattr(constraint, "min_length"):
            min_length = constraint.min_length
        if hasattr(constraint, "max_length"):
            max_length = constraint.max_length

    if min_length is None and max_length is None:
        return None
    if min_length != max_length:
        raise SchemaError(
            f"{where}: length bounds must be equal for a fixed-size array "
            f"(min_length={min_length}, max_length={max_length}); "
            f"drop them for a length-prefixed sequence"
        )
    return max_length


def shape_of(
    annotation: Any,
    metadata: list[Any],
    where: str,
    is_custom: Callable[[Any], bool],
) -> Shape:
    """Derive the shape of a type annotation.

    Args:
        annotation: Type annotation (possibly Annotated)
        metadata: Constraints attached to the annotation
        where: Description of the annotated element, for error messages
        is_custom: Predicate telling whether a type has a registered custom codec

    Returns:
        The field's Shape

    Raises:
        SchemaError: If the annotation is not supported
    """
    if get_origin(annotation) is Annotated:
        base, *extras = get_args(annotation)
        return shape_of(base, metadata + _expand_metadata(tuple(extras)), where, is_custom)

    for meta in metadata:
        if isinstance(meta, PrimitiveType):
            return PrimitiveShape(meta)

    if isinstance(annotation, (str, ForwardRef)):
        raise SchemaError(f"{where}: unresolved forward reference {annotation!r}")

    if annotation is None or annotation is type(None):
        return UnitShape()

    origin = get_origin(annotation)
    args = get_args(annotation)

    # Optional[T] (Union[T, None] or T | None)
    if origin is Union or origin is types.UnionType:
        non_none = [arg for arg in args if arg is not type(None)]
        if len(non_none) == 1 and len(non_none) != len(args):
            return OptionalShape(non_none[0])
        raise SchemaError(f"{where}: Union types are not supported, use a TaggedUnion")

    if annotation is bool:
        return PrimitiveShape(PRIMITIVES["bool"])
    if annotation is float:
        return PrimitiveShape(PRIMITIVES["f64"])
    if annotation is int:
        raise SchemaError(
            f"{where}: int needs a wire width, annotate it with U8..U128 or I8..I128"
        )

    if annotation is bytes:
        byte = PrimitiveShape(PRIMITIVES["u8"])
        length = _fixed_length(metadata, where)
        if length is not None:
            return ArrayShape(byte, length, as_bytes=True)
        return SequenceShape(byte, as_bytes=True)

    if origin is list:
        if not args:
            raise SchemaError(f"{where}: list needs an item type")
        item = shape_of(args[0], [], f"{where} item", is_custom)
        length = _fixed_length(metadata, where)
        if length is not None:
            return ArrayShape(item, length)
        return SequenceShape(item)

    if origin is tuple:
        if not args or Ellipsis in args:
            raise SchemaError(f"{where}: only fixed tuples like tuple[U8, U16] are supported")
        if not 2 <= len(args) <= MAX_TUPLE_ARITY:
            raise SchemaError(
                f"{where}: tuples must have 2 to {MAX_TUPLE_ARITY} items, got {len(args)}"
            )
        return TupleShape(
            tuple(
                shape_of(arg, [], f"{where} item {i}", is_custom) for i, arg in enumerate(args)
            )
        )

    if isinstance(annotation, type):
        if issubclass(annotation, PodModel):
            return NamedShape(annotation)
        if is_custom(annotation):
            return CustomShape(annotation)

    raise SchemaError(f"{where}: unsupported type {annotation!r}")


def _default_factory(field_info: FieldInfo) -> Optional[Callable[[], Any]]:
    if field_info.default_factory is None and field_info.default is PydanticUndefined:
        return None
    return lambda: field_info.get_default(call_default_factory=True)


def model_fields_schema(
    model: type[PodModel], is_custom: Callable[[Any], bool]
) -> list[FieldSchema]:
    """Introspect a model and return its fields in declaration order.

    Raises:
        SchemaError: If a field type is unsupported
    """
    if not model.__pydantic_complete__:
        try:
            model.model_rebuild()
        except PydanticUndefinedAnnotation as err:
            raise SchemaError(f"{model.__name__}: {err}") from err

    fields = []
    for name, field_info in model.model_fields.items():
        shape = shape_of(
            field_info.annotation,
            list(field_info.metadata),
            f"Field {model.__name__}.{name}",
            is_custom,
        )
        fields.append(
            FieldSchema(
                name=name,
                shape=shape,
                directives=field_directives(field_info),
                default_factory=_default_factory(field_info),
            )
        )
    return fields
