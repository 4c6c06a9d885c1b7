"""Field type helpers and primitive type aliases.

Integer fields need an explicit wire width, given by annotating them with one
of the aliases below (``U8`` ... ``I128``). Each alias also carries the range
constraint of its width, so Pydantic rejects out-of-range values on assignment.
"""

from __future__ import annotations

from typing import Annotated, Any, cast

from pydantic import Field
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

from ..codec.primitives import PRIMITIVES

POD_EXTRA_KEY = "pod"


def _int_alias(name: str) -> Any:
    ptype = PRIMITIVES[name]
    return Annotated[int, Field(ge=ptype.min_value, le=ptype.max_value), ptype]


U8 = _int_alias("u8")
U16 = _int_alias("u16")
U32 = _int_alias("u32")
U64 = _int_alias("u64")
U128 = _int_alias("u128")
I8 = _int_alias("i8")
I16 = _int_alias("i16")
I32 = _int_alias("i32")
I64 = _int_alias("i64")
I128 = _int_alias("i128")
F32 = Annotated[float, PRIMITIVES["f32"]]
F64 = Annotated[float, PRIMITIVES["f64"]]
Bool = Annotated[bool, PRIMITIVES["bool"]]


def PodField(
    default: Any = PydanticUndefined,
    *,
    default_factory: Any = None,
    length: int | None = None,
    description: str | None = None,
    **directives: Any,
) -> FieldInfo:
    """Create a field carrying podwire directives.

    Directives are applied in the order given, on top of the directives inherited
    from the enclosing record or variant.

    Args:
        default: Default value (also used when the field is skipped)
        default_factory: Callable producing the default value
        length: Exact length, making a list/bytes field a fixed-size array
        description: Field description
        **directives: podwire directives (size_type, byte_sized, skip, is_context, ...)

    Returns:
        Pydantic FieldInfo suitable for use as a field default/metadata.

    Example:
        >>> class Message(Record):
        ...     values: list[U16] = PodField(size_type="u8", size_is_next=True)
        ...     scratch: U32 = PodField(0, skip=True)
    """
    kwargs: dict[str, Any] = {"json_schema_extra": {POD_EXTRA_KEY: directives}}
    if default_factory is not None:
        kwargs["default_factory"] = default_factory
    else:
        kwargs["default"] = default
    if length is not None:
        kwargs["min_length"] = length
        kwargs["max_length"] = length
    if description is not None:
        kwargs["description"] = description
    return cast(FieldInfo, Field(**kwargs))


def FixedBytes(*, length: int, **kwargs: Any) -> FieldInfo:
    """Create a fixed-length bytes field (no length prefix on the wire).

    Args:
        length: Exact length in bytes
        **kwargs: Additional Field() arguments

    Returns:
        Pydantic FieldInfo suitable for use as a field default/metadata.

    Example:
        >>> class Message(Record):
        ...     payload: Annotated[bytes, FixedBytes(length=16)]
    """
    return cast(FieldInfo, Field(min_length=length, max_length=length, **kwargs))


def FixedList(*, length: int, **kwargs: Any) -> FieldInfo:
    """Create a fixed-size array field (exactly ``length`` items, no prefix).

    Args:
        length: Exact number of items
        **kwargs: Additional Field() arguments

    Returns:
        Pydantic FieldInfo suitable for use as a field default/metadata.

    Example:
        >>> class Message(Record):
        ...     samples: Annotated[list[U16], FixedList(length=3)]
    """
    return cast(FieldInfo, Field(min_length=length, max_length=length, **kwargs))


def field_directives(field_info: FieldInfo) -> dict[str, Any] | None:
    """Return the podwire directives attached to a field, if any."""
    extra = field_info.json_schema_extra
    if isinstance(extra, dict):
        directives = extra.get(POD_EXTRA_KEY)
        if directives is not None:
            return cast(dict[str, Any], directives)
    return None
