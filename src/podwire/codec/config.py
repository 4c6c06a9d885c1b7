"""Layered codec configuration.

Each schema node (record, union, variant, field) gets an immutable PodConfig
derived from its parent's: the parent is copied, the non-inherited keys are
reset, then the node's own directives are applied in declaration order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Optional, Union

from ..exceptions import SchemaError
from .primitives import Endianness, PrimitiveType, primitive_type

Directives = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]


@dataclass(frozen=True)
class TagRange:
    """Inclusive range of discriminant values.

    Example:
        >>> TagRange(6, 8).matches(8)
        True
    """

    low: Any
    high: Any

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise SchemaError(f"Invalid tag range: {self.low} > {self.high}")

    def matches(self, value: Any) -> bool:
        return self.low <= value <= self.high

    def __str__(self) -> str:
        return f"{self.low}..={self.high}"


@dataclass(frozen=True)
class TagPattern:
    """Alternation of literal values and inclusive ranges.

    A pattern with a single literal alternative is the only kind that can
    supply a discriminant when writing.
    """

    alternatives: tuple[Any, ...]

    def matches(self, value: Any) -> bool:
        for alternative in self.alternatives:
            if isinstance(alternative, TagRange):
                if alternative.matches(value):
                    return True
            elif alternative == value:
                return True
        return False

    @property
    def literal(self) -> Any:
        """The single literal value of this pattern, or None."""
        if len(self.alternatives) == 1 and not isinstance(self.alternatives[0], TagRange):
            return self.alternatives[0]
        return None

    @property
    def is_literal(self) -> bool:
        return self.literal is not None

    def __str__(self) -> str:
        return " | ".join(str(a) for a in self.alternatives)


def tag_pattern(spec: Any) -> TagPattern:
    """Normalize a tag directive value.

    Accepts a literal (int, bool, float), a TagRange, a step-1 ``range`` (half-open,
    converted to an inclusive TagRange), or a tuple/list/set of those.

    Raises:
        SchemaError: If spec is not a valid pattern
    """
    if isinstance(spec, TagPattern):
        return spec
    if isinstance(spec, (tuple, list, set, frozenset)):
        if not spec:
            raise SchemaError("Empty tag alternation")
        alternatives: list[Any] = []
        for item in spec:
            alternatives.extend(tag_pattern(item).alternatives)
        return TagPattern(tuple(alternatives))
    if isinstance(spec, range):
        if spec.step != 1 or len(spec) == 0:
            raise SchemaError(f"Tag range must be non-empty with step 1, got {spec}")
        return TagPattern((TagRange(spec.start, spec.stop - 1),))
    if isinstance(spec, TagRange):
        return TagPattern((spec,))
    if isinstance(spec, (bool, int, float)):
        return TagPattern((spec,))
    raise SchemaError(f"Invalid tag pattern {spec!r}")


@dataclass(frozen=True)
class PodConfig:
    """Resolved configuration of one schema node.

    Attributes:
        endianness: Byte order of all primitives under this node
        tag_type: Discriminant type (tagged unions)
        tag: Variant pattern, None for the catch-all
        keep_tag: Variant's first field receives the discriminant
        keep_diff: Offset between the discriminant and the retained field
        size_type: Length-prefix type of variable sequences
        byte_sized: Length prefix counts bytes instead of items
        size_is_next: Stored length prefix is the true length plus one
        magic: (type, value) constant written before the node, not inherited
        skip: Node is absent from the wire
        context_type: Type of the context value threaded through this node
        is_context: Field value becomes the context of later siblings, not inherited
        track_position: Log field byte offsets at DEBUG level
    """

    endianness: Endianness = Endianness.NATIVE
    tag_type: Optional[PrimitiveType] = None
    tag: Optional[TagPattern] = None
    keep_tag: bool = False
    keep_diff: int = 0
    size_type: Optional[PrimitiveType] = None
    byte_sized: bool = False
    size_is_next: bool = False
    magic: Optional[tuple[PrimitiveType, Any]] = None
    skip: bool = False
    context_type: type = type(None)
    is_context: bool = False
    track_position: bool = True

    def derive(self, directives: Directives | None = None) -> PodConfig:
        """Return the child configuration for a node carrying directives."""
        return resolve_config(self, directives)


DEFAULT_CONFIG = PodConfig()


def _endianness(value: Any) -> Endianness:
    if isinstance(value, Endianness):
        return value
    try:
        return Endianness(value)
    except ValueError:
        raise SchemaError(
            f"Invalid endianness {value!r}. Must be 'big', 'little' or 'native'"
        ) from None


def _size_type(value: Any) -> PrimitiveType:
    ptype = primitive_type(value)
    if not ptype.is_integer:
        raise SchemaError(f"size_type must be an integer type, got {ptype}")
    return ptype


def _magic(value: Any) -> tuple[PrimitiveType, Any]:
    if isinstance(value, Mapping) and len(value) == 1:
        value = next(iter(value.items()))
    if not isinstance(value, tuple) or len(value) != 2:
        raise SchemaError(f"magic must be a (type, value) pair, got {value!r}")
    ptype = primitive_type(value[0])
    if not ptype.contains(value[1]):
        raise SchemaError(f"Magic value {value[1]!r} does not fit {ptype}")
    return ptype, value[1]


def _context_type(value: Any) -> type:
    if value is None:
        return type(None)
    if not isinstance(value, type):
        raise SchemaError(f"context must be a type, got {value!r}")
    return value


_SETTERS: dict[str, Any] = {
    "endianness": lambda v: {"endianness": _endianness(v)},
    "big_endian": lambda v: {"endianness": Endianness.BIG} if v else {},
    "little_endian": lambda v: {"endianness": Endianness.LITTLE} if v else {},
    "native_endian": lambda v: {"endianness": Endianness.NATIVE} if v else {},
    "tag_type": lambda v: {"tag_type": primitive_type(v)},
    "tag": lambda v: {"tag": None if v is None else tag_pattern(v)},
    "keep_tag": lambda v: {"keep_tag": bool(v)},
    "keep_diff": lambda v: {"keep_diff": _keep_diff(v), "keep_tag": True},
    "size_type": lambda v: {"size_type": _size_type(v)},
    "byte_sized": lambda v: {"byte_sized": bool(v)},
    "size_is_next": lambda v: {"size_is_next": bool(v)},
    "magic": lambda v: {"magic": _magic(v)},
    "skip": lambda v: {"skip": bool(v)},
    "context": lambda v: {"context_type": _context_type(v)},
    "is_context": lambda v: {"is_context": bool(v)},
    "no_pos": lambda v: {"track_position": not v},
}


def _keep_diff(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise SchemaError(f"keep_diff must be an integer, got {value!r}")
    return value


def resolve_config(parent: PodConfig | None, directives: Directives | None) -> PodConfig:
    """Derive a node configuration from its parent and its own directives.

    Args:
        parent: Parent configuration, or None for the library default
        directives: Mapping or sequence of (key, value) pairs, applied in order

    Returns:
        The resolved configuration

    Raises:
        SchemaError: If a directive is unknown or has an invalid value

    Example:
        >>> root = resolve_config(None, {"endianness": "big", "magic": ("u16", 0xABCD)})
        >>> child = resolve_config(root, {"size_type": "u16"})
        >>> child.endianness, child.magic
        (<Endianness.BIG: 'big'>, None)
    """
    base = parent if parent is not None else DEFAULT_CONFIG
    changes: dict[str, Any] = {"magic": None, "is_context": False}

    if directives is not None:
        items = directives.items() if isinstance(directives, Mapping) else directives
        for key, value in items:
            setter = _SETTERS.get(key)
            if setter is None:
                raise SchemaError(f"Unsupported directive {key!r}")
            try:
                changes.update(setter(value))
            except SchemaError as err:
                raise SchemaError(f"Directive {key!r}: {err}") from err

    return replace(base, **changes)
