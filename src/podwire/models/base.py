"""Base classes for plain-old-data types.

Records subclass Record. A tagged union is a TaggedUnion subclass (the union
root) whose direct subclasses are its variants, in declaration order.

Node-level directives are declared with a ``pod_directives`` class variable.
Only the directives a class declares itself are used; they are not inherited
through Python subclassing, the union root's directives reach its variants
through configuration inheritance instead.
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict


class PodModel(BaseModel):
    """Common base of records, union roots and variants.

    Attributes:
        pod_directives: Node directives, e.g. ``{"endianness": "big"}``
    """

    model_config = ConfigDict(
        strict=False,
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra="forbid",
    )

    pod_directives: ClassVar[Optional[dict[str, Any]]] = None

    @classmethod
    def local_directives(cls) -> Optional[dict[str, Any]]:
        """Directives declared on this very class."""
        return cls.__dict__.get("pod_directives")


class Record(PodModel):
    """Base class for records.

    Fields are encoded in declaration order.

    Example:
        >>> from podwire import Record, PodField, U16, U32
        >>> class Header(Record):
        ...     pod_directives = {"endianness": "big", "magic": ("u16", 0xBABA)}
        ...
        ...     kind: U16
        ...     values: list[U32] = PodField(size_type="u16")
    """


class TaggedUnion(PodModel):
    """Base class for tagged unions.

    Subclass it once to declare the union root (which carries ``tag_type``), then
    subclass the root once per variant. Variants carry a ``tag`` directive; at
    most one non-skipped variant may omit it and it must come last.

    Example:
        >>> class Shape(TaggedUnion):
        ...     pod_directives = {"tag_type": "u8"}
        >>> class Circle(Shape):
        ...     pod_directives = {"tag": 1}
        ...     radius: U16
        >>> class Square(Shape):
        ...     pod_directives = {"tag": 2}
        ...     side: U16

    Attributes:
        pod_variants: Variants of a union root, in declaration order
        pod_union_root: The union root a variant belongs to
    """

    pod_variants: ClassVar[list[type[TaggedUnion]]] = []
    pod_union_root: ClassVar[Optional[type[TaggedUnion]]] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Register variants with their union root."""
        super().__init_subclass__(**kwargs)

        if TaggedUnion in cls.__bases__:
            cls.pod_variants = []
            cls.pod_union_root = None
            return

        parent = next(b for b in cls.__mro__[1:] if issubclass(b, TaggedUnion))
        cls.pod_variants = []
        if parent.pod_union_root is None:
            cls.pod_union_root = parent
            parent.pod_variants.append(cls)
        else:
            # Subclass of a variant: belongs to the same root, but is not a variant
            cls.pod_union_root = parent.pod_union_root

    @classmethod
    def is_union_root(cls) -> bool:
        return cls is not TaggedUnion and cls.pod_union_root is None
