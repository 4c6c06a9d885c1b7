"""Context threading between a node and the types it delegates to.

A context value travels as an explicit argument of every decode/encode call.
When a record hands off to a nested type (or a registered custom codec) whose
context type differs from the one currently in scope, a conversion registered
for that (source, target) pair derives the nested context.
"""

from __future__ import annotations

from typing import Any, Callable

from ..exceptions import SchemaError
from .base import Codec
from .stream import ByteReader, ByteWriter

ContextConversion = Callable[[Any], Any]

_NONE_TYPE = type(None)


def _identity(context: Any) -> Any:
    return context


def _unit(context: Any) -> None:
    return None


class ContextConversions:
    """Explicit conversions between context types.

    Example:
        >>> conversions = ContextConversions()
        >>> conversions.register(int, str, lambda n: str(n))
        >>> conversions.converter(int, str)(5)
        '5'
    """

    def __init__(self) -> None:
        self._conversions: dict[tuple[type, type], ContextConversion] = {}

    def register(self, source: type, target: type, conversion: ContextConversion) -> None:
        """Register the conversion used when a source context feeds a target type."""
        self._conversions[(source, target)] = conversion

    def converter(self, source: type, target: type) -> ContextConversion:
        """Find how to turn a context of type source into one of type target.

        The unit target always receives None. A source that is the target, or a
        subclass of it, passes through unchanged. Anything else needs a
        registered conversion.

        Raises:
            SchemaError: If no conversion applies
        """
        if target is _NONE_TYPE:
            return _unit
        conversion = self._conversions.get((source, target))
        if conversion is not None:
            return conversion
        if isinstance(source, type) and issubclass(source, target):
            return _identity
        raise SchemaError(
            f"No context conversion from {source.__name__} to {target.__name__}. "
            f"Register one with register_context_conversion()"
        )


def is_identity(conversion: ContextConversion) -> bool:
    return conversion is _identity


class ContextBridge(Codec):
    """Applies a context conversion before delegating to another codec."""

    def __init__(self, codec: Codec, conversion: ContextConversion) -> None:
        self._codec = codec
        self._conversion = conversion

    @property
    def context_type(self) -> type:  # type: ignore[override]
        return self._codec.context_type

    def size(self, value: Any) -> int:
        return self._codec.size(value)

    def decode(self, reader: ByteReader, context: Any = None) -> Any:
        return self._codec.decode(reader, self._conversion(context))

    def encode(self, value: Any, writer: ByteWriter, context: Any = None) -> None:
        self._codec.encode(value, writer, self._conversion(context))
