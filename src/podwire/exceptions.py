"""Exception hierarchy for podwire.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from PodwireError for easy catching of any podwire-specific error.
"""

from __future__ import annotations

from typing import Any


class PodwireError(Exception):
    """Base exception for all podwire errors."""

    pass


class SchemaError(PodwireError):
    """Raised when a type description or its directives are invalid.

    Schema errors are raised once, when a codec is compiled, never per call.

    Examples:
        - Missing tag_type on a tagged union
        - Catch-all variant that is not the last variant
        - Non-primitive type used where a primitive is required
        - Unknown directive
    """

    pass


class StreamError(PodwireError):
    """Raised when the underlying byte source or sink fails.

    Examples:
        - Truncated data (source cannot fill the requested buffer)
        - Sink write failure
    """

    pass


class EncodeError(PodwireError):
    """Raised when encoding a value fails.

    Examples:
        - Value out of range for its primitive type
        - Fixed-size array of the wrong length
        - Length prefix that does not fit size_type
    """

    pass


class UnrepresentableError(EncodeError):
    """Raised when encoding a value that the wire format excludes (a skipped variant)."""

    pass


class DecodeError(PodwireError):
    """Raised when decoding binary data fails.

    Examples:
        - Decoded values rejected by the model's validation
        - Corrupted data structure
    """

    pass


class FormatError(DecodeError):
    """Raised when the byte stream violates the configured layout.

    Examples:
        - Magic value mismatch
        - Discriminant matching no variant
        - Malformed byte-framed sequence

    Attributes:
        expected: Expected value, if any
        observed: Value actually read from the stream
    """

    def __init__(self, message: str, *, expected: Any = None, observed: Any = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.observed = observed
