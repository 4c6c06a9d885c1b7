"""Byte-level reading and writing utilities.

This module wraps the caller's byte source and sink. Reads are exact: they either
return the requested number of bytes or fail. Both sides keep a running byte
offset, used for diagnostics only.
"""

from __future__ import annotations

import io
from typing import Any

from ..exceptions import StreamError


class ByteReader:
    """Reads exact byte runs from bytes-like data or a binary file object.

    Example:
        >>> reader = ByteReader(b"\\x01\\x02\\x03")
        >>> reader.read(2)
        b'\\x01\\x02'
        >>> reader.position
        2
    """

    def __init__(self, source: Any) -> None:
        """Initialize a reader.

        Args:
            source: bytes, bytearray, memoryview or an object with a read(n) method
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        elif not hasattr(source, "read"):
            raise TypeError(f"Cannot read from {type(source).__name__}")
        self._source = source
        self._position = 0

    def read(self, num_bytes: int) -> bytes:
        """Read exactly num_bytes bytes.

        Args:
            num_bytes: Number of bytes to read

        Returns:
            The bytes read

        Raises:
            StreamError: If the source runs out of data
        """
        if num_bytes == 0:
            return b""

        chunks = []
        remaining = num_bytes
        while remaining > 0:
            try:
                chunk = self._source.read(remaining)
            except OSError as err:
                raise StreamError(f"Read failed at offset {self._position}: {err}") from err
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)

        data = b"".join(chunks)
        self._position += len(data)
        if len(data) < num_bytes:
            raise StreamError(
                f"Truncated data: need {num_bytes} bytes at offset "
                f"{self._position - len(data)}, got {len(data)}"
            )
        return data

    @property
    def position(self) -> int:
        """Number of bytes consumed so far."""
        return self._position


class ByteWriter:
    """Appends bytes to a binary file object or to an in-memory buffer.

    Example:
        >>> writer = ByteWriter()
        >>> writer.write(b"\\x12\\x34")
        >>> writer.getvalue()
        b'\\x124'
    """

    def __init__(self, sink: Any = None) -> None:
        """Initialize a writer.

        Args:
            sink: Object with a write(data) method, or None to buffer in memory
        """
        self._buffer: bytearray | None = None
        if sink is None:
            self._buffer = bytearray()
        elif not hasattr(sink, "write"):
            raise TypeError(f"Cannot write to {type(sink).__name__}")
        self._sink = sink
        self._position = 0

    def write(self, data: bytes) -> None:
        """Append data to the sink.

        Raises:
            StreamError: If the sink fails
        """
        if self._buffer is not None:
            self._buffer.extend(data)
        else:
            try:
                self._sink.write(data)
            except OSError as err:
                raise StreamError(f"Write failed at offset {self._position}: {err}") from err
        self._position += len(data)

    @property
    def position(self) -> int:
        """Number of bytes written so far."""
        return self._position

    def getvalue(self) -> bytes:
        """Return the in-memory buffer.

        Raises:
            ValueError: If the writer wraps an external sink
        """
        if self._buffer is None:
            raise ValueError("getvalue() is only available for in-memory writers")
        return bytes(self._buffer)
