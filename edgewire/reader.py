"""Byte readers over buffers, strings, iterables and streams."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Optional


def _is_stream(source: Any) -> bool:
    return hasattr(source, "read") and not isinstance(
        source, (bytes, bytearray, memoryview, str)
    )


def _to_bytes(source: Any) -> bytes:
    if source is None:
        return b""
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, Iterable):
        items = list(source)
        if all(isinstance(item, str) for item in items):
            return "".join(items).encode("utf-8")
        try:
            return bytes(items)
        except (TypeError, ValueError) as exc:
            raise TypeError(f"cannot read bytes from {type(source).__name__}") from exc
    raise TypeError(f"cannot read bytes from {type(source).__name__}")


class BoundedReader:
    """Reads at most ``size`` bytes from an in-memory source."""

    def __init__(self, source: Any, size: int) -> None:
        if size < 0:
            raise ValueError("size must not be negative")
        self._data = _to_bytes(source)[:size]
        self._pos = 0

    def read(self) -> int:
        """Return the next byte, or -1 at the end of input."""
        if self._pos >= len(self._data):
            return -1
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read_bytes(self, length: int) -> bytes:
        """Return up to ``length`` bytes; fewer at the end of input."""
        chunk = self._data[self._pos:self._pos + length]
        self._pos += len(chunk)
        return chunk


class Reader:
    """Reads bytes from a buffer, string, iterable or file-like stream."""

    def __init__(self, source: Any) -> None:
        if _is_stream(source):
            self._stream = source
            self._pending = b""
            self._inner: Optional[BoundedReader] = None
        else:
            self._stream = None
            self._pending = b""
            data = _to_bytes(source)
            self._inner = BoundedReader(data, len(data))

    def _pull(self, length: int) -> bytes:
        out = self._pending[:length]
        self._pending = self._pending[length:]
        while len(out) < length:
            chunk = self._stream.read(length - len(out))
            if not chunk:
                break
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            need = length - len(out)
            out += chunk[:need]
            self._pending += chunk[need:]
        return out

    def read(self) -> int:
        """Return the next byte, or -1 at the end of input."""
        if self._inner is not None:
            return self._inner.read()
        chunk = self._pull(1)
        return chunk[0] if chunk else -1

    def read_bytes(self, length: int) -> bytes:
        """Return up to ``length`` bytes; fewer at the end of input."""
        if self._inner is not None:
            return self._inner.read_bytes(length)
        return self._pull(length)


def make_reader(source: Any, size: Optional[int] = None):
    """Return a reader for ``source``, bounded to ``size`` bytes when given."""
    if size is None:
        return Reader(source)
    return BoundedReader(source, size)