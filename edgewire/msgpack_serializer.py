"""Encoding of JSON-like values as MessagePack."""

from __future__ import annotations

import math
import struct
from collections.abc import Mapping, Sequence
from typing import Any

from edgewire.collection import Collection
from edgewire.serialized import SerializedValue

_INT64_MIN = -(1 << 63)
_UINT64_MAX = (1 << 64) - 1


def _write_unsigned(out: bytearray, value: int) -> None:
    if value > _UINT64_MAX:
        raise OverflowError(f"integer too large for MessagePack: {value}")
    if value <= 0x7F:
        out.append(value)
    elif value <= 0xFF:
        out.append(0xCC)
        out.append(value)
    elif value <= 0xFFFF:
        out.append(0xCD)
        out += struct.pack(">H", value)
    elif value <= 0xFFFFFFFF:
        out.append(0xCE)
        out += struct.pack(">I", value)
    else:
        out.append(0xCF)
        out += struct.pack(">Q", value)


def _write_signed(out: bytearray, value: int) -> None:
    if value > 0:
        _write_unsigned(out, value)
    elif value >= -0x20:
        out += struct.pack(">b", value)
    elif value >= -0x80:
        out.append(0xD0)
        out += struct.pack(">b", value)
    elif value >= -0x8000:
        out.append(0xD1)
        out += struct.pack(">h", value)
    elif value >= -0x80000000:
        out.append(0xD2)
        out += struct.pack(">i", value)
    elif value >= _INT64_MIN:
        out.append(0xD3)
        out += struct.pack(">q", value)
    else:
        raise OverflowError(f"integer too small for MessagePack: {value}")


def _as_float32(value: float) -> float | None:
    try:
        return struct.unpack(">f", struct.pack(">f", value))[0]
    except OverflowError:
        return None


def _write_float(out: bytearray, value: float) -> None:
    single = _as_float32(value)
    if single is None or single != value:
        out.append(0xCB)
        out += struct.pack(">d", value)
        return
    if math.isfinite(single) and _INT64_MIN <= single < -_INT64_MIN:
        truncated = int(single)
        if float(truncated) == single:
            _write_signed(out, truncated)
            return
    out.append(0xCA)
    out += struct.pack(">f", single)


def _write_string(out: bytearray, text: str) -> None:
    data = text.encode("utf-8")
    n = len(data)
    if n < 0x20:
        out.append(0xA0 + n)
    elif n < 0x100:
        out.append(0xD9)
        out.append(n)
    elif n < 0x10000:
        out.append(0xDA)
        out += struct.pack(">H", n)
    else:
        out.append(0xDB)
        out += struct.pack(">I", n)
    out += data


def _write_container_header(out: bytearray, n: int, small: int, mid: int) -> None:
    if n < 0x10:
        out.append(small + n)
    elif n < 0x10000:
        out.append(mid)
        out += struct.pack(">H", n)
    else:
        out.append(mid + 1)
        out += struct.pack(">I", n)


def _write_object(out: bytearray, pairs: list[tuple[Any, Any]]) -> None:
    _write_container_header(out, len(pairs), 0x80, 0xDE)
    for key, member in pairs:
        if not isinstance(key, str):
            raise TypeError(f"object keys must be strings, not {type(key).__name__}")
        _write_string(out, key)
        _write(out, member)


def _write_array(out: bytearray, items: list[Any]) -> None:
    _write_container_header(out, len(items), 0x90, 0xDC)
    for item in items:
        _write(out, item)


def _write(out: bytearray, value: Any) -> None:
    if value is None:
        out.append(0xC0)
    elif isinstance(value, bool):
        out.append(0xC3 if value else 0xC2)
    elif isinstance(value, int):
        _write_signed(out, value)
    elif isinstance(value, float):
        _write_float(out, value)
    elif isinstance(value, str):
        _write_string(out, value)
    elif isinstance(value, SerializedValue):
        out += bytes(value)
    elif isinstance(value, Collection):
        if value.is_object:
            _write_object(out, [(pair.key, pair.value) for pair in value.pairs()])
        else:
            _write_array(out, list(value))
    elif isinstance(value, Mapping):
        _write_object(out, list(value.items()))
    elif isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        _write_array(out, list(value))
    else:
        raise TypeError(f"cannot encode {type(value).__name__} as MessagePack")


def serialize_msgpack(value: Any) -> bytes:
    """Return the MessagePack encoding of ``value``."""
    out = bytearray()
    _write(out, value)
    return bytes(out)


def measure_msgpack(value: Any) -> int:
    """Return the number of bytes ``serialize_msgpack`` produces for ``value``."""
    return len(serialize_msgpack(value))