"""Decoding of MessagePack input into collections and plain values."""

from __future__ import annotations

import struct
from typing import Any, Optional

from edgewire.collection import Collection
from edgewire.options import (
    AllowAllFilter,
    AnyFilter,
    DeserializationError,
    ErrorCode,
    NestingLimit,
    make_deserialization_options,
)
from edgewire.reader import make_reader

# Fixed-width payloads: type code -> (struct format, byte count).
_INTEGERS = {
    0xCC: ">B",
    0xCD: ">H",
    0xCE: ">I",
    0xCF: ">Q",
    0xD0: ">b",
    0xD1: ">h",
    0xD2: ">i",
    0xD3: ">q",
}
_FLOATS = {0xCA: ">f", 0xCB: ">d"}
_SIZE_FORMATS = {1: ">B", 2: ">H", 4: ">I"}
# Fixed-size extensions are skipped: type byte plus payload.
_FIXEXT_SKIP = {0xD4: 2, 0xD5: 3, 0xD6: 5, 0xD7: 9, 0xD8: 17}
_BIN_SIZES = {0xC4: 1, 0xC5: 2, 0xC6: 4}
_EXT_SIZES = {0xC7: 1, 0xC8: 2, 0xC9: 4}
_STR_SIZES = {0xD9: 1, 0xDA: 2, 0xDB: 4}


def double_to_float(data: bytes) -> bytes:
    """Narrow an 8-byte big-endian double to a 4-byte big-endian float."""
    d = bytes(data)
    if len(d) < 8:
        raise ValueError("a double needs 8 bytes")
    return bytes(
        (
            ((d[0] & 0xC0) | ((d[0] << 3) & 0x3F) | (d[1] >> 5)) & 0xFF,
            ((d[1] << 3) | (d[2] >> 5)) & 0xFF,
            ((d[2] << 3) | (d[3] >> 5)) & 0xFF,
            ((d[3] << 3) | (d[4] >> 5)) & 0xFF,
        )
    )


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


class MsgPackDeserializer:
    """Parses one MessagePack value from a reader."""

    def __init__(self, reader: Any) -> None:
        self._reader = reader
        self._found_something = False

    def parse(
        self,
        filter: Optional[AnyFilter] = None,
        nesting_limit: Optional[NestingLimit] = None,
    ) -> Any:
        """Return the parsed value; raise DeserializationError on failure."""
        if filter is None:
            filter = AllowAllFilter()
        if nesting_limit is None:
            nesting_limit = NestingLimit()
        try:
            return self._parse_variant(filter, nesting_limit)
        except DeserializationError:
            if not self._found_something:
                raise DeserializationError(ErrorCode.EMPTY_INPUT) from None
            raise

    # Low-level reading

    def _read_byte(self) -> int:
        value = self._reader.read()
        if value < 0:
            raise DeserializationError(ErrorCode.INCOMPLETE_INPUT)
        return value

    def _read_exact(self, n: int) -> bytes:
        if n == 0:
            return b""
        data = self._reader.read_bytes(n)
        if len(data) != n:
            raise DeserializationError(ErrorCode.INCOMPLETE_INPUT)
        return data

    def _read_struct(self, fmt: str) -> Any:
        return struct.unpack(fmt, self._read_exact(struct.calcsize(fmt)))[0]

    def _read_size(self, width: int) -> int:
        return self._read_struct(_SIZE_FORMATS[width])

    def _skip(self, n: int) -> None:
        self._read_exact(n)

    # Values

    def _parse_variant(self, filter: AnyFilter, nesting: NestingLimit) -> Any:
        code = self._read_byte()
        self._found_something = True
        allow_value = filter.allow_value()

        if code == 0xC0:
            return None
        if code == 0xC1:
            raise DeserializationError(ErrorCode.INVALID_INPUT)
        if code in (0xC2, 0xC3):
            return (code == 0xC3) if allow_value else None
        if code in _BIN_SIZES:
            self._skip(self._read_size(_BIN_SIZES[code]))
            return None
        if code in _EXT_SIZES:
            self._skip(self._read_size(_EXT_SIZES[code]) + 1)
            return None
        if code in _FLOATS:
            fmt = _FLOATS[code]
            if allow_value:
                return float(self._read_struct(fmt))
            self._skip(struct.calcsize(fmt))
            return None
        if code in _INTEGERS:
            fmt = _INTEGERS[code]
            if allow_value:
                return self._read_struct(fmt)
            self._skip(struct.calcsize(fmt))
            return None
        if code in _FIXEXT_SKIP:
            self._skip(_FIXEXT_SKIP[code])
            return None
        if code in _STR_SIZES:
            raw = self._read_exact(self._read_size(_STR_SIZES[code]))
            return _decode(raw) if allow_value else None
        if code in (0xDC, 0xDD):
            size = self._read_size(2 if code == 0xDC else 4)
            return self._read_array(size, filter, nesting)
        if code in (0xDE, 0xDF):
            size = self._read_size(2 if code == 0xDE else 4)
            return self._read_object(size, filter, nesting)
        if code & 0xF0 == 0x80:
            return self._read_object(code & 0x0F, filter, nesting)
        if code & 0xF0 == 0x90:
            return self._read_array(code & 0x0F, filter, nesting)
        if code & 0xE0 == 0xA0:
            raw = self._read_exact(code & 0x1F)
            return _decode(raw) if allow_value else None
        # Positive and negative fixint.
        if not allow_value:
            return None
        return code - 0x100 if code >= 0x80 else code

    def _read_array(self, n: int, filter: AnyFilter, nesting: NestingLimit) -> Any:
        if nesting.reached():
            raise DeserializationError(ErrorCode.TOO_DEEP)
        array = Collection(False) if filter.allow_array() else None
        member_filter = filter[0]
        inner = nesting.decrement()
        for _ in range(n):
            value = self._parse_variant(member_filter, inner)
            if array is not None and member_filter.allow():
                array.add_element().value = value
        return array

    def _read_object(self, n: int, filter: AnyFilter, nesting: NestingLimit) -> Any:
        if nesting.reached():
            raise DeserializationError(ErrorCode.TOO_DEEP)
        obj = Collection(True) if filter.allow_object() else None
        inner = nesting.decrement()
        for _ in range(n):
            key = self._read_key()
            member_filter = filter[key]
            value = self._parse_variant(member_filter, inner)
            if obj is not None and member_filter.allow():
                obj.add_member(key).value = value
        return obj

    def _read_key(self) -> str:
        code = self._read_byte()
        if code & 0xE0 == 0xA0:
            return _decode(self._read_exact(code & 0x1F))
        if code in _STR_SIZES:
            return _decode(self._read_exact(self._read_size(_STR_SIZES[code])))
        raise DeserializationError(ErrorCode.INVALID_INPUT)


def deserialize_msgpack(source: Any, *args: Any) -> Any:
    """Parse MessagePack from ``source``.

    An integer first argument bounds the input to that many bytes; the
    remaining arguments are a filter and/or a nesting limit.
    """
    size: Optional[int] = None
    if args and isinstance(args[0], int) and not isinstance(args[0], bool):
        size, args = args[0], args[1:]
    options = make_deserialization_options(*args)
    reader = make_reader(source, size)
    return MsgPackDeserializer(reader).parse(options.filter, options.nesting_limit)