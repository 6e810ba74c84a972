"""Pre-serialized document fragments inserted verbatim."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

RawData = Union[str, bytes]


@dataclass(frozen=True)
class SerializedValue:
    """A piece of already serialized data, written out as is."""

    data: RawData

    @property
    def size(self) -> int:
        return len(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def __str__(self) -> str:
        if isinstance(self.data, bytes):
            return self.data.decode("utf-8", errors="replace")
        return self.data

    def __bytes__(self) -> bytes:
        if isinstance(self.data, bytes):
            return self.data
        return self.data.encode("utf-8")


def serialized(value: Union[RawData, bytearray, SerializedValue], size: Optional[int] = None) -> SerializedValue:
    """Wrap ``value`` (optionally its first ``size`` units) as pre-serialized data."""
    if isinstance(value, SerializedValue):
        value = value.data
    if isinstance(value, bytearray):
        value = bytes(value)
    if not isinstance(value, (str, bytes)):
        raise TypeError(f"cannot serialize {type(value).__name__} verbatim")
    if size is None:
        return SerializedValue(value)
    if size < 0 or size > len(value):
        raise ValueError(f"size {size} out of range for data of length {len(value)}")
    return SerializedValue(value[:size])