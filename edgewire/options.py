"""Deserialization errors, nesting limits, filters and option bundles."""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

DEFAULT_NESTING_LIMIT = 10


class ErrorCode(enum.IntEnum):
    """Outcome of a deserialization."""

    OK = 0
    EMPTY_INPUT = 1
    INCOMPLETE_INPUT = 2
    INVALID_INPUT = 3
    NO_MEMORY = 4
    TOO_DEEP = 5

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    ErrorCode.OK: "Ok",
    ErrorCode.EMPTY_INPUT: "EmptyInput",
    ErrorCode.INCOMPLETE_INPUT: "IncompleteInput",
    ErrorCode.INVALID_INPUT: "InvalidInput",
    ErrorCode.NO_MEMORY: "NoMemory",
    ErrorCode.TOO_DEEP: "TooDeep",
}


class DeserializationError(Exception):
    """Raised when an input document cannot be deserialized."""

    def __init__(self, code: ErrorCode = ErrorCode.OK) -> None:
        self.code = ErrorCode(code)
        super().__init__(self.code.message)

    def __str__(self) -> str:
        return self.code.message

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DeserializationError):
            return self.code == other.code
        if isinstance(other, ErrorCode):
            return self.code == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.code)


@dataclass(frozen=True)
class NestingLimit:
    """How many more levels of arrays and objects may be entered."""

    value: int = DEFAULT_NESTING_LIMIT

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"nesting limit out of range: {self.value}")

    def decrement(self) -> NestingLimit:
        if self.value == 0:
            raise ValueError("nesting limit already reached")
        return NestingLimit(self.value - 1)

    def reached(self) -> bool:
        return self.value == 0


def _as_boolean(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (bool, int, float)):
        return value != 0
    return True


def _is_true(value: Any) -> bool:
    return isinstance(value, (bool, int, float)) and value == 1


def _lookup(value: Any, key: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get(key) if isinstance(key, str) else None
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        if isinstance(key, int) and not isinstance(key, bool) and 0 <= key < len(value):
            return value[key]
    return None


class Filter:
    """Selects which parts of a document are kept, driven by a JSON-like template."""

    __slots__ = ("_variant",)

    def __init__(self, variant: Any) -> None:
        self._variant = variant

    def allow(self) -> bool:
        return _as_boolean(self._variant)

    def allow_array(self) -> bool:
        variant = self._variant
        return _is_true(variant) or (
            isinstance(variant, Sequence)
            and not isinstance(variant, (str, bytes, bytearray))
        )

    def allow_object(self) -> bool:
        return _is_true(self._variant) or isinstance(self._variant, Mapping)

    def allow_value(self) -> bool:
        return _is_true(self._variant)

    def __getitem__(self, key: Any) -> Filter:
        if _is_true(self._variant):
            return self
        member = _lookup(self._variant, key)
        return Filter(_lookup(self._variant, "*") if member is None else member)

    def __repr__(self) -> str:
        return f"Filter({self._variant!r})"


class AllowAllFilter:
    """A filter that keeps everything."""

    __slots__ = ()

    def allow(self) -> bool:
        return True

    def allow_array(self) -> bool:
        return True

    def allow_object(self) -> bool:
        return True

    def allow_value(self) -> bool:
        return True

    def __getitem__(self, key: Any) -> AllowAllFilter:
        return AllowAllFilter()

    def __repr__(self) -> str:
        return "AllowAllFilter()"


AnyFilter = Union[Filter, AllowAllFilter]


@dataclass(frozen=True)
class DeserializationOptions:
    """A filter together with a nesting limit."""

    filter: AnyFilter = field(default_factory=AllowAllFilter)
    nesting_limit: NestingLimit = field(default_factory=NestingLimit)


def _check_filter(candidate: Any) -> AnyFilter:
    if not isinstance(candidate, (Filter, AllowAllFilter)):
        raise TypeError(f"not a filter: {candidate!r}")
    return candidate


def make_deserialization_options(*args: Any) -> DeserializationOptions:
    """Build options from a filter and/or a nesting limit, given in either order."""
    if not args:
        return DeserializationOptions()
    if len(args) == 1:
        (only,) = args
        if isinstance(only, NestingLimit):
            return DeserializationOptions(nesting_limit=only)
        return DeserializationOptions(filter=_check_filter(only))
    if len(args) == 2:
        first, second = args
        if isinstance(first, NestingLimit) and not isinstance(second, NestingLimit):
            return DeserializationOptions(_check_filter(second), first)
        if isinstance(second, NestingLimit) and not isinstance(first, NestingLimit):
            return DeserializationOptions(_check_filter(first), second)
    raise TypeError("expected at most one filter and one nesting limit")