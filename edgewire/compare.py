"""Ordering and equality between JSON-like values."""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from typing import Any

from edgewire.serialized import SerializedValue


class CompareResult(enum.IntFlag):
    """Result of comparing two values; ``DIFFER`` means not comparable."""

    DIFFER = 0
    EQUAL = 1
    GREATER = 2
    LESS = 4
    GREATER_OR_EQUAL = 3
    LESS_OR_EQUAL = 5


def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (bool, int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, SerializedValue):
        return "raw"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return "array"
    raise TypeError(f"cannot compare values of type {type(value).__name__}")


def _ordered(lhs: Any, rhs: Any) -> CompareResult:
    if lhs < rhs:
        return CompareResult.LESS
    if lhs > rhs:
        return CompareResult.GREATER
    return CompareResult.EQUAL


def _equal(lhs: Any, rhs: Any) -> bool:
    return compare(lhs, rhs) == CompareResult.EQUAL


def _arrays_equal(lhs: Sequence, rhs: Sequence) -> bool:
    return len(lhs) == len(rhs) and all(_equal(a, b) for a, b in zip(lhs, rhs))


def _objects_equal(lhs: Mapping, rhs: Mapping) -> bool:
    if lhs is rhs:
        return True
    count = 0
    for key, value in lhs.items():
        if not _equal(value, rhs.get(key)):
            return False
        count += 1
    return count == len(rhs)


def compare(lhs: Any, rhs: Any) -> CompareResult:
    """Compare ``lhs`` with ``rhs`` the way the document model does."""
    left, right = _kind(lhs), _kind(rhs)
    if right == "number":
        return _ordered(lhs, rhs) if left == "number" else CompareResult.DIFFER
    if right == "string":
        return _ordered(lhs, rhs) if left == "string" else CompareResult.DIFFER
    if right == "null":
        return CompareResult.EQUAL if left == "null" else CompareResult.DIFFER
    if right == "raw":
        if left != "raw":
            return CompareResult.DIFFER
        a, b = bytes(lhs), bytes(rhs)
        common = min(len(a), len(b))
        return _ordered(a[:common], b[:common])
    if right == "array":
        if left == "array" and _arrays_equal(lhs, rhs):
            return CompareResult.EQUAL
        return CompareResult.DIFFER
    if left == "object" and _objects_equal(lhs, rhs):
        return CompareResult.EQUAL
    return CompareResult.DIFFER