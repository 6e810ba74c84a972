import pytest

from edgewire.compare import CompareResult, compare
from edgewire.serialized import serialized


@pytest.mark.parametrize(
    "lhs, rhs, expected",
    [
        (1, 1, CompareResult.EQUAL),
        (1, 2, CompareResult.LESS),
        (2, 1.5, CompareResult.GREATER),
        (1, 1.0, CompareResult.EQUAL),
        (True, 1, CompareResult.EQUAL),
        (False, 1, CompareResult.LESS),
        (-5, 3, CompareResult.LESS),
    ],
)
def test_numbers(lhs, rhs, expected):
    assert compare(lhs, rhs) == expected


def test_strings():
    assert compare("a", "b") == CompareResult.LESS
    assert compare("b", "a") == CompareResult.GREATER
    assert compare("abc", "abc") == CompareResult.EQUAL
    assert compare("ab", "abc") == CompareResult.LESS


def test_null():
    assert compare(None, None) == CompareResult.EQUAL
    assert compare(None, 0) == CompareResult.DIFFER
    assert compare(0, None) == CompareResult.DIFFER
    assert compare(None, "") == CompareResult.DIFFER


def test_mixed_types_differ():
    assert compare("1", 1) == CompareResult.DIFFER
    assert compare(1, "1") == CompareResult.DIFFER
    assert compare([1], 1) == CompareResult.DIFFER
    assert compare({}, []) == CompareResult.DIFFER


def test_arrays():
    assert compare([1, "a", None], [1, "a", None]) == CompareResult.EQUAL
    assert compare([1, 2], [1, 3]) == CompareResult.DIFFER
    assert compare([1, 2], [1, 2, 3]) == CompareResult.DIFFER
    assert compare([[1], {"k": 2}], [[1.0], {"k": 2}]) == CompareResult.EQUAL


def test_objects():
    assert compare({"a": 1, "b": [2]}, {"b": [2], "a": 1}) == CompareResult.EQUAL
    assert compare({"a": 1}, {"a": 2}) == CompareResult.DIFFER
    assert compare({"a": 1}, {"a": 1, "b": 2}) == CompareResult.DIFFER


def test_object_missing_key_matches_null_member():
    assert compare({"a": None}, {"b": 1}) == CompareResult.EQUAL


def test_raw_values():
    assert compare(serialized("abc"), serialized("abc")) == CompareResult.EQUAL
    assert compare(serialized("abc"), serialized("abd")) == CompareResult.LESS
    assert compare(serialized("abd"), serialized("abc")) == CompareResult.GREATER
    assert compare(serialized("ab"), serialized("abc")) == CompareResult.EQUAL
    assert compare(serialized("1"), 1) == CompareResult.DIFFER


@pytest.mark.parametrize("lhs, rhs", [(1, 2), ("x", "y"), (0.5, 3), (serialized("a"), serialized("b"))])
def test_antisymmetry(lhs, rhs):
    forward = compare(lhs, rhs)
    backward = compare(rhs, lhs)
    assert forward == CompareResult.LESS
    assert backward == CompareResult.GREATER


def test_equal_is_within_or_equal_flags():
    result = compare(3, 3)
    assert result == CompareResult.EQUAL
    assert bool(result & CompareResult.LESS_OR_EQUAL) is True
    assert bool(result & CompareResult.GREATER_OR_EQUAL) is True
    assert bool(compare(1, 2) & CompareResult.GREATER_OR_EQUAL) is False


def test_unsupported_type():
    with pytest.raises(TypeError):
        compare(object(), 1)
    with pytest.raises(TypeError):
        compare(1, b"bytes")