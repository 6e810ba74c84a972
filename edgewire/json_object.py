"""Object references and member proxies over object collections."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Optional, Union

from edgewire.collection import Collection, JsonPair
from edgewire.compare import CompareResult, compare
from edgewire.serialized import SerializedValue

_SCALARS = (bool, int, float, str, SerializedValue)


def _convert(value: Any) -> Any:
    """Turn a Python value into what a collection slot stores."""
    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, JsonObject):
        if value._data is None:
            return None
        duplicate = Collection(True)
        duplicate.copy_from(value._data)
        return duplicate
    if isinstance(value, Collection):
        duplicate = Collection(value.is_object)
        duplicate.copy_from(value)
        return duplicate
    if isinstance(value, Mapping):
        result = Collection(True)
        for key, member in value.items():
            result.get_or_add_member(_check_key(key)).value = _convert(member)
        return result
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        result = Collection(False)
        for item in value:
            result.add_element().value = _convert(item)
        return result
    raise TypeError(f"cannot store {type(value).__name__} in a document")


def _check_key(key: Any) -> str:
    if not isinstance(key, str):
        raise TypeError(f"member keys must be strings, not {type(key).__name__}")
    return key


def _wrap(value: Any) -> Any:
    if isinstance(value, Collection) and value.is_object:
        return JsonObject(value)
    return value


def _plain(value: Any) -> Any:
    """Return ``value`` with collections turned into dicts and lists."""
    if isinstance(value, JsonObject):
        value = value._data
    if isinstance(value, Collection):
        if value.is_object:
            result: dict[str, Any] = {}
            for pair in value.pairs():
                result.setdefault(pair.key, _plain(pair.value))
            return result
        return [_plain(item) for item in value]
    return value


def _member_value(collection: Collection, key: Any) -> Any:
    slot = collection.get_member(key)
    return None if slot is None else slot.value


def _objects_equal(lhs: Optional[Collection], rhs: Optional[Collection]) -> bool:
    if lhs is rhs:
        return True
    if lhs is None or rhs is None:
        return False
    count = 0
    for pair in lhs.pairs():
        other = _member_value(rhs, pair.key)
        if compare(_plain(pair.value), _plain(other)) != CompareResult.EQUAL:
            return False
        count += 1
    return count == len(rhs)


class JsonObject:
    """A reference to an object collection; unbound when built from None."""

    __slots__ = ("_data",)

    def __init__(self, collection: Optional[Collection] = None) -> None:
        if collection is not None and not (
            isinstance(collection, Collection) and collection.is_object
        ):
            raise TypeError("a JsonObject needs an object collection")
        self._data = collection

    @property
    def collection(self) -> Optional[Collection]:
        return self._data

    def is_null(self) -> bool:
        """True when the reference is unbound."""
        return self._data is None

    def __bool__(self) -> bool:
        return self._data is not None

    def __len__(self) -> int:
        return 0 if self._data is None else len(self._data)

    def __contains__(self, key: Any) -> bool:
        return self.contains_key(key)

    def contains_key(self, key: Any) -> bool:
        return self._data is not None and self._data.contains_key(key)

    def __getitem__(self, key: str) -> MemberProxy:
        return MemberProxy(self, key)

    def __setitem__(self, key: str, value: Any) -> None:
        if not MemberProxy(self, key).set(value):
            raise ValueError("cannot set a member of an unbound object")

    def __iter__(self) -> Iterator[JsonPair]:
        if self._data is None:
            return
        for pair in self._data.pairs():
            yield JsonPair(pair.key, _wrap(pair.value))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JsonObject):
            return _objects_equal(self._data, other._data)
        if isinstance(other, Mapping):
            return _objects_equal(self._data, _convert(other))
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def remove(self, key: Any) -> None:
        """Remove the member with ``key``, if present."""
        if self._data is not None:
            self._data.remove_member(key)

    def clear(self) -> None:
        """Remove every member."""
        if self._data is not None:
            self._data.clear()

    def set(self, source: Union[JsonObject, Mapping, None]) -> bool:
        """Replace the content with a copy of ``source``; False if either side is null."""
        if self._data is None or source is None:
            return False
        if isinstance(source, JsonObject):
            if source._data is None:
                return False
            copied = _convert(source)
        elif isinstance(source, Mapping):
            copied = _convert(source)
        else:
            raise TypeError(f"cannot copy an object from {type(source).__name__}")
        self._data.copy_from(copied)
        return True

    def create_nested_object(self, key: str) -> JsonObject:
        """Set member ``key`` to an empty object and return it."""
        if self._data is None:
            return JsonObject(None)
        nested = Collection(True)
        self._data.get_or_add_member(_check_key(key)).value = nested
        return JsonObject(nested)

    def create_nested_array(self, key: str) -> Optional[Collection]:
        """Set member ``key`` to an empty array and return it."""
        if self._data is None:
            return None
        nested = Collection(False)
        self._data.get_or_add_member(_check_key(key)).value = nested
        return nested

    def to_dict(self) -> Optional[dict]:
        """Return the content as plain dicts and lists."""
        return _plain(self._data) if self._data is not None else None

    def __repr__(self) -> str:
        if self._data is None:
            return "JsonObject(null)"
        return f"JsonObject({self.to_dict()!r})"


class MemberProxy:
    """Reads or writes one member of an object, by key."""

    __slots__ = ("_obj", "_key")

    def __init__(self, obj: JsonObject, key: str) -> None:
        self._obj = obj
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def value(self) -> Any:
        """Return the member's value; None when it is missing or null."""
        data = self._obj._data
        if data is None:
            return None
        return _wrap(_member_value(data, self._key))

    def set(self, value: Any) -> bool:
        """Store a copy of ``value`` in the member, adding it if missing."""
        data = self._obj._data
        if data is None:
            return False
        converted = _convert(value)
        slot = data.get_or_add_member(_check_key(self._key))
        if slot is None:
            return False
        slot.value = converted
        return True

    def is_null(self) -> bool:
        return self.value() is None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MemberProxy):
            other = other.value()
        try:
            return compare(_plain(self.value()), _plain(other)) == CompareResult.EQUAL
        except TypeError:
            return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MemberProxy({self._key!r}, {self.value()!r})"