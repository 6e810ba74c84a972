"""Ordered storage for the elements of arrays and the members of objects."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(eq=False)
class Slot:
    """One entry of a collection: an optional key and a value."""

    key: Optional[str] = None
    value: Any = None
    owns_key: bool = True


@dataclass(frozen=True)
class JsonPair:
    """A key together with its value, as seen when walking an object."""

    key: Optional[str]
    value: Any


def _check_key(key: Any) -> str:
    if key is None:
        raise ValueError("a member needs a key")
    if not isinstance(key, str):
        raise TypeError(f"member keys must be strings, not {type(key).__name__}")
    return key


def _copy_value(value: Any) -> Any:
    if isinstance(value, Collection):
        duplicate = Collection(value.is_object)
        duplicate.copy_from(value)
        return duplicate
    return value


class Collection:
    """The ordered slots behind an array (``is_object`` false) or an object."""

    __slots__ = ("is_object", "_slots")

    def __init__(self, is_object: bool = False) -> None:
        self.is_object = is_object
        self._slots: list[Slot] = []

    def _add_slot(self, key: Optional[str] = None) -> Slot:
        slot = Slot(key=key)
        self._slots.append(slot)
        return slot

    def _find(self, key: Any) -> Optional[Slot]:
        if not isinstance(key, str):
            return None
        return next((slot for slot in self._slots if slot.key == key), None)

    # Array side

    def add_element(self) -> Slot:
        """Append a null element and return its slot."""
        return self._add_slot()

    def get_element(self, index: int) -> Optional[Slot]:
        """Return the slot at ``index``, or None when there is none."""
        if 0 <= index < len(self._slots):
            return self._slots[index]
        return None

    def get_or_add_element(self, index: int) -> Slot:
        """Return the slot at ``index``, appending null elements to reach it."""
        if index < 0:
            raise IndexError(f"negative index: {index}")
        while len(self._slots) <= index:
            self._add_slot()
        return self._slots[index]

    def remove_element(self, index: int) -> None:
        """Remove the element at ``index``; nothing happens when out of range."""
        if 0 <= index < len(self._slots):
            del self._slots[index]

    # Object side

    def add_member(self, key: str) -> Slot:
        """Append a member with ``key`` and a null value, without checking for duplicates."""
        return self._add_slot(_check_key(key))

    def get_member(self, key: Any) -> Optional[Slot]:
        """Return the first slot whose key equals ``key``, or None."""
        return self._find(key)

    def get_or_add_member(self, key: Any) -> Optional[Slot]:
        """Return the member with ``key``, adding it when missing; None keys are ignored."""
        if key is None:
            return None
        slot = self._find(key)
        if slot is not None:
            return slot
        return self.add_member(key)

    def remove_member(self, key: Any) -> None:
        """Remove the first member with ``key``, if any."""
        slot = self._find(key)
        if slot is not None:
            self._slots.remove(slot)

    def contains_key(self, key: Any) -> bool:
        return self._find(key) is not None

    # Generic

    def clear(self) -> None:
        self._slots = []

    def copy_from(self, src: Collection) -> None:
        """Replace the content with a deep copy of ``src``."""
        self._slots = []
        for slot in src._slots:
            if slot.key is not None:
                target = self.add_member(slot.key)
                target.owns_key = slot.owns_key
            else:
                target = self.add_element()
            target.value = _copy_value(slot.value)

    def slots(self) -> Iterator[Slot]:
        """Iterate over the slots in order."""
        return iter(list(self._slots))

    def pairs(self) -> Iterator[JsonPair]:
        """Iterate over key/value pairs in order."""
        for slot in list(self._slots):
            yield JsonPair(slot.key, slot.value)

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Any]:
        """Iterate over the values in order."""
        for slot in list(self._slots):
            yield slot.value

    def __repr__(self) -> str:
        kind = "object" if self.is_object else "array"
        items = ", ".join(
            f"{slot.key!r}: {slot.value!r}" if slot.key is not None else repr(slot.value)
            for slot in self._slots
        )
        return f"Collection<{kind}>[{items}]"