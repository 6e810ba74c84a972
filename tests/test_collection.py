import pytest

from edgewire.collection import Collection, JsonPair, Slot


def make_array(*values):
    array = Collection()
    for value in values:
        array.add_element().value = value
    return array


def test_add_element_appends_null_slot():
    array = Collection()
    slot = array.add_element()
    assert isinstance(slot, Slot)
    assert slot.value is None
    assert slot.key is None
    assert len(array) == 1


def test_get_element_returns_slot_in_order():
    array = make_array("a", "b", "c")
    assert array.get_element(1).value == "b"
    assert list(array) == ["a", "b", "c"]


def test_get_element_out_of_range_is_none():
    array = make_array(1)
    assert array.get_element(1) is None
    assert Collection().get_element(0) is None


def test_get_or_add_element_fills_gap():
    array = Collection()
    slot = array.get_or_add_element(2)
    assert len(array) == 3
    assert array.get_element(2) is slot
    assert list(array) == [None, None, None]


def test_get_or_add_element_existing_keeps_size():
    array = make_array(1, 2)
    slot = array.get_or_add_element(1)
    assert slot.value == 2
    assert len(array) == 2


def test_get_or_add_element_negative_index():
    with pytest.raises(IndexError):
        Collection().get_or_add_element(-1)


def test_remove_element():
    array = make_array(1, 2, 3)
    array.remove_element(1)
    assert list(array) == [1, 3]
    array.remove_element(5)
    assert list(array) == [1, 3]


def test_remove_last_then_append():
    array = make_array(1, 2)
    array.remove_element(1)
    array.add_element().value = 9
    assert list(array) == [1, 9]


def test_members_are_found_by_key():
    obj = Collection(is_object=True)
    obj.add_member("a").value = 1
    obj.add_member("b").value = 2
    assert obj.get_member("b").value == 2
    assert obj.get_member("z") is None
    assert obj.contains_key("a")
    assert not obj.contains_key("z")


def test_add_member_does_not_deduplicate():
    obj = Collection(is_object=True)
    obj.add_member("a").value = 1
    obj.add_member("a").value = 2
    assert len(obj) == 2
    assert obj.get_member("a").value == 1


def test_get_or_add_member():
    obj = Collection(is_object=True)
    first = obj.get_or_add_member("k")
    second = obj.get_or_add_member("k")
    assert first is second
    assert len(obj) == 1


def test_null_keys():
    obj = Collection(is_object=True)
    assert obj.get_member(None) is None
    assert obj.get_or_add_member(None) is None
    assert len(obj) == 0
    with pytest.raises(ValueError):
        obj.add_member(None)
    with pytest.raises(TypeError):
        obj.add_member(3)


def test_remove_member():
    obj = Collection(is_object=True)
    obj.add_member("a").value = 1
    obj.add_member("b").value = 2
    obj.remove_member("a")
    assert not obj.contains_key("a")
    assert [pair.key for pair in obj.pairs()] == ["b"]
    obj.remove_member("missing")
    assert len(obj) == 1


def test_pairs_in_order():
    obj = Collection(is_object=True)
    obj.add_member("x").value = True
    obj.add_member("y").value = None
    assert list(obj.pairs()) == [JsonPair("x", True), JsonPair("y", None)]


def test_clear():
    array = make_array(1, 2)
    array.clear()
    assert len(array) == 0
    assert list(array) == []


def test_copy_from_is_deep():
    inner = make_array(1, 2)
    src = Collection(is_object=True)
    src.add_member("list").value = inner
    src.add_member("n").value = 5
    copy = Collection(is_object=True)
    copy.add_member("old").value = 0
    copy.copy_from(src)
    inner.add_element().value = 3
    copied_inner = copy.get_member("list").value
    assert list(copied_inner) == [1, 2]
    assert copied_inner is not inner
    assert copy.get_member("n").value == 5
    assert not copy.contains_key("old")


def test_copy_from_keeps_elements_and_members():
    src = make_array("a")
    copy = Collection()
    copy.copy_from(src)
    assert [pair.key for pair in copy.pairs()] == [None]
    assert list(copy) == ["a"]