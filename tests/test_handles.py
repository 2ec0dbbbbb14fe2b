"""
Unit tests for HandleTable and Handle: the back-map from handles
to heap positions.
"""
import pytest
from indexed_pq import Handle, HandleTable, InvalidHandleError


def test_allocate_and_locate():
    table = HandleTable()
    first = table.allocate(0)
    second = table.allocate(1)

    assert table.locate(first) == 0
    assert table.locate(second) == 1
    assert len(table) == 2
    assert first.owner == second.owner == table.owner


def test_rebind_moves_position():
    table = HandleTable()
    a = table.allocate(0)
    b = table.allocate(1)

    table.rebind(a, 1)
    table.rebind(b, 0)

    assert table.locate(a) == 1
    assert table.locate(b) == 0


def test_free_invalidates_and_bumps_generation():
    table = HandleTable()
    handle = table.allocate(0)
    table.free(handle)

    assert not table.is_live(handle)
    assert len(table) == 0
    with pytest.raises(InvalidHandleError):
        table.locate(handle)
    with pytest.raises(InvalidHandleError):
        table.free(handle)

    reused = table.allocate(3)
    assert reused.slot == handle.slot
    assert reused.generation == handle.generation + 1
    assert table.locate(reused) == 3


def test_clear_invalidates_all_live_handles():
    table = HandleTable()
    handles = [table.allocate(i) for i in range(4)]
    table.free(handles[1])
    table.clear()

    assert len(table) == 0
    for handle in handles:
        assert not table.is_live(handle)

    # Slots are reused in ascending order after a clear
    assert table.allocate(0).slot == 0
    assert table.allocate(1).slot == 1


def test_unknown_slot_rejected():
    table = HandleTable()
    table.allocate(0)
    with pytest.raises(InvalidHandleError):
        table.locate(Handle(owner=table.owner, slot=5, generation=0))


def test_foreign_table_rejected():
    table = HandleTable()
    other = HandleTable()
    handle = other.allocate(0)
    table.allocate(0)

    assert table.owner != other.owner
    assert not table.is_live(handle)


def test_handle_text_round_trip():
    handle = Handle(owner=3, slot=14, generation=2)
    assert str(handle) == "3:14:2"
    assert Handle.parse("3:14:2") == handle


@pytest.mark.parametrize("text", [
    "", "1:2", "1:2:3:4", "a:b:c", "0:1:0", "1:-1:0", "1:0:-2",
    " 1:2:3", "1:2:3 ", "1_0:0:0", "+1:0:0", "1:\u0663:0", None, 123,
])
def test_handle_parse_rejects_malformed(text):
    with pytest.raises(InvalidHandleError):
        Handle.parse(text)


def test_handles_are_hashable_values():
    a = Handle(owner=1, slot=0, generation=0)
    b = Handle(owner=1, slot=0, generation=0)
    assert a == b
    assert len({a, b}) == 1


@pytest.mark.parametrize("slot", [-1, -2])
def test_negative_slot_rejected(slot):
    table = HandleTable()
    table.allocate(0)
    table.allocate(1)
    forged = Handle(owner=table.owner, slot=slot, generation=0)

    assert not table.is_live(forged)
    with pytest.raises(InvalidHandleError):
        table.locate(forged)
    with pytest.raises(InvalidHandleError):
        table.free(forged)
    assert len(table) == 2
