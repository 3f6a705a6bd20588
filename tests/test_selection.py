from datetime import time

import pytest

from library_portal.selection import (
    NonConsecutiveSelectionError,
    SlotLimitError,
    SlotSelection,
    SlotUnavailableError,
    are_consecutive,
)


def test_consecutive_slots_are_accepted_in_any_order():
    selection = SlotSelection()

    selection.toggle("room-1", time(10, 0))
    selection.toggle("room-1", time(9, 30))
    selection.toggle("room-1", time(10, 30))

    assert selection.selected("room-1") == [time(9, 30), time(10, 0), time(10, 30)]


def test_fifth_slot_is_rejected():
    selection = SlotSelection()
    for slot in (time(9, 0), time(9, 30), time(10, 0), time(10, 30)):
        selection.toggle("room-1", slot)

    with pytest.raises(SlotLimitError):
        selection.toggle("room-1", time(11, 0))
    with pytest.raises(SlotLimitError):
        selection.toggle("room-1", time(8, 30))
    assert len(selection.selected("room-1")) == 4


def test_non_adjacent_slot_is_rejected_and_selection_unchanged():
    selection = SlotSelection()
    selection.toggle("room-1", time(9, 0))
    selection.toggle("room-1", time(9, 30))

    with pytest.raises(NonConsecutiveSelectionError):
        selection.toggle("room-1", time(11, 0))

    assert selection.selected("room-1") == [time(9, 0), time(9, 30)]


def test_unavailable_slot_is_rejected():
    selection = SlotSelection()

    with pytest.raises(SlotUnavailableError):
        selection.toggle("room-1", time(9, 0), available=False)
    assert selection.selected("room-1") == []


def test_removal_always_succeeds_and_may_leave_a_gap():
    selection = SlotSelection()
    for slot in (time(9, 0), time(9, 30), time(10, 0)):
        selection.toggle("room-1", slot)

    selection.toggle("room-1", time(9, 30))

    assert selection.selected("room-1") == [time(9, 0), time(10, 0)]


def test_rooms_are_tracked_independently():
    selection = SlotSelection()
    for slot in (time(9, 0), time(9, 30), time(10, 0), time(10, 30)):
        selection.toggle("room-1", slot)

    selection.toggle("room-2", time(15, 0))

    assert selection.selected("room-2") == [time(15, 0)]
    assert len(selection.selected("room-1")) == 4


def test_clear_drops_the_room():
    selection = SlotSelection()
    selection.toggle("room-1", time(9, 0))

    selection.clear("room-1")

    assert selection.selected("room-1") == []
    selection.toggle("room-1", time(15, 0))
    assert selection.selected("room-1") == [time(15, 0)]


@pytest.mark.parametrize(
    "slots, expected",
    [
        ([], True),
        ([time(9, 0)], True),
        ([time(9, 30), time(9, 0)], True),
        ([time(9, 0), time(10, 0)], False),
        ([time(9, 0), time(9, 0)], False),
    ],
)
def test_are_consecutive(slots, expected):
    assert are_consecutive(slots) is expected
