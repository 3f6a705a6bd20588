"""Per-room slot selection for a booking session.

A ``SlotSelection`` holds the slots a user has picked for each room before
submitting a reservation. Adding a slot is checked against two rules: at most
``MAX_SLOTS_PER_BOOKING`` slots per room, and the sorted selection must be a
chain of back-to-back slots. Removing a slot is always accepted and is not
re-checked, so a gap can appear in the middle of a selection.

Rejected toggles raise a ``SelectionError`` subclass and leave the selection
exactly as it was. These errors are raised before any call to the data
service and are kept apart from ``DataServiceError``.
"""

from __future__ import annotations

import logging
from datetime import time
from typing import Dict, List, Optional, Sequence

from .config import settings

logger = logging.getLogger(__name__)


class SelectionError(ValueError):
    """A slot toggle broke one of the selection rules."""


class SlotUnavailableError(SelectionError):
    pass


class SlotLimitError(SelectionError):
    pass


class NonConsecutiveSelectionError(SelectionError):
    pass


def are_consecutive(slots: Sequence[time], slot_minutes: Optional[int] = None) -> bool:
    """Return True if the sorted slots each start exactly one slot after the previous."""
    step = settings.slot_minutes if slot_minutes is None else slot_minutes
    ordered = sorted(slots)
    for current, following in zip(ordered, ordered[1:]):
        gap = (following.hour * 60 + following.minute) - (current.hour * 60 + current.minute)
        if gap != step:
            return False
    return True


class SlotSelection:
    """Mapping of room id to its currently selected slot start times."""

    def __init__(self, max_slots: Optional[int] = None) -> None:
        self.max_slots = settings.max_slots_per_booking if max_slots is None else max_slots
        self._slots: Dict[str, List[time]] = {}

    def selected(self, room_id: str) -> List[time]:
        """Return the room's selected slots, earliest first."""
        return list(self._slots.get(room_id, []))

    def toggle(self, room_id: str, slot: time, available: bool = True) -> List[time]:
        """Select ``slot`` for ``room_id``, or deselect it if already selected.

        Returns:
            The room's selection after the toggle.

        Raises:
            SlotUnavailableError: the slot is already booked.
            SlotLimitError: the room already holds ``max_slots`` slots.
            NonConsecutiveSelectionError: the slot would leave a gap.
        """
        if not available:
            raise SlotUnavailableError(f"Slot {slot:%H:%M} is not available")

        current = self._slots.get(room_id, [])
        if slot in current:
            self._slots[room_id] = [s for s in current if s != slot]
            return self.selected(room_id)

        if len(current) >= self.max_slots:
            hours = self.max_slots * settings.slot_minutes / 60
            raise SlotLimitError(
                f"You can book at most {hours:g} hours ({self.max_slots} slots of {settings.slot_minutes} minutes)"
            )

        candidate = sorted(current + [slot])
        if not are_consecutive(candidate):
            raise NonConsecutiveSelectionError("Selected slots must be consecutive")

        self._slots[room_id] = candidate
        logger.debug("Room %s selection is now %s", room_id, [f"{s:%H:%M}" for s in candidate])
        return self.selected(room_id)

    def clear(self, room_id: str) -> None:
        self._slots.pop(room_id, None)
