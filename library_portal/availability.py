"""Daily slot grid for a study room.

The booking window runs from ``OPENING_HOUR`` to ``CLOSING_HOUR`` (08:00 to
20:00 by default) in ``SLOT_MINUTES`` steps, giving 24 half-hour slots. A slot
is unavailable when an active reservation contains the slot's start instant
under half-open semantics, ``start <= slot_start < end``. This is a point
test rather than a full overlap test: a reservation ending exactly at a slot
boundary leaves that slot free.

Everything here is a pure function of its inputs; fetching reservations is the
caller's job (see ``data_client``).
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence

from .config import settings
from .models import Reservation, Room, TimeSlot


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _from_minutes(total: int) -> time:
    return time(total // 60, total % 60)


def slot_times(
    opening_hour: Optional[int] = None,
    closing_hour: Optional[int] = None,
    slot_minutes: Optional[int] = None,
) -> List[time]:
    """Return the start times of every slot in the booking window, in order."""
    opening = settings.opening_hour if opening_hour is None else opening_hour
    closing = settings.closing_hour if closing_hour is None else closing_hour
    step = settings.slot_minutes if slot_minutes is None else slot_minutes
    return [_from_minutes(m) for m in range(opening * 60, closing * 60, step)]


def slot_end(start: time, slot_minutes: Optional[int] = None) -> time:
    """Return the end of the slot starting at ``start``.

    The last slot of the default window ends at 20:00, so this never wraps
    past midnight for sane settings.
    """
    step = settings.slot_minutes if slot_minutes is None else slot_minutes
    end = datetime.combine(datetime.min, start) + timedelta(minutes=step)
    return end.time()


def is_reserved(slot_start: time, reservations: Iterable[Reservation]) -> bool:
    """Return True if an active reservation covers the instant ``slot_start``."""
    instant = _minutes(slot_start)
    return any(
        _minutes(r.start_time) <= instant < _minutes(r.end_time)
        for r in reservations
        if r.is_active
    )


def generate_slots(
    reservations: Iterable[Reservation],
    *,
    room_id: Optional[str] = None,
    selected: Sequence[time] = (),
) -> List[TimeSlot]:
    """Build the ordered slot grid for one room and one date.

    Args:
        reservations: reservations for the target date. Cancelled ones are
            ignored.
        room_id: when given, reservations for other rooms are ignored too.
            Callers that already filtered by room may leave it out.
        selected: slot start times the caller currently holds, used only to
            set the ``selected`` flag.

    Returns:
        One ``TimeSlot`` per slot of the booking window, earliest first.
    """
    relevant = [r for r in reservations if room_id is None or r.room_id == room_id]
    chosen = set(selected)
    return [
        TimeSlot(start=start, available=not is_reserved(start, relevant), selected=start in chosen)
        for start in slot_times()
    ]


def filter_rooms(
    rooms: Iterable[Room],
    *,
    campus: Optional[str] = None,
    min_capacity: Optional[int] = None,
    accessible: bool = False,
    power: bool = False,
) -> List[Room]:
    """Apply the room search filters. Unset filters match everything."""
    filtered = list(rooms)
    if campus:
        filtered = [r for r in filtered if r.campus == campus]
    if min_capacity is not None:
        filtered = [r for r in filtered if r.capacity >= min_capacity]
    if accessible:
        filtered = [r for r in filtered if r.accessible_seat]
    if power:
        filtered = [r for r in filtered if r.power_outlet]
    return filtered


def campuses(rooms: Iterable[Room]) -> List[str]:
    """Distinct campus names in first-seen order."""
    seen: List[str] = []
    for room in rooms:
        if room.campus not in seen:
            seen.append(room.campus)
    return seen
