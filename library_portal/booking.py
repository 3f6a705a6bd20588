"""Reservation submission, cancellation and book loans.

A validated selection becomes a single reservation running from the first
slot's start to one slot length past the last slot's start. Submission is one
insert against the data service; a failure is surfaced as is and nothing is
retried or rolled back.

Availability is checked when the grid is computed, not again at insert time.
Another session can book an overlapping interval in between and neither side
will notice. The data service has no overlap constraint, so this race is
known and left open.
"""

from __future__ import annotations

import logging
from datetime import date, time
from typing import Iterable, Sequence, Tuple

from .availability import generate_slots, slot_end
from .data_client import DataServiceClient
from .models import (
    Book,
    BookStatus,
    Loan,
    LoanStatus,
    NewLoan,
    NewReservation,
    Reservation,
    ReservationStatus,
)
from .selection import SelectionError, SlotSelection

logger = logging.getLogger(__name__)


class EmptySelectionError(SelectionError):
    """Submission was attempted without any selected slot."""


class BookUnavailableError(ValueError):
    """The book is already on loan."""


def reservation_span(slots: Sequence[time]) -> Tuple[time, time]:
    """Return ``(start, end)`` covering the given consecutive slots."""
    if not slots:
        raise EmptySelectionError("Select at least one time slot")
    ordered = sorted(slots)
    return ordered[0], slot_end(ordered[-1])


def selection_from_slots(
    room_id: str,
    slots: Iterable[time],
    reservations: Iterable[Reservation],
) -> SlotSelection:
    """Replay a list of picked slots through the selection rules.

    Slots are toggled in the order given, against the room's current grid, so
    a request built outside a live session is held to the same checks.

    Raises:
        SelectionError: on the first slot that breaks a rule.
    """
    grid = {slot.start: slot.available for slot in generate_slots(reservations, room_id=room_id)}
    selection = SlotSelection()
    for slot in slots:
        if slot not in grid:
            raise SelectionError(f"{slot:%H:%M} is not a bookable slot")
        if slot in selection.selected(room_id):
            raise SelectionError(f"Slot {slot:%H:%M} was picked twice")
        selection.toggle(room_id, slot, available=grid[slot])
    return selection


def submit_reservation(
    store: DataServiceClient,
    selection: SlotSelection,
    room_id: str,
    booking_date: date,
    user_id: str,
) -> Reservation:
    """Turn the room's selection into one active reservation.

    The room's selection is cleared only once the insert succeeds.

    Raises:
        EmptySelectionError: nothing is selected for ``room_id``.
        DataServiceError: the insert failed.
    """
    slots = selection.selected(room_id)
    start, end = reservation_span(slots)
    payload = NewReservation(
        room_id=room_id,
        booking_date=booking_date,
        start_time=start,
        end_time=end,
        status=ReservationStatus.ACTIVE,
        user_id=user_id,
    )
    reservation = store.create_reservation(payload)
    selection.clear(room_id)
    logger.info(
        "Booked room %s on %s from %s to %s for user %s",
        room_id,
        booking_date.isoformat(),
        start.isoformat(),
        end.isoformat(),
        user_id,
    )
    return reservation


def cancel_reservation(store: DataServiceClient, reservation_id: str) -> None:
    """Mark a reservation cancelled. No other reservation is touched."""
    store.update_reservation_status(reservation_id, ReservationStatus.CANCELLED)
    logger.info("Cancelled reservation %s", reservation_id)


def cancel_loan(store: DataServiceClient, loan: Loan) -> None:
    """Cancel a loan and put its book back on the shelf.

    The two updates run in order; if the first fails the book is left alone.
    """
    store.update_loan_status(loan.id, LoanStatus.CANCELLED)
    store.update_book_status(loan.book_id, BookStatus.AVAILABLE)
    logger.info("Cancelled loan %s, book %s is available again", loan.id, loan.book_id)


def borrow_book(store: DataServiceClient, book: Book, user_id: str) -> Loan:
    """Open an active loan for ``book`` and mark the book as on loan.

    Raises:
        BookUnavailableError: the book is already on loan; nothing is written.
        DataServiceError: either write failed. A failed status update leaves
            the loan in place.
    """
    if not book.is_available:
        raise BookUnavailableError(f'"{book.title}" is not available')
    loan = store.create_loan(NewLoan(book_id=book.id, user_id=user_id, status=LoanStatus.ACTIVE))
    store.update_book_status(book.id, BookStatus.ON_LOAN)
    logger.info("User %s borrowed book %s (loan %s)", user_id, book.id, loan.id)
    return loan
