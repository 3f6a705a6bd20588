"""Main application entry point for the study-room booking service.

This module defines the FastAPI application, configures logging and exposes
the booking engine as a JSON API. Rooms, reservations, books and loans are read
from and written to the hosted data service on every request; nothing is
cached. One client (and its connection pool) is shared by all requests.

Endpoints:
  - ``/api/rooms``: list rooms, with the search filters applied.
  - ``/api/rooms/{room_id}/slots``: the room's slot grid for a date.
  - ``/api/availability``: every matching room with its slot grid.
  - ``/api/reservations``: book a run of consecutive slots.
  - ``/api/reservations/{id}/cancel``: cancel a reservation.
  - ``/api/me/reservations`` and ``/api/me/loans``: the caller's bookings.
  - ``/api/loans/{id}/cancel``: cancel a book loan.
  - ``/api/books``: search the catalog; ``/api/books/{id}/borrow`` borrows a book.
  - ``/api/databases``: search the scientific databases.
  - ``/healthz``: simple health check endpoint.

Selection rule violations and unavailable books come back as 422 with the
rule's message. Failures of the data service come back as 502 with the
service's message.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query

from .availability import campuses, filter_rooms, generate_slots
from .booking import (
    BookUnavailableError,
    borrow_book,
    cancel_loan,
    cancel_reservation,
    selection_from_slots,
    submit_reservation,
)
from .catalog import access_modes, book_categories, database_types, search_books, search_databases
from .config import settings
from .data_client import AuthenticationError, DataServiceClient, DataServiceError
from .models import (
    Book,
    BookingRequest,
    Loan,
    LoanStatus,
    Reservation,
    ReservationStatus,
    Room,
    RoomAvailability,
    TimeSlot,
    UserIdentity,
)
from .selection import SelectionError

logger = logging.getLogger("library_portal")
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="Library Study Room Booking")

_store = DataServiceClient()


def _utcnow() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def get_store() -> DataServiceClient:
    """Return the shared data service client acting with the public API key."""
    return _store


def get_access_token(authorization: Optional[str] = Header(default=None)) -> str:
    """Extract the bearer token from the ``Authorization`` header."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return authorization.split(" ", 1)[1].strip()


def get_current_user(
    token: str = Depends(get_access_token),
    store: DataServiceClient = Depends(get_store),
) -> UserIdentity:
    """Resolve the caller through the data service's auth endpoint."""
    try:
        return store.get_user(token)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=exc.message)
    except DataServiceError as exc:
        raise HTTPException(status_code=502, detail=exc.message)


def get_user_store(
    token: str = Depends(get_access_token),
    store: DataServiceClient = Depends(get_store),
) -> DataServiceClient:
    """Return a client that acts as the caller, so writes are attributed to them."""
    return store.with_token(token)


def _remote_failure(exc: DataServiceError) -> HTTPException:
    logger.error("Data service call failed: %s", exc.message)
    return HTTPException(status_code=502, detail=exc.message)


def _filtered_rooms(
    store: DataServiceClient,
    campus: Optional[str],
    min_capacity: Optional[int],
    accessible: bool,
    power: bool,
) -> List[Room]:
    rooms = store.list_rooms()
    return filter_rooms(rooms, campus=campus, min_capacity=min_capacity, accessible=accessible, power=power)


@app.get("/api/rooms")
def api_rooms(
    campus: Optional[str] = None,
    min_capacity: Optional[int] = Query(default=None, ge=1),
    accessible: bool = False,
    power: bool = False,
    store: DataServiceClient = Depends(get_store),
) -> Dict[str, Any]:
    """Return the rooms matching the search filters."""
    try:
        all_rooms = store.list_rooms()
    except DataServiceError as exc:
        raise _remote_failure(exc)
    rooms = filter_rooms(all_rooms, campus=campus, min_capacity=min_capacity, accessible=accessible, power=power)
    return {
        "count": len(rooms),
        "campuses": campuses(all_rooms),
        "items": [r.model_dump() for r in rooms],
    }


@app.get("/api/rooms/{room_id}/slots")
def api_room_slots(
    room_id: str,
    date: date = Query(..., description="Booking date, YYYY-MM-DD"),
    store: DataServiceClient = Depends(get_store),
) -> Dict[str, Any]:
    """Return the slot grid of one room for one date."""
    try:
        reservations = store.list_reservations(date, room_id=room_id)
    except DataServiceError as exc:
        raise _remote_failure(exc)
    slots: List[TimeSlot] = generate_slots(reservations, room_id=room_id)
    return {
        "roomId": room_id,
        "date": date.isoformat(),
        "slots": [s.model_dump(mode="json") for s in slots],
    }


@app.get("/api/availability")
def api_availability(
    date: date = Query(..., description="Booking date, YYYY-MM-DD"),
    campus: Optional[str] = None,
    min_capacity: Optional[int] = Query(default=None, ge=1),
    accessible: bool = False,
    power: bool = False,
    store: DataServiceClient = Depends(get_store),
) -> Dict[str, Any]:
    """Return every matching room with its slot grid for the date."""
    try:
        rooms = _filtered_rooms(store, campus, min_capacity, accessible, power)
        reservations = store.list_reservations(date)
    except DataServiceError as exc:
        raise _remote_failure(exc)
    items = [
        RoomAvailability(room=room, date=date, slots=generate_slots(reservations, room_id=room.id))
        for room in rooms
    ]
    return {
        "generatedAt": _utcnow().isoformat().replace("+00:00", "Z"),
        "date": date.isoformat(),
        "items": [i.model_dump(mode="json") for i in items],
    }


@app.post("/api/reservations", status_code=201)
def api_create_reservation(
    request: BookingRequest,
    user: UserIdentity = Depends(get_current_user),
    store: DataServiceClient = Depends(get_user_store),
) -> Dict[str, Any]:
    """Validate the picked slots and book them as one reservation."""
    try:
        existing = store.list_reservations(request.date, room_id=request.room_id)
    except DataServiceError as exc:
        raise _remote_failure(exc)
    try:
        selection = selection_from_slots(request.room_id, request.slots, existing)
        reservation: Reservation = submit_reservation(store, selection, request.room_id, request.date, user.id)
    except SelectionError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except DataServiceError as exc:
        raise _remote_failure(exc)
    return reservation.model_dump(mode="json", exclude_none=True)


@app.post("/api/reservations/{reservation_id}/cancel")
def api_cancel_reservation(
    reservation_id: str,
    user: UserIdentity = Depends(get_current_user),
    store: DataServiceClient = Depends(get_user_store),
) -> Dict[str, Any]:
    """Cancel one of the caller's reservations."""
    try:
        cancel_reservation(store, reservation_id)
    except DataServiceError as exc:
        raise _remote_failure(exc)
    return {"id": reservation_id, "status": ReservationStatus.CANCELLED.value}


@app.get("/api/me/reservations")
def api_my_reservations(
    user: UserIdentity = Depends(get_current_user),
    store: DataServiceClient = Depends(get_user_store),
) -> Dict[str, Any]:
    """Return the caller's active reservations, latest first."""
    try:
        reservations = store.list_user_reservations(user.id)
    except DataServiceError as exc:
        raise _remote_failure(exc)
    return {
        "count": len(reservations),
        "items": [r.model_dump(mode="json") for r in reservations],
    }


@app.get("/api/me/loans")
def api_my_loans(
    user: UserIdentity = Depends(get_current_user),
    store: DataServiceClient = Depends(get_user_store),
) -> Dict[str, Any]:
    """Return the caller's active book loans, latest first."""
    try:
        loans = store.list_user_loans(user.id)
    except DataServiceError as exc:
        raise _remote_failure(exc)
    return {"count": len(loans), "items": [l.model_dump(mode="json") for l in loans]}


@app.post("/api/loans/{loan_id}/cancel")
def api_cancel_loan(
    loan_id: str,
    user: UserIdentity = Depends(get_current_user),
    store: DataServiceClient = Depends(get_user_store),
) -> Dict[str, Any]:
    """Cancel a loan and mark its book available again."""
    try:
        loan: Optional[Loan] = store.get_loan(loan_id)
        if loan is None:
            raise HTTPException(status_code=404, detail="Loan not found")
        cancel_loan(store, loan)
    except DataServiceError as exc:
        raise _remote_failure(exc)
    return {"id": loan_id, "status": LoanStatus.CANCELLED.value}


@app.get("/api/books")
def api_books(
    q: Optional[str] = None,
    category: Optional[str] = None,
    store: DataServiceClient = Depends(get_store),
) -> Dict[str, Any]:
    """Search the catalog by title, author or ISBN, optionally within a category."""
    try:
        all_books = store.list_books()
    except DataServiceError as exc:
        raise _remote_failure(exc)
    books = search_books(all_books, term=q, category=category)
    return {
        "count": len(books),
        "categories": book_categories(all_books),
        "items": [b.model_dump(mode="json") for b in books],
    }


@app.post("/api/books/{book_id}/borrow", status_code=201)
def api_borrow_book(
    book_id: str,
    user: UserIdentity = Depends(get_current_user),
    store: DataServiceClient = Depends(get_user_store),
) -> Dict[str, Any]:
    """Borrow an available book."""
    try:
        book: Optional[Book] = store.get_book(book_id)
        if book is None:
            raise HTTPException(status_code=404, detail="Book not found")
        loan = borrow_book(store, book, user.id)
    except BookUnavailableError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except DataServiceError as exc:
        raise _remote_failure(exc)
    return loan.model_dump(mode="json", exclude_none=True)


@app.get("/api/databases")
def api_databases(
    q: Optional[str] = None,
    type: Optional[str] = None,
    access_mode: Optional[str] = None,
    store: DataServiceClient = Depends(get_store),
) -> Dict[str, Any]:
    """Search the scientific databases, optionally by type and access mode."""
    try:
        all_databases = store.list_scientific_databases()
    except DataServiceError as exc:
        raise _remote_failure(exc)
    databases = search_databases(all_databases, term=q, db_type=type, access_mode=access_mode)
    return {
        "count": len(databases),
        "types": database_types(all_databases),
        "accessModes": access_modes(all_databases),
        "items": [d.model_dump(mode="json") for d in databases],
    }


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    """Health check endpoint for monitoring."""
    return {"ok": True, "time": _utcnow().isoformat().replace("+00:00", "Z")}
