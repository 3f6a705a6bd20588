"""Shared fakes and builders for the test suite."""

from __future__ import annotations

from datetime import date, time
from typing import Any, Dict, List, Optional, Tuple

from library_portal.data_client import AuthenticationError, DataServiceError
from library_portal.models import (
    Book,
    BookStatus,
    Loan,
    LoanStatus,
    NewLoan,
    NewReservation,
    Reservation,
    ReservationStatus,
    Room,
    ScientificDatabase,
    UserIdentity,
)

BOOKING_DATE = date(2024, 5, 6)


def make_reservation(
    start: str,
    end: str,
    *,
    room_id: str = "room-1",
    status: ReservationStatus = ReservationStatus.ACTIVE,
    reservation_id: str = "res-1",
    booking_date: date = BOOKING_DATE,
    user_id: str = "user-1",
) -> Reservation:
    return Reservation(
        id=reservation_id,
        room_id=room_id,
        booking_date=booking_date,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        status=status,
        user_id=user_id,
    )


def make_room(room_id: str = "room-1", **overrides: Any) -> Room:
    fields: Dict[str, Any] = {
        "id": room_id,
        "name": f"Room {room_id}",
        "campus": "Central",
        "capacity": 4,
        "room_type": "group",
        "accessible_seat": False,
        "power_outlet": True,
    }
    fields.update(overrides)
    return Room(**fields)


def make_book(book_id: str = "book-1", **overrides: Any) -> Book:
    fields: Dict[str, Any] = {
        "id": book_id,
        "title": "Dune",
        "author": "Frank Herbert",
        "category": "Fiction",
        "isbn": "9780441013593",
        "status": BookStatus.AVAILABLE,
    }
    fields.update(overrides)
    return Book(**fields)


def make_database(db_id: str = "db-1", **overrides: Any) -> ScientificDatabase:
    fields: Dict[str, Any] = {
        "id": db_id,
        "title": "Scopus",
        "link": "https://www.scopus.com",
        "description": "Abstract and citation database",
        "types": ["Citations"],
        "publishers": ["Elsevier"],
        "access_mode": "Campus",
    }
    fields.update(overrides)
    return ScientificDatabase(**fields)


class FakeStore:
    """In-memory stand-in for ``DataServiceClient`` that records writes."""

    def __init__(
        self,
        rooms: Optional[List[Room]] = None,
        reservations: Optional[List[Reservation]] = None,
        loans: Optional[List[Loan]] = None,
        books: Optional[List[Book]] = None,
        databases: Optional[List[ScientificDatabase]] = None,
        users: Optional[Dict[str, UserIdentity]] = None,
    ) -> None:
        self.rooms = rooms or []
        self.reservations = reservations or []
        self.loans = loans or []
        self.books = books or []
        self.databases = databases or []
        self.users = users if users is not None else {"token-1": UserIdentity(id="user-1", email="ana@uni.example")}
        self.book_status: Dict[str, BookStatus] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.tokens: List[str] = []
        self.fail_with: Optional[DataServiceError] = None

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def with_token(self, access_token: str) -> "FakeStore":
        self.tokens.append(access_token)
        return self

    def get_user(self, access_token: str) -> UserIdentity:
        if access_token not in self.users:
            raise AuthenticationError("Invalid JWT", 401)
        return self.users[access_token]

    def list_rooms(self) -> List[Room]:
        self._maybe_fail()
        return list(self.rooms)

    def list_reservations(
        self,
        booking_date: date,
        room_id: Optional[str] = None,
        status: Optional[ReservationStatus] = ReservationStatus.ACTIVE,
    ) -> List[Reservation]:
        self._maybe_fail()
        return [
            r
            for r in self.reservations
            if r.booking_date == booking_date
            and (room_id is None or r.room_id == room_id)
            and (status is None or r.status == status)
        ]

    def list_user_reservations(self, user_id: str) -> List[Reservation]:
        self._maybe_fail()
        mine = [r for r in self.reservations if r.user_id == user_id and r.is_active]
        return sorted(mine, key=lambda r: r.booking_date, reverse=True)

    def create_reservation(self, reservation: NewReservation) -> Reservation:
        self.calls.append(("create_reservation", reservation))
        self._maybe_fail()
        stored = Reservation(id=f"res-{len(self.reservations) + 1}", **reservation.model_dump())
        self.reservations.append(stored)
        return stored

    def update_reservation_status(self, reservation_id: str, status: ReservationStatus) -> None:
        self.calls.append(("update_reservation_status", (reservation_id, status)))
        self._maybe_fail()
        self.reservations = [
            r.model_copy(update={"status": status}) if r.id == reservation_id else r
            for r in self.reservations
        ]

    def list_user_loans(self, user_id: str) -> List[Loan]:
        self._maybe_fail()
        return [l for l in self.loans if l.user_id == user_id and l.status == LoanStatus.ACTIVE]

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        self._maybe_fail()
        return next((l for l in self.loans if l.id == loan_id), None)

    def update_loan_status(self, loan_id: str, status: LoanStatus) -> None:
        self.calls.append(("update_loan_status", (loan_id, status)))
        self._maybe_fail()
        self.loans = [l.model_copy(update={"status": status}) if l.id == loan_id else l for l in self.loans]

    def list_books(self) -> List[Book]:
        self._maybe_fail()
        return list(self.books)

    def get_book(self, book_id: str) -> Optional[Book]:
        self._maybe_fail()
        return next((b for b in self.books if b.id == book_id), None)

    def create_loan(self, loan: NewLoan) -> Loan:
        self.calls.append(("create_loan", loan))
        self._maybe_fail()
        stored = Loan(id=f"loan-{len(self.loans) + 1}", **loan.model_dump())
        self.loans.append(stored)
        return stored

    def list_scientific_databases(self) -> List[ScientificDatabase]:
        self._maybe_fail()
        return list(self.databases)

    def update_book_status(self, book_id: str, status: BookStatus) -> None:
        self.calls.append(("update_book_status", (book_id, status)))
        self._maybe_fail()
        self.book_status[book_id] = status
        self.books = [b.model_copy(update={"status": status}) if b.id == book_id else b for b in self.books]
