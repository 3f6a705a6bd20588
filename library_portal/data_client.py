"""Client for the hosted data service.

The library's rooms (``salas``), reservations (``reservas``), books
(``libros``), loans (``prestamos``) and research databases
(``base_datos_cientifica``) live in a hosted relational database that exposes
a REST interface (``/rest/v1/<table>``, PostgREST style filters such as
``estado=eq.activa``) and an authentication endpoint (``/auth/v1/user``).
This module wraps the calls the backend needs and converts rows into the
models in ``library_portal.models``.

Every call is a single request with no retry. Whatever goes wrong (network
error, HTTP error status, a constraint violation reported by the database, a
row that does not match its model) is logged and raised as
``DataServiceError`` carrying the service's message. All endpoint settings
come from ``library_portal.config``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from .config import settings
from .models import (
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

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)


class DataServiceError(Exception):
    """A request to the data service failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(DataServiceError):
    """The access token is missing, invalid or expired."""


def _error_message(response: requests.Response) -> str:
    """Pull the most useful message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return str(body)


def _parse_rows(model: Type[RowT], rows: List[Dict[str, Any]]) -> List[RowT]:
    """Validate rows against ``model``; a malformed row is a data service failure."""
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as exc:
        logger.error("Unexpected %s row from data service: %s", model.__name__, exc)
        raise DataServiceError(f"Unexpected {model.__name__} row: {exc.error_count()} invalid field(s)") from exc


class DataServiceClient:
    """Thin wrapper around the data service's REST and auth endpoints.

    Args:
        base_url: service root, e.g. ``https://project.example.co``.
        api_key: public API key sent with every request.
        access_token: the caller's session token. When set it is forwarded as a
            bearer token so the service applies the caller's row-level rules.
        session: optional ``requests.Session`` (tests pass a fake one).
        timeout: per-request timeout in seconds; ``None`` means no timeout.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or settings.data_service_url).rstrip("/")
        self.api_key = settings.data_service_key if api_key is None else api_key
        self.access_token = access_token
        self.session = session or requests.Session()
        self.timeout = settings.request_timeout_seconds if timeout is None else timeout

    def with_token(self, access_token: str) -> "DataServiceClient":
        """Return a client sharing this one's session but acting as another caller."""
        return DataServiceClient(
            self.base_url,
            self.api_key,
            access_token=access_token,
            session=self.session,
            timeout=self.timeout,
        )

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        bearer = token or self.access_token or self.api_key
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        token: Optional[str] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        all_headers = self._headers(token)
        if headers:
            all_headers.update(headers)
        try:
            response = self.session.request(
                method, url, params=params, json=json, headers=all_headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise DataServiceError(str(exc)) from exc

        if response.status_code in (401, 403) and path.startswith("/auth/"):
            raise AuthenticationError(_error_message(response), response.status_code)
        if response.status_code >= 400:
            message = _error_message(response)
            logger.error("%s %s returned %s: %s", method, path, response.status_code, message)
            raise DataServiceError(message, response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        rows = self._request("GET", f"/rest/v1/{table}", params=params)
        return rows or []

    def _insert(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._request(
            "POST",
            f"/rest/v1/{table}",
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise DataServiceError(f"Inserted {table} row was not returned by the data service")
        return rows[0] if isinstance(rows, list) else rows

    def _update(self, table: str, row_id: str, values: Dict[str, Any]) -> None:
        self._request("PATCH", f"/rest/v1/{table}", params={"id": f"eq.{row_id}"}, json=values)

    # Identity

    def get_user(self, access_token: str) -> UserIdentity:
        """Resolve a session token to the user it belongs to.

        Raises:
            AuthenticationError: if the service rejects the token.
        """
        if not access_token:
            raise AuthenticationError("Missing access token", 401)
        data = self._request("GET", "/auth/v1/user", token=access_token)
        if not data or "id" not in data:
            raise AuthenticationError("Unknown session", 401)
        return UserIdentity(id=data["id"], email=data.get("email"))

    # Rooms and reservations

    def list_rooms(self) -> List[Room]:
        """Return every study room, ordered by name."""
        rows = self._select("salas", {"select": "*", "order": "nombre_sala.asc"})
        return _parse_rows(Room, rows)

    def list_reservations(
        self,
        booking_date: date,
        room_id: Optional[str] = None,
        status: Optional[ReservationStatus] = ReservationStatus.ACTIVE,
    ) -> List[Reservation]:
        """Return reservations on ``booking_date``, optionally for one room and status."""
        params = {"select": "*", "fecha": f"eq.{booking_date.isoformat()}"}
        if room_id is not None:
            params["sala_id"] = f"eq.{room_id}"
        if status is not None:
            params["estado"] = f"eq.{status.value}"
        rows = self._select("reservas", params)
        return _parse_rows(Reservation, rows)

    def list_user_reservations(self, user_id: str) -> List[Reservation]:
        """Return the user's active reservations, latest date first, with room details."""
        rows = self._select(
            "reservas",
            {
                "select": "*,salas(nombre_sala,campus)",
                "usuario_id": f"eq.{user_id}",
                "estado": f"eq.{ReservationStatus.ACTIVE.value}",
                "order": "fecha.desc",
            },
        )
        return _parse_rows(Reservation, rows)

    def create_reservation(self, reservation: NewReservation) -> Reservation:
        """Insert one reservation and return the stored row."""
        row = self._insert("reservas", reservation.model_dump(mode="json", by_alias=True))
        return _parse_rows(Reservation, [row])[0]

    def update_reservation_status(self, reservation_id: str, status: ReservationStatus) -> None:
        self._update("reservas", reservation_id, {"estado": status.value})

    # Catalog, loans and books

    def list_books(self) -> List[Book]:
        """Return the whole catalog, ordered by title."""
        rows = self._select("libros", {"select": "*", "order": "titulo.asc"})
        return _parse_rows(Book, rows)

    def get_book(self, book_id: str) -> Optional[Book]:
        rows = self._select("libros", {"select": "*", "id": f"eq.{book_id}"})
        return _parse_rows(Book, rows)[0] if rows else None

    def update_book_status(self, book_id: str, status: BookStatus) -> None:
        self._update("libros", book_id, {"estado": status.value})

    def list_user_loans(self, user_id: str) -> List[Loan]:
        """Return the user's active loans, most recent first, with book details."""
        rows = self._select(
            "prestamos",
            {
                "select": "*,libros(titulo,autor)",
                "usuario_id": f"eq.{user_id}",
                "estado": f"eq.{LoanStatus.ACTIVE.value}",
                "order": "fecha_prestamo.desc",
            },
        )
        return _parse_rows(Loan, rows)

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        rows = self._select("prestamos", {"select": "*", "id": f"eq.{loan_id}"})
        return _parse_rows(Loan, rows)[0] if rows else None

    def create_loan(self, loan: NewLoan) -> Loan:
        """Insert one loan and return the stored row."""
        row = self._insert("prestamos", loan.model_dump(mode="json", by_alias=True))
        return _parse_rows(Loan, [row])[0]

    def update_loan_status(self, loan_id: str, status: LoanStatus) -> None:
        self._update("prestamos", loan_id, {"estado": status.value})

    # Scientific databases

    def list_scientific_databases(self) -> List[ScientificDatabase]:
        """Return the curated research databases, ordered by title."""
        rows = self._select("base_datos_cientifica", {"select": "*", "order": "titulo.asc"})
        return _parse_rows(ScientificDatabase, rows)
