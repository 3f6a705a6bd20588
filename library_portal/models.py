"""Pydantic data models for the booking backend.

These models mirror the rows of the hosted data service plus the derived,
never persisted time slot grid. The service's tables and columns are named in
Spanish (``salas.nombre_sala``, ``reservas.hora_inicio`` ...). Each model keeps
an English attribute name and carries the column name as its alias, so rows
validate straight from the service and ``model_dump(by_alias=True)`` produces
an insert payload. Status enums hold the values stored in each table.
"""

from datetime import date, time
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _end_of_day(value: Any) -> Any:
    """Postgres ``time`` columns may hold ``24:00:00``, which ``datetime.time`` cannot."""
    if isinstance(value, str) and value.startswith("24:00"):
        return time.max
    return value


class ReservationStatus(str, Enum):
    """Lifecycle of a reservation. Reservations are never deleted."""

    ACTIVE = "activa"
    CANCELLED = "cancelada"


class LoanStatus(str, Enum):
    ACTIVE = "activo"
    CANCELLED = "cancelado"


class BookStatus(str, Enum):
    AVAILABLE = "disponible"
    ON_LOAN = "prestado"


class RowModel(BaseModel):
    """Base for models backed by a table row."""

    model_config = ConfigDict(populate_by_name=True)


class Room(RowModel):
    """A bookable study room (``salas``). Read-only reference data for the booking engine."""

    id: str
    name: str = Field(alias="nombre_sala")
    campus: str
    capacity: int = Field(alias="capacidad")
    room_type: str = Field(alias="tipo")
    accessible_seat: Optional[bool] = Field(default=False, alias="tiene_asiento_accesible")
    power_outlet: Optional[bool] = Field(default=False, alias="tiene_energia")


class RoomSummary(RowModel):
    """Room columns embedded in a reservation row for the "my reservations" view."""

    name: str = Field(alias="nombre_sala")
    campus: str


class Reservation(RowModel):
    """A booking (``reservas``) of one room on one date over [start, end)."""

    id: str
    room_id: str = Field(alias="sala_id")
    booking_date: date = Field(alias="fecha")
    start_time: time = Field(alias="hora_inicio")
    end_time: time = Field(alias="hora_fin")
    status: ReservationStatus = Field(default=ReservationStatus.ACTIVE, alias="estado")
    user_id: Optional[str] = Field(default=None, alias="usuario_id")
    room: Optional[RoomSummary] = Field(default=None, alias="salas")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def normalise_end_of_day(cls, value: Any) -> Any:
        return _end_of_day(value)

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE


class NewReservation(RowModel):
    """Insert payload for ``reservas``."""

    room_id: str = Field(alias="sala_id")
    booking_date: date = Field(alias="fecha")
    start_time: time = Field(alias="hora_inicio")
    end_time: time = Field(alias="hora_fin")
    status: ReservationStatus = Field(default=ReservationStatus.ACTIVE, alias="estado")
    user_id: str = Field(alias="usuario_id")


class TimeSlot(BaseModel):
    """A 30 minute interval of the booking window, tagged with its availability."""

    start: time
    available: bool
    selected: bool = False

    @property
    def label(self) -> str:
        return self.start.strftime("%H:%M")


class RoomAvailability(BaseModel):
    """A room and its slot grid for one date."""

    room: Room
    date: date
    slots: List[TimeSlot]


class BookingRequest(BaseModel):
    """Slots a caller wants to book, in the order they were picked."""

    room_id: str
    date: date
    slots: List[time]


class Book(RowModel):
    """A catalog entry (``libros``)."""

    id: str
    title: str = Field(alias="titulo")
    author: str = Field(alias="autor")
    category: str = Field(alias="categoria")
    isbn: str
    status: BookStatus = Field(default=BookStatus.AVAILABLE, alias="estado")
    publisher: Optional[str] = Field(default=None, alias="editorial")
    description: Optional[str] = Field(default=None, alias="descripcion")
    image_url: Optional[str] = Field(default=None, alias="imagen_url")

    @property
    def is_available(self) -> bool:
        return self.status == BookStatus.AVAILABLE


class BookSummary(RowModel):
    title: str = Field(alias="titulo")
    author: str = Field(alias="autor")


class Loan(RowModel):
    """A book loan (``prestamos``), as listed in the "my loans" view."""

    id: str
    book_id: str = Field(alias="libro_id")
    loan_date: Optional[date] = Field(default=None, alias="fecha_prestamo")
    return_date: Optional[date] = Field(default=None, alias="fecha_devolucion")
    status: LoanStatus = Field(default=LoanStatus.ACTIVE, alias="estado")
    user_id: Optional[str] = Field(default=None, alias="usuario_id")
    book: Optional[BookSummary] = Field(default=None, alias="libros")


class NewLoan(RowModel):
    """Insert payload for ``prestamos``. The loan date defaults on the service side."""

    book_id: str = Field(alias="libro_id")
    user_id: str = Field(alias="usuario_id")
    status: LoanStatus = Field(default=LoanStatus.ACTIVE, alias="estado")


class ScientificDatabase(RowModel):
    """A curated research database (``base_datos_cientifica``)."""

    id: str
    title: str = Field(alias="titulo")
    link: str = Field(alias="enlace")
    description: str = Field(alias="descripcion")
    types: List[str] = Field(default_factory=list, alias="tipos")
    subjects: Optional[List[str]] = Field(default=None, alias="materias")
    publishers: Optional[List[str]] = Field(default=None, alias="editores")
    access_mode: str = Field(alias="modo_acceso")


class UserIdentity(BaseModel):
    """The authenticated caller, as reported by the data service."""

    id: str
    email: Optional[str] = None
