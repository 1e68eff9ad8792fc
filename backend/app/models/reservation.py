"""Reservation and capacity models."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.db.repositories import ReservationStatus
from backend.app.reservations.capacity import CapacityState
from backend.app.reservations.schedule import normalize_slot


class ReservationCreate(BaseModel):
    """Booking request made by staff."""

    reservation_date: date
    time_slot: str = Field(..., description="HH:MM")
    party_size: int = Field(..., gt=0)
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: str | None = Field(None, max_length=254)
    customer_phone: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=1000)
    override: bool = False

    @field_validator("time_slot")
    @classmethod
    def validate_time_slot(cls, v: str) -> str:
        return normalize_slot(v)


class PublicReservationCreate(BaseModel):
    """Booking request made by a customer through the public surface."""

    reservation_date: date
    time_slot: str = Field(..., description="HH:MM")
    party_size: int = Field(..., gt=0)
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: str = Field(..., min_length=3, max_length=254)
    customer_phone: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("time_slot")
    @classmethod
    def validate_time_slot(cls, v: str) -> str:
        return normalize_slot(v)


class ReservationReschedule(BaseModel):
    """New date, slot or party size; fields left out keep their value."""

    reservation_date: date | None = None
    time_slot: str | None = Field(None, description="HH:MM")
    party_size: int | None = Field(None, gt=0)
    override: bool = False

    @field_validator("time_slot")
    @classmethod
    def validate_time_slot(cls, v: str | None) -> str | None:
        return None if v is None else normalize_slot(v)


class PublicReservationReschedule(BaseModel):
    reservation_date: date | None = None
    time_slot: str | None = Field(None, description="HH:MM")
    party_size: int | None = Field(None, gt=0)

    @field_validator("time_slot")
    @classmethod
    def validate_time_slot(cls, v: str | None) -> str | None:
        return None if v is None else normalize_slot(v)


class StatusUpdate(BaseModel):
    status: ReservationStatus


class ReservationOut(BaseModel):
    """A reservation as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    reservation_id: uuid.UUID
    tenant_id: uuid.UUID
    reservation_date: date
    time_slot: str
    party_size: int
    status: ReservationStatus
    customer_name: str
    customer_email: str | None = None
    customer_phone: str | None = None
    notes: str | None = None
    created_by: uuid.UUID | None = None
    override: bool = False
    created_at: datetime | None = None


class DailyCapacityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    current_covers: int
    max_covers_per_day: int | None
    remaining: int | None
    available: bool
    closed: bool
    state: CapacityState


class SlotAvailabilityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time_slot: str
    current_covers: int
    capacity: int | None
    remaining: int | None
    available: bool
