"""Reservation settings models."""

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.reservations.schedule import (
    ALLOWED_SLOT_INTERVALS,
    normalize_slot,
    validate_operating_hours,
)


class DayHours(BaseModel):
    """Opening hours of one weekday."""

    model_config = ConfigDict(extra="forbid")

    open: str | None = None
    close: str | None = None
    closed: bool = False

    @field_validator("open", "close")
    @classmethod
    def validate_time(cls, v: str | None) -> str | None:
        return None if v is None else normalize_slot(v)


class ReservationSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tenant_id: uuid.UUID
    max_covers_per_day: int | None
    max_covers_per_slot: int | None
    operating_hours: dict[str, DayHours]
    time_slot_interval: int
    min_party_size: int
    max_party_size: int


class ReservationSettingsUpdate(BaseModel):
    """Partial settings update; only fields that are sent are changed."""

    max_covers_per_day: int | None = Field(None, ge=0)
    max_covers_per_slot: int | None = Field(None, ge=0)
    # Days sent replace that day's stored hours; days not sent are kept.
    operating_hours: dict[str, DayHours] | None = None
    time_slot_interval: int | None = None
    min_party_size: int | None = Field(None, ge=1)
    max_party_size: int | None = Field(None, ge=1)

    @field_validator("time_slot_interval")
    @classmethod
    def validate_interval(cls, v: int | None) -> int | None:
        if v is not None and v not in ALLOWED_SLOT_INTERVALS:
            raise ValueError(f"time_slot_interval must be one of {list(ALLOWED_SLOT_INTERVALS)}")
        return v

    @field_validator("operating_hours")
    @classmethod
    def validate_hours(cls, v: dict[str, DayHours] | None) -> dict[str, DayHours] | None:
        if v is not None:
            validate_operating_hours({day: hours.model_dump() for day, hours in v.items()})
        return v

    def changes(self) -> dict[str, Any]:
        """Fields explicitly present in the request.

        Ceilings may be cleared by sending null; the other fields may not.
        """
        sent = self.model_dump(exclude_unset=True)
        if self.operating_hours is not None:
            sent["operating_hours"] = {
                day: {"closed": True} if hours.closed else hours.model_dump()
                for day, hours in self.operating_hours.items()
            }
        for name in ("operating_hours", "time_slot_interval", "min_party_size", "max_party_size"):
            if name in sent and sent[name] is None:
                raise ValueError(f"{name} cannot be null")
        return sent


class SlotCapacityUpdate(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Monday")
    time_slot: str
    max_covers: int = Field(..., ge=0)
    is_active: bool = True

    @field_validator("time_slot")
    @classmethod
    def validate_time_slot(cls, v: str) -> str:
        return normalize_slot(v)


class SlotCapacityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_of_week: int
    time_slot: str
    max_covers: int
    is_active: bool
