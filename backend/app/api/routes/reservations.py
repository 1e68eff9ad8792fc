"""Staff reservation endpoints - admission, cancellation and capacity views."""

import uuid
from dataclasses import asdict
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Query, status

from backend.app.api.deps import ContextDep, ServicesDep
from backend.app.db.repositories import ReservationStatus
from backend.app.models.reservation import (
    DailyCapacityOut,
    ReservationCreate,
    ReservationOut,
    ReservationReschedule,
    SlotAvailabilityOut,
    StatusUpdate,
)
from backend.app.reservations.capacity import AdmissionRequest, RescheduleRequest

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post("", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
def create_reservation(
    body: ReservationCreate, ctx: ContextDep, services: ServicesDep
) -> ReservationOut:
    """Admit a reservation.

    Returns 409 with the remaining capacity when the day or slot is full, and
    503 with ``Retry-After`` when the admission lock is busy.
    """
    services.gate.authorize(ctx, "reservation.create")
    record = services.admission.admit(ctx, AdmissionRequest(**body.model_dump()))
    return ReservationOut.model_validate(record)


@router.get("", response_model=list[ReservationOut])
def list_reservations(
    ctx: ContextDep,
    services: ServicesDep,
    on: Annotated[date, Query(alias="date")],
    status_filter: Annotated[ReservationStatus | None, Query(alias="status")] = None,
) -> list[ReservationOut]:
    services.gate.authorize(ctx, "reservation.read")
    return [
        ReservationOut.model_validate(record)
        for record in services.admission.list_for_date(ctx, on, status_filter)
    ]


@router.get("/capacity", response_model=list[DailyCapacityOut])
def get_daily_capacity(
    ctx: ContextDep,
    services: ServicesDep,
    start: date,
    end: date,
    party_size: Annotated[int | None, Query(gt=0)] = None,
) -> list[DailyCapacityOut]:
    """Per-day cover usage and state for an inclusive date range."""
    services.gate.authorize(ctx, "reservation.read")
    days = services.admission.daily_capacity(ctx.tenant_id, start, end, party_size)
    return [DailyCapacityOut.model_validate(asdict(day)) for day in days]


@router.get("/availability", response_model=list[SlotAvailabilityOut])
def get_slot_availability(
    ctx: ContextDep,
    services: ServicesDep,
    on: Annotated[date, Query(alias="date")],
    party_size: Annotated[int | None, Query(gt=0)] = None,
) -> list[SlotAvailabilityOut]:
    services.gate.authorize(ctx, "reservation.read")
    slots = services.admission.slot_availability(ctx.tenant_id, on, party_size)
    return [SlotAvailabilityOut.model_validate(asdict(slot)) for slot in slots]


@router.get("/{reservation_id}", response_model=ReservationOut)
def get_reservation(
    reservation_id: uuid.UUID, ctx: ContextDep, services: ServicesDep
) -> ReservationOut:
    services.gate.authorize(ctx, "reservation.read")
    return ReservationOut.model_validate(services.admission.get(ctx, reservation_id))


@router.post("/{reservation_id}/cancel", response_model=ReservationOut)
def cancel_reservation(
    reservation_id: uuid.UUID, ctx: ContextDep, services: ServicesDep
) -> ReservationOut:
    """Cancel a reservation; its covers are released immediately."""
    return ReservationOut.model_validate(services.admission.cancel(ctx, reservation_id))


@router.post("/{reservation_id}/status", response_model=ReservationOut)
def update_reservation_status(
    reservation_id: uuid.UUID, body: StatusUpdate, ctx: ContextDep, services: ServicesDep
) -> ReservationOut:
    record = services.admission.update_status(ctx, reservation_id, body.status)
    return ReservationOut.model_validate(record)


@router.patch("/{reservation_id}", response_model=ReservationOut)
def reschedule_reservation(
    reservation_id: uuid.UUID, body: ReservationReschedule, ctx: ContextDep, services: ServicesDep
) -> ReservationOut:
    """Move a reservation to another date, slot or party size.

    Capacity is checked again for the new values, with 409 on rejection.
    """
    record = services.admission.reschedule(ctx, reservation_id, RescheduleRequest(**body.model_dump()))
    return ReservationOut.model_validate(record)
