"""Reservation settings endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Response, status

from backend.app.api.deps import ContextDep, ServicesDep
from backend.app.models.settings import (
    ReservationSettingsOut,
    ReservationSettingsUpdate,
    SlotCapacityOut,
    SlotCapacityUpdate,
)

router = APIRouter(prefix="/settings/reservations", tags=["settings"])


@router.get("", response_model=ReservationSettingsOut)
def get_reservation_settings(ctx: ContextDep, services: ServicesDep) -> ReservationSettingsOut:
    record = services.reservation_settings.get(ctx)
    return ReservationSettingsOut.model_validate(asdict(record))


@router.put("", response_model=ReservationSettingsOut)
def update_reservation_settings(
    body: ReservationSettingsUpdate, ctx: ContextDep, services: ServicesDep
) -> ReservationSettingsOut:
    """Partially update settings (ADMIN and above)."""
    record = services.reservation_settings.update(ctx, body.changes())
    return ReservationSettingsOut.model_validate(asdict(record))


@router.get("/slot-capacity", response_model=list[SlotCapacityOut])
def list_slot_capacities(ctx: ContextDep, services: ServicesDep) -> list[SlotCapacityOut]:
    return [
        SlotCapacityOut.model_validate(record)
        for record in services.reservation_settings.list_slot_capacities(ctx)
    ]


@router.put("/slot-capacity", response_model=SlotCapacityOut)
def set_slot_capacity(
    body: SlotCapacityUpdate, ctx: ContextDep, services: ServicesDep
) -> SlotCapacityOut:
    """Create or replace the capacity of one weekday slot (ADMIN and above)."""
    record = services.reservation_settings.set_slot_capacity(
        ctx, body.day_of_week, body.time_slot, body.max_covers, body.is_active
    )
    return SlotCapacityOut.model_validate(record)


@router.put("/slot-capacity/bulk", response_model=list[SlotCapacityOut])
def bulk_set_slot_capacities(
    body: list[SlotCapacityUpdate], ctx: ContextDep, services: ServicesDep
) -> list[SlotCapacityOut]:
    """Create or replace several weekday slot capacities in one request (ADMIN and above)."""
    records = services.reservation_settings.bulk_set_slot_capacities(
        ctx, [entry.model_dump() for entry in body]
    )
    return [SlotCapacityOut.model_validate(record) for record in records]


@router.delete("/slot-capacity/{day_of_week}/{time_slot}", status_code=status.HTTP_204_NO_CONTENT)
def delete_slot_capacity(
    day_of_week: int, time_slot: str, ctx: ContextDep, services: ServicesDep
) -> Response:
    """Remove one weekday slot capacity (ADMIN and above)."""
    services.reservation_settings.delete_slot_capacity(ctx, day_of_week, time_slot)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
