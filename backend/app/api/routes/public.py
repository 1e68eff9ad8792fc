"""Customer-facing endpoints addressed by tenant slug.

No staff membership is required. A customer who books while authenticated
becomes the reservation's owner and may later cancel it here.
"""

import uuid
from dataclasses import asdict
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from backend.app.api.auth import get_current_principal
from backend.app.api.deps import PublicContextDep, ServicesDep
from backend.app.db.context import Principal
from backend.app.models.catalog import CatalogEntity, PublicMenu
from backend.app.models.reservation import (
    DailyCapacityOut,
    PublicReservationCreate,
    PublicReservationReschedule,
    ReservationOut,
    SlotAvailabilityOut,
)
from backend.app.reservations.capacity import AdmissionRequest, RescheduleRequest

router = APIRouter(prefix="/public/{slug}", tags=["public"])


@router.get("/menus", response_model=list[PublicMenu])
def list_public_menus(ctx: PublicContextDep, services: ServicesDep) -> list[PublicMenu]:
    scope = services.gate.scope(ctx)
    menus: list[PublicMenu] = []
    for menu in scope.list("menu", is_public=True):
        items = scope.list("menu_item", menu_id=menu.id)
        items.sort(key=lambda item: item.data.get("position") or 0)
        menus.append(
            PublicMenu(
                menu=CatalogEntity.from_record(menu),
                items=[CatalogEntity.from_record(item) for item in items],
            )
        )
    return menus


@router.get("/capacity", response_model=list[DailyCapacityOut])
def get_public_capacity(
    ctx: PublicContextDep,
    services: ServicesDep,
    start: date,
    end: date,
    party_size: Annotated[int | None, Query(gt=0)] = None,
) -> list[DailyCapacityOut]:
    """Date-picker view: which days can still take the party."""
    days = services.admission.daily_capacity(ctx.tenant_id, start, end, party_size)
    return [DailyCapacityOut.model_validate(asdict(day)) for day in days]


@router.get("/availability", response_model=list[SlotAvailabilityOut])
def get_public_availability(
    ctx: PublicContextDep,
    services: ServicesDep,
    on: Annotated[date, Query(alias="date")],
    party_size: Annotated[int | None, Query(gt=0)] = None,
) -> list[SlotAvailabilityOut]:
    slots = services.admission.slot_availability(ctx.tenant_id, on, party_size)
    return [SlotAvailabilityOut.model_validate(asdict(slot)) for slot in slots]


@router.post("/reservations", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
def create_public_reservation(
    body: PublicReservationCreate, ctx: PublicContextDep, services: ServicesDep
) -> ReservationOut:
    record = services.admission.admit(ctx, AdmissionRequest(**body.model_dump()))
    return ReservationOut.model_validate(record)


@router.get("/reservations", response_model=list[ReservationOut])
def list_my_reservations(
    ctx: PublicContextDep,
    services: ServicesDep,
    principal: Annotated[Principal, Depends(get_current_principal)],
    upcoming: bool = False,
) -> list[ReservationOut]:
    """Reservations the authenticated customer made at this restaurant."""
    return [
        ReservationOut.model_validate(record)
        for record in services.admission.list_for_customer(ctx, upcoming=upcoming)
    ]


@router.get("/reservations/{reservation_id}", response_model=ReservationOut)
def get_my_reservation(
    reservation_id: uuid.UUID,
    ctx: PublicContextDep,
    services: ServicesDep,
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> ReservationOut:
    return ReservationOut.model_validate(services.admission.get_for_customer(ctx, reservation_id))


@router.patch("/reservations/{reservation_id}", response_model=ReservationOut)
def reschedule_my_reservation(
    reservation_id: uuid.UUID,
    body: PublicReservationReschedule,
    ctx: PublicContextDep,
    services: ServicesDep,
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> ReservationOut:
    """Move a reservation the authenticated customer made."""
    record = services.admission.reschedule(
        ctx, reservation_id, RescheduleRequest(**body.model_dump())
    )
    return ReservationOut.model_validate(record)


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationOut)
def cancel_public_reservation(
    reservation_id: uuid.UUID,
    ctx: PublicContextDep,
    services: ServicesDep,
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> ReservationOut:
    """Cancel a reservation the authenticated customer created."""
    return ReservationOut.model_validate(services.admission.cancel(ctx, reservation_id))
