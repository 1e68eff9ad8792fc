"""Reservation settings management for one tenant."""

import logging
from dataclasses import replace
from typing import Any

from backend.app.db.context import RequestContext
from backend.app.db.repositories import ReservationSettingsRecord, SlotCapacityRecord, TenantStore
from backend.app.errors import NotFound
from backend.app.reservations.schedule import (
    ALLOWED_SLOT_INTERVALS,
    normalize_slot,
    validate_operating_hours,
)
from backend.app.tenancy.gate import RequestGate

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = frozenset(
    {
        "max_covers_per_day",
        "max_covers_per_slot",
        "operating_hours",
        "time_slot_interval",
        "min_party_size",
        "max_party_size",
    }
)


class ReservationSettingsService:
    """Reads and updates capacity settings and per-slot capacities."""

    def __init__(self, tenants: TenantStore, gate: RequestGate) -> None:
        self._tenants = tenants
        self._gate = gate

    def get(self, ctx: RequestContext) -> ReservationSettingsRecord:
        self._gate.authorize(ctx, "settings.read")
        return self._tenants.get_settings(ctx.tenant_id) or ReservationSettingsRecord(
            tenant_id=ctx.tenant_id
        )

    def list_slot_capacities(self, ctx: RequestContext) -> list[SlotCapacityRecord]:
        self._gate.authorize(ctx, "settings.read")
        return self._tenants.list_slot_capacities(ctx.tenant_id)

    def update(self, ctx: RequestContext, changes: dict[str, Any]) -> ReservationSettingsRecord:
        """Apply a partial update and validate the merged result.

        Fields absent from ``changes`` keep their stored value, so a partial
        update is checked against the existing ones (a new minimum party size
        against the stored maximum, for example). Operating hours merge per
        weekday: a day sent replaces that day, days not sent are kept.

        Raises:
            InsufficientRole: Caller below ADMIN
            ValueError: Unknown field or invalid merged settings
        """
        self._gate.authorize(ctx, "settings.update")

        unknown = set(changes) - SETTINGS_FIELDS
        if unknown:
            raise ValueError(f"unknown settings fields {sorted(unknown)}")

        current = self._tenants.get_settings(ctx.tenant_id) or ReservationSettingsRecord(
            tenant_id=ctx.tenant_id
        )
        if "operating_hours" in changes:
            changes = {
                **changes,
                "operating_hours": {**current.operating_hours, **changes["operating_hours"]},
            }
        merged = replace(current, **changes)
        validate_settings(merged)

        saved = self._tenants.save_settings(merged)
        logger.info(
            "Reservation settings updated",
            extra={"structured": {"tenant_id": str(ctx.tenant_id), "fields": sorted(changes)}},
        )
        return saved

    def set_slot_capacity(
        self,
        ctx: RequestContext,
        day_of_week: int,
        time_slot: str,
        max_covers: int,
        is_active: bool = True,
    ) -> SlotCapacityRecord:
        """Create or replace the capacity of one weekday slot (0 = Monday).

        Raises:
            InsufficientRole: Caller below ADMIN
            ValueError: Bad weekday, slot or cover count
        """
        self._gate.authorize(ctx, "settings.update")
        return self._tenants.set_slot_capacity(
            _slot_capacity(ctx, day_of_week, time_slot, max_covers, is_active)
        )

    def bulk_set_slot_capacities(
        self, ctx: RequestContext, entries: list[dict[str, Any]]
    ) -> list[SlotCapacityRecord]:
        """Create or replace several slot capacities at once.

        Every entry is validated before any is written. Entries naming the
        same weekday slot collapse to the last one.

        Raises:
            InsufficientRole: Caller below ADMIN
            ValueError: Any entry with a bad weekday, slot or cover count
        """
        self._gate.authorize(ctx, "settings.update")
        records: dict[tuple[int, str], SlotCapacityRecord] = {}
        for entry in entries:
            record = _slot_capacity(
                ctx,
                entry["day_of_week"],
                entry["time_slot"],
                entry["max_covers"],
                entry.get("is_active", True),
            )
            records[(record.day_of_week, record.time_slot)] = record

        saved = self._tenants.set_slot_capacities(list(records.values()))
        logger.info(
            "Slot capacities updated",
            extra={"structured": {"tenant_id": str(ctx.tenant_id), "count": len(saved)}},
        )
        return saved

    def delete_slot_capacity(self, ctx: RequestContext, day_of_week: int, time_slot: str) -> None:
        """Remove the capacity of one weekday slot; the tenant-wide ceiling applies again.

        Raises:
            InsufficientRole: Caller below ADMIN
            NotFound: No capacity stored for that slot
            ValueError: Malformed slot
        """
        self._gate.authorize(ctx, "settings.update")
        if not self._tenants.delete_slot_capacity(
            ctx.tenant_id, day_of_week, normalize_slot(time_slot)
        ):
            raise NotFound("slot capacity")


def _slot_capacity(
    ctx: RequestContext, day_of_week: int, time_slot: str, max_covers: int, is_active: bool
) -> SlotCapacityRecord:
    if not 0 <= day_of_week <= 6:
        raise ValueError("day_of_week must be between 0 (Monday) and 6 (Sunday)")
    if max_covers < 0:
        raise ValueError("max_covers must not be negative")
    return SlotCapacityRecord(
        tenant_id=ctx.tenant_id,
        day_of_week=day_of_week,
        time_slot=normalize_slot(time_slot),
        max_covers=max_covers,
        is_active=is_active,
    )


def validate_settings(settings: ReservationSettingsRecord) -> None:
    """Raises ValueError describing the first invalid field."""
    for name in ("max_covers_per_day", "max_covers_per_slot"):
        value = getattr(settings, name)
        if value is not None and value < 0:
            raise ValueError(f"{name} must not be negative")
    if settings.time_slot_interval not in ALLOWED_SLOT_INTERVALS:
        raise ValueError(f"time_slot_interval must be one of {list(ALLOWED_SLOT_INTERVALS)}")
    if settings.min_party_size < 1:
        raise ValueError("min_party_size must be at least 1")
    if settings.max_party_size < settings.min_party_size:
        raise ValueError("max_party_size must be >= min_party_size")
    validate_operating_hours(settings.operating_hours)
