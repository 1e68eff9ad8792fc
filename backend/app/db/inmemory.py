"""In-memory implementations of repository interfaces."""

import threading
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Any

from backend.app.db.repositories import (
    ReservationRecord,
    ReservationSettingsRecord,
    ReservationStatus,
    ScopedRecord,
    SlotCapacityRecord,
    StaffAssignmentRecord,
    TenantRecord,
)
from backend.app.tenancy.entities import get_kind
from backend.app.tenancy.roles import Role


class InMemoryTenantStore:
    """In-memory implementation of TenantStore."""

    def __init__(self) -> None:
        self._tenants: dict[uuid.UUID, TenantRecord] = {}
        self._assignments: dict[tuple[uuid.UUID, uuid.UUID], StaffAssignmentRecord] = {}
        self._settings: dict[uuid.UUID, ReservationSettingsRecord] = {}
        self._slot_capacities: dict[tuple[uuid.UUID, int, str], SlotCapacityRecord] = {}
        self._lock = threading.RLock()

    def create_tenant(self, slug: str, name: str) -> TenantRecord:
        """Create an active tenant."""
        with self._lock:
            if self.get_tenant_by_slug(slug) is not None:
                raise ValueError(f"slug {slug!r} already taken")
            record = TenantRecord(tenant_id=uuid.uuid4(), slug=slug, name=name)
            self._tenants[record.tenant_id] = record
            return replace(record)

    def set_tenant_active(self, tenant_id: uuid.UUID, is_active: bool) -> None:
        """Soft-enable or soft-disable a tenant."""
        with self._lock:
            if tenant_id in self._tenants:
                self._tenants[tenant_id].is_active = is_active

    def get_tenant(self, tenant_id: uuid.UUID) -> TenantRecord | None:
        """Get tenant by ID."""
        record = self._tenants.get(tenant_id)
        return replace(record) if record else None

    def get_tenant_by_slug(self, slug: str) -> TenantRecord | None:
        """Get tenant by slug."""
        with self._lock:
            for record in self._tenants.values():
                if record.slug == slug:
                    return replace(record)
        return None

    def assign(
        self, principal_id: uuid.UUID, tenant_id: uuid.UUID, role: Role
    ) -> StaffAssignmentRecord:
        """Create or reactivate a staff assignment."""
        record = StaffAssignmentRecord(principal_id=principal_id, tenant_id=tenant_id, role=role)
        with self._lock:
            self._assignments[(principal_id, tenant_id)] = record
        return replace(record)

    def deactivate_assignment(self, principal_id: uuid.UUID, tenant_id: uuid.UUID) -> None:
        """Deactivate a staff assignment."""
        with self._lock:
            record = self._assignments.get((principal_id, tenant_id))
            if record is not None:
                record.is_active = False

    def list_assignments(self, principal_id: uuid.UUID) -> list[StaffAssignmentRecord]:
        """List every assignment of a principal."""
        with self._lock:
            return [
                replace(record)
                for (owner, _), record in self._assignments.items()
                if owner == principal_id
            ]

    def get_settings(self, tenant_id: uuid.UUID) -> ReservationSettingsRecord | None:
        """Get reservation settings."""
        record = self._settings.get(tenant_id)
        return replace(record) if record else None

    def save_settings(self, settings: ReservationSettingsRecord) -> ReservationSettingsRecord:
        """Insert or replace reservation settings."""
        with self._lock:
            self._settings[settings.tenant_id] = replace(settings)
        return replace(settings)

    def list_slot_capacities(self, tenant_id: uuid.UUID) -> list[SlotCapacityRecord]:
        """List per-slot capacity overrides."""
        with self._lock:
            records = [
                replace(record)
                for record in self._slot_capacities.values()
                if record.tenant_id == tenant_id
            ]
        return sorted(records, key=lambda r: (r.day_of_week, r.time_slot))

    def set_slot_capacity(self, capacity: SlotCapacityRecord) -> SlotCapacityRecord:
        """Insert or replace a per-slot capacity override."""
        key = (capacity.tenant_id, capacity.day_of_week, capacity.time_slot)
        with self._lock:
            self._slot_capacities[key] = replace(capacity)
        return replace(capacity)

    def set_slot_capacities(self, capacities: list[SlotCapacityRecord]) -> list[SlotCapacityRecord]:
        """Insert or replace several overrides at once."""
        with self._lock:
            return [self.set_slot_capacity(capacity) for capacity in capacities]

    def delete_slot_capacity(self, tenant_id: uuid.UUID, day_of_week: int, time_slot: str) -> bool:
        """Delete a per-slot capacity override."""
        with self._lock:
            return self._slot_capacities.pop((tenant_id, day_of_week, time_slot), None) is not None


class InMemoryReservationStore:
    """In-memory implementation of ReservationStore."""

    def __init__(self) -> None:
        self._reservations: dict[uuid.UUID, ReservationRecord] = {}
        self._lock = threading.RLock()

    def insert(self, reservation: ReservationRecord) -> ReservationRecord:
        """Persist a new reservation."""
        stored = replace(reservation, created_at=reservation.created_at or datetime.now())
        with self._lock:
            self._reservations[stored.reservation_id] = stored
        return replace(stored)

    def get(self, tenant_id: uuid.UUID, reservation_id: uuid.UUID) -> ReservationRecord | None:
        """Get reservation by ID within a tenant."""
        record = self._reservations.get(reservation_id)

        # Enforce tenancy
        if record is None or record.tenant_id != tenant_id:
            return None

        return replace(record)

    def list_for_date(
        self, tenant_id: uuid.UUID, on: date, status: ReservationStatus | None = None
    ) -> list[ReservationRecord]:
        """List reservations of one day."""
        with self._lock:
            records = [
                replace(record)
                for record in self._reservations.values()
                if record.tenant_id == tenant_id
                and record.reservation_date == on
                and (status is None or record.status == status)
            ]
        records.sort(key=lambda r: (r.time_slot, r.created_at or datetime.min))
        return records

    def list_for_creator(
        self, tenant_id: uuid.UUID, created_by: uuid.UUID
    ) -> list[ReservationRecord]:
        """List reservations a principal created."""
        with self._lock:
            records = [
                replace(record)
                for record in self._reservations.values()
                if record.tenant_id == tenant_id and record.created_by == created_by
            ]
        records.sort(key=lambda r: (r.reservation_date, r.time_slot, r.created_at or datetime.min))
        return records

    def set_status(
        self, tenant_id: uuid.UUID, reservation_id: uuid.UUID, status: ReservationStatus
    ) -> ReservationRecord | None:
        """Change reservation status."""
        with self._lock:
            record = self._reservations.get(reservation_id)
            if record is None or record.tenant_id != tenant_id:
                return None
            record.status = status
            return replace(record)

    def reschedule(
        self,
        tenant_id: uuid.UUID,
        reservation_id: uuid.UUID,
        reservation_date: date,
        time_slot: str,
        party_size: int,
    ) -> ReservationRecord | None:
        """Move a reservation to another date, slot or party size."""
        with self._lock:
            record = self._reservations.get(reservation_id)
            if record is None or record.tenant_id != tenant_id:
                return None
            record.reservation_date = reservation_date
            record.time_slot = time_slot
            record.party_size = party_size
            return replace(record)

    def sum_confirmed_covers(
        self, tenant_id: uuid.UUID, on: date, time_slot: str | None = None
    ) -> int:
        """Sum party sizes of CONFIRMED reservations."""
        return sum(
            record.party_size
            for record in self._confirmed(tenant_id, on, on)
            if time_slot is None or record.time_slot == time_slot
        )

    def covers_by_slot(self, tenant_id: uuid.UUID, on: date) -> dict[str, int]:
        """CONFIRMED covers per slot."""
        totals: dict[str, int] = {}
        for record in self._confirmed(tenant_id, on, on):
            totals[record.time_slot] = totals.get(record.time_slot, 0) + record.party_size
        return totals

    def covers_by_date(self, tenant_id: uuid.UUID, start: date, end: date) -> dict[date, int]:
        """CONFIRMED covers per day."""
        totals: dict[date, int] = {}
        for record in self._confirmed(tenant_id, start, end):
            day = record.reservation_date
            totals[day] = totals.get(day, 0) + record.party_size
        return totals

    def _confirmed(self, tenant_id: uuid.UUID, start: date, end: date) -> list[ReservationRecord]:
        with self._lock:
            return [
                record
                for record in self._reservations.values()
                if record.tenant_id == tenant_id
                and start <= record.reservation_date <= end
                and record.status == ReservationStatus.CONFIRMED
            ]


class InMemoryScopedStore:
    """In-memory implementation of ScopedStore."""

    def __init__(self) -> None:
        self._entities: dict[tuple[str, uuid.UUID], ScopedRecord] = {}
        self._lock = threading.RLock()

    def find(self, kind: str, tenant_id: uuid.UUID, entity_id: uuid.UUID) -> ScopedRecord | None:
        """Get one entity within a tenant."""
        record = self._entities.get((kind, entity_id))

        # Enforce tenancy
        if record is None or record.tenant_id != tenant_id:
            return None

        return _copy(record)

    def list(
        self, kind: str, tenant_id: uuid.UUID, filters: dict[str, Any]
    ) -> list[ScopedRecord]:
        """List entities within a tenant."""
        with self._lock:
            records = [
                _copy(record)
                for (record_kind, _), record in self._entities.items()
                if record_kind == kind
                and record.tenant_id == tenant_id
                and all(record.data.get(key) == value for key, value in filters.items())
            ]
        records.sort(key=lambda r: r.created_at or datetime.min)
        return records

    def insert(self, kind: str, tenant_id: uuid.UUID, data: dict[str, Any]) -> ScopedRecord:
        """Create an entity."""
        # Every declared field is present, like a row read back from SQL.
        row = {
            name: None if info.is_required() else info.get_default()
            for name, info in get_kind(kind).model.model_fields.items()
        }
        row.update(data)
        record = ScopedRecord(
            kind=kind,
            id=uuid.uuid4(),
            tenant_id=tenant_id,
            data=row,
            created_at=datetime.now(),
        )
        with self._lock:
            self._entities[(kind, record.id)] = record
        return _copy(record)

    def update(
        self, kind: str, tenant_id: uuid.UUID, entity_id: uuid.UUID, changes: dict[str, Any]
    ) -> ScopedRecord | None:
        """Apply changes to an entity."""
        with self._lock:
            record = self._entities.get((kind, entity_id))
            if record is None or record.tenant_id != tenant_id:
                return None
            record.data.update(changes)
            return _copy(record)

    def delete(self, kind: str, tenant_id: uuid.UUID, entity_id: uuid.UUID) -> bool:
        """Delete an entity."""
        with self._lock:
            record = self._entities.get((kind, entity_id))
            if record is None or record.tenant_id != tenant_id:
                return False
            del self._entities[(kind, entity_id)]
            return True


def _copy(record: ScopedRecord) -> ScopedRecord:
    return replace(record, data=dict(record.data))
