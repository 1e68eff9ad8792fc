"""Repository protocol interfaces for data access.

Every method that reads or writes tenant-owned rows takes the tenant id as a
required argument; there is no unscoped accessor for scoped data.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

from backend.app.tenancy.roles import Role

DEFAULT_OPERATING_HOURS: dict[str, dict[str, Any]] = {
    "sunday": {"closed": True},
    "monday": {"open": "17:00", "close": "22:00", "closed": False},
    "tuesday": {"open": "17:00", "close": "22:00", "closed": False},
    "wednesday": {"open": "17:00", "close": "22:00", "closed": False},
    "thursday": {"open": "17:00", "close": "22:00", "closed": False},
    "friday": {"open": "17:00", "close": "22:00", "closed": False},
    "saturday": {"open": "17:00", "close": "22:00", "closed": False},
}


@dataclass
class TenantRecord:
    """Tenant data record."""

    tenant_id: UUID
    slug: str
    name: str
    is_active: bool = True


@dataclass
class StaffAssignmentRecord:
    """Staff assignment data record."""

    principal_id: UUID
    tenant_id: UUID
    role: Role
    is_active: bool = True


@dataclass
class ReservationSettingsRecord:
    """Reservation settings for one tenant."""

    tenant_id: UUID
    max_covers_per_day: int | None = None
    max_covers_per_slot: int | None = None
    operating_hours: dict[str, dict[str, Any]] = field(
        default_factory=lambda: {day: dict(hours) for day, hours in DEFAULT_OPERATING_HOURS.items()}
    )
    time_slot_interval: int = 30
    min_party_size: int = 1
    max_party_size: int = 20


@dataclass
class SlotCapacityRecord:
    """Cover ceiling for one (weekday, slot) of a tenant."""

    tenant_id: UUID
    day_of_week: int
    time_slot: str
    max_covers: int
    is_active: bool = True


class ReservationStatus(str, Enum):
    """Reservation lifecycle status. Only CONFIRMED counts toward capacity."""

    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


@dataclass
class ReservationRecord:
    """Reservation data record."""

    reservation_id: UUID
    tenant_id: UUID
    reservation_date: date
    time_slot: str
    party_size: int
    status: ReservationStatus
    customer_name: str
    customer_email: str | None = None
    customer_phone: str | None = None
    notes: str | None = None
    created_by: UUID | None = None
    override: bool = False
    created_at: datetime | None = None


@dataclass
class ScopedRecord:
    """One tenant-scoped catalog entity."""

    kind: str
    id: UUID
    tenant_id: UUID
    data: dict[str, Any]
    created_at: datetime | None = None


class TenantStore(Protocol):
    """Store for tenants, staff assignments and reservation settings."""

    def create_tenant(self, slug: str, name: str) -> TenantRecord:
        """Create an active tenant (onboarding)."""
        ...

    def set_tenant_active(self, tenant_id: UUID, is_active: bool) -> None:
        """Soft-enable or soft-disable a tenant."""
        ...

    def get_tenant(self, tenant_id: UUID) -> TenantRecord | None:
        """Get tenant by ID, active or not."""
        ...

    def get_tenant_by_slug(self, slug: str) -> TenantRecord | None:
        """Get tenant by public slug, active or not."""
        ...

    def assign(self, principal_id: UUID, tenant_id: UUID, role: Role) -> StaffAssignmentRecord:
        """Create or reactivate a staff assignment with the given role."""
        ...

    def deactivate_assignment(self, principal_id: UUID, tenant_id: UUID) -> None:
        """Deactivate a staff assignment; the row is kept for audit."""
        ...

    def list_assignments(self, principal_id: UUID) -> list[StaffAssignmentRecord]:
        """List every assignment of a principal, including inactive ones."""
        ...

    def get_settings(self, tenant_id: UUID) -> ReservationSettingsRecord | None:
        """Get reservation settings, or None if the tenant has none yet."""
        ...

    def save_settings(self, settings: ReservationSettingsRecord) -> ReservationSettingsRecord:
        """Insert or replace reservation settings."""
        ...

    def list_slot_capacities(self, tenant_id: UUID) -> list[SlotCapacityRecord]:
        """List per-slot capacity overrides of a tenant."""
        ...

    def set_slot_capacity(self, capacity: SlotCapacityRecord) -> SlotCapacityRecord:
        """Insert or replace a per-slot capacity override."""
        ...

    def set_slot_capacities(self, capacities: list[SlotCapacityRecord]) -> list[SlotCapacityRecord]:
        """Insert or replace several overrides in one transaction."""
        ...

    def delete_slot_capacity(self, tenant_id: UUID, day_of_week: int, time_slot: str) -> bool:
        """Delete an override; returns False if the tenant has none for that slot."""
        ...


class ReservationStore(Protocol):
    """Store for reservations, always addressed within one tenant."""

    def insert(self, reservation: ReservationRecord) -> ReservationRecord:
        """Persist a new reservation."""
        ...

    def get(self, tenant_id: UUID, reservation_id: UUID) -> ReservationRecord | None:
        """Get reservation by ID within a tenant."""
        ...

    def list_for_date(
        self, tenant_id: UUID, on: date, status: ReservationStatus | None = None
    ) -> list[ReservationRecord]:
        """List reservations of one day ordered by slot then creation."""
        ...

    def list_for_creator(self, tenant_id: UUID, created_by: UUID) -> list[ReservationRecord]:
        """List reservations a principal created, ordered by date then slot."""
        ...

    def set_status(
        self, tenant_id: UUID, reservation_id: UUID, status: ReservationStatus
    ) -> ReservationRecord | None:
        """Change status; returns None if the reservation is not in the tenant."""
        ...

    def reschedule(
        self,
        tenant_id: UUID,
        reservation_id: UUID,
        reservation_date: date,
        time_slot: str,
        party_size: int,
    ) -> ReservationRecord | None:
        """Move a reservation; returns None if the reservation is not in the tenant."""
        ...

    def sum_confirmed_covers(self, tenant_id: UUID, on: date, time_slot: str | None = None) -> int:
        """Sum party sizes of CONFIRMED reservations for a day, or one slot of it."""
        ...

    def covers_by_slot(self, tenant_id: UUID, on: date) -> dict[str, int]:
        """CONFIRMED covers per slot for one day."""
        ...

    def covers_by_date(self, tenant_id: UUID, start: date, end: date) -> dict[date, int]:
        """CONFIRMED covers per day for an inclusive date range."""
        ...


class ScopedStore(Protocol):
    """Store for tenant-scoped catalog entities."""

    def find(self, kind: str, tenant_id: UUID, entity_id: UUID) -> ScopedRecord | None:
        """Get one entity of ``kind`` within a tenant."""
        ...

    def list(self, kind: str, tenant_id: UUID, filters: dict[str, Any]) -> list[ScopedRecord]:
        """List entities of ``kind`` within a tenant matching equality filters."""
        ...

    def insert(self, kind: str, tenant_id: UUID, data: dict[str, Any]) -> ScopedRecord:
        """Create an entity owned by ``tenant_id``."""
        ...

    def update(
        self, kind: str, tenant_id: UUID, entity_id: UUID, changes: dict[str, Any]
    ) -> ScopedRecord | None:
        """Apply changes; returns None if the entity is not in the tenant."""
        ...

    def delete(self, kind: str, tenant_id: UUID, entity_id: UUID) -> bool:
        """Delete; returns False if the entity is not in the tenant."""
        ...
