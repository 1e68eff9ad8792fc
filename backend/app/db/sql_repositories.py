"""SQL implementations of repository interfaces.

Each method runs in its own short session and commits before returning, so
the stores are safe to share between concurrent requests.
"""

import uuid
from datetime import date
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from backend.app.db.models import (
    Category,
    Ingredient,
    Menu,
    MenuItem,
    Recipe,
    RecipeIngredient,
    Reservation,
    ReservationSettings,
    StaffAssignment,
    Tenant,
    TenantScoped,
    TimeSlotCapacity,
)
from backend.app.db.queries import query_reservations, query_reservations_between, query_scoped
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

SCOPED_MODELS: dict[str, type[TenantScoped]] = {
    "category": Category,
    "ingredient": Ingredient,
    "recipe": Recipe,
    "recipe_ingredient": RecipeIngredient,
    "menu": Menu,
    "menu_item": MenuItem,
}


def _tenant_record(row: Tenant) -> TenantRecord:
    return TenantRecord(
        tenant_id=row.tenant_id, slug=row.slug, name=row.name, is_active=row.is_active
    )


def _assignment_record(row: StaffAssignment) -> StaffAssignmentRecord:
    return StaffAssignmentRecord(
        principal_id=row.principal_id,
        tenant_id=row.tenant_id,
        role=Role(row.role),
        is_active=row.is_active,
    )


def _settings_record(row: ReservationSettings) -> ReservationSettingsRecord:
    return ReservationSettingsRecord(
        tenant_id=row.tenant_id,
        max_covers_per_day=row.max_covers_per_day,
        max_covers_per_slot=row.max_covers_per_slot,
        operating_hours=dict(row.operating_hours),
        time_slot_interval=row.time_slot_interval,
        min_party_size=row.min_party_size,
        max_party_size=row.max_party_size,
    )


def _slot_record(row: TimeSlotCapacity) -> SlotCapacityRecord:
    return SlotCapacityRecord(
        tenant_id=row.tenant_id,
        day_of_week=row.day_of_week,
        time_slot=row.time_slot,
        max_covers=row.max_covers,
        is_active=row.is_active,
    )


def _reservation_record(row: Reservation) -> ReservationRecord:
    return ReservationRecord(
        reservation_id=row.reservation_id,
        tenant_id=row.tenant_id,
        reservation_date=row.reservation_date,
        time_slot=row.time_slot,
        party_size=row.party_size,
        status=ReservationStatus(row.status),
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        customer_phone=row.customer_phone,
        notes=row.notes,
        created_by=row.created_by,
        override=row.override,
        created_at=row.created_at,
    )


def _upsert_slot(session: Session, capacity: SlotCapacityRecord) -> TimeSlotCapacity:
    row = (
        session.query(TimeSlotCapacity)
        .filter(
            TimeSlotCapacity.tenant_id == capacity.tenant_id,
            TimeSlotCapacity.day_of_week == capacity.day_of_week,
            TimeSlotCapacity.time_slot == capacity.time_slot,
        )
        .first()
    )
    if row is None:
        row = TimeSlotCapacity(
            id=uuid.uuid4(),
            tenant_id=capacity.tenant_id,
            day_of_week=capacity.day_of_week,
            time_slot=capacity.time_slot,
        )
        session.add(row)
    row.max_covers = capacity.max_covers
    row.is_active = capacity.is_active
    return row


class SqlTenantStore:
    """SQL implementation of TenantStore."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create_tenant(self, slug: str, name: str) -> TenantRecord:
        """Create an active tenant."""
        with self._session_factory() as session:
            if session.query(Tenant).filter(Tenant.slug == slug).first() is not None:
                raise ValueError(f"slug {slug!r} already taken")
            tenant = Tenant(tenant_id=uuid.uuid4(), slug=slug, name=name, is_active=True)
            session.add(tenant)
            session.commit()
            return _tenant_record(tenant)

    def set_tenant_active(self, tenant_id: uuid.UUID, is_active: bool) -> None:
        """Soft-enable or soft-disable a tenant."""
        with self._session_factory() as session:
            tenant = session.get(Tenant, tenant_id)
            if tenant is None:
                return
            tenant.is_active = is_active
            session.commit()

    def get_tenant(self, tenant_id: uuid.UUID) -> TenantRecord | None:
        """Get tenant by ID."""
        with self._session_factory() as session:
            tenant = session.get(Tenant, tenant_id)
            return _tenant_record(tenant) if tenant else None

    def get_tenant_by_slug(self, slug: str) -> TenantRecord | None:
        """Get tenant by slug."""
        with self._session_factory() as session:
            tenant = session.query(Tenant).filter(Tenant.slug == slug).first()
            return _tenant_record(tenant) if tenant else None

    def assign(
        self, principal_id: uuid.UUID, tenant_id: uuid.UUID, role: Role
    ) -> StaffAssignmentRecord:
        """Create or reactivate a staff assignment."""
        with self._session_factory() as session:
            assignment = (
                session.query(StaffAssignment)
                .filter(
                    StaffAssignment.principal_id == principal_id,
                    StaffAssignment.tenant_id == tenant_id,
                )
                .first()
            )
            if assignment is None:
                assignment = StaffAssignment(
                    assignment_id=uuid.uuid4(),
                    principal_id=principal_id,
                    tenant_id=tenant_id,
                    role=role.value,
                    is_active=True,
                )
                session.add(assignment)
            else:
                assignment.role = role.value
                assignment.is_active = True
            session.commit()
            return _assignment_record(assignment)

    def deactivate_assignment(self, principal_id: uuid.UUID, tenant_id: uuid.UUID) -> None:
        """Deactivate a staff assignment."""
        with self._session_factory() as session:
            session.query(StaffAssignment).filter(
                StaffAssignment.principal_id == principal_id,
                StaffAssignment.tenant_id == tenant_id,
            ).update({StaffAssignment.is_active: False})
            session.commit()

    def list_assignments(self, principal_id: uuid.UUID) -> list[StaffAssignmentRecord]:
        """List every assignment of a principal."""
        with self._session_factory() as session:
            rows = (
                session.query(StaffAssignment)
                .filter(StaffAssignment.principal_id == principal_id)
                .all()
            )
            return [_assignment_record(row) for row in rows]

    def get_settings(self, tenant_id: uuid.UUID) -> ReservationSettingsRecord | None:
        """Get reservation settings."""
        with self._session_factory() as session:
            row = session.get(ReservationSettings, tenant_id)
            return _settings_record(row) if row else None

    def save_settings(self, settings: ReservationSettingsRecord) -> ReservationSettingsRecord:
        """Insert or replace reservation settings."""
        with self._session_factory() as session:
            row = session.merge(
                ReservationSettings(
                    tenant_id=settings.tenant_id,
                    max_covers_per_day=settings.max_covers_per_day,
                    max_covers_per_slot=settings.max_covers_per_slot,
                    operating_hours=settings.operating_hours,
                    time_slot_interval=settings.time_slot_interval,
                    min_party_size=settings.min_party_size,
                    max_party_size=settings.max_party_size,
                )
            )
            session.commit()
            return _settings_record(row)

    def list_slot_capacities(self, tenant_id: uuid.UUID) -> list[SlotCapacityRecord]:
        """List per-slot capacity overrides."""
        with self._session_factory() as session:
            rows = (
                session.query(TimeSlotCapacity)
                .filter(TimeSlotCapacity.tenant_id == tenant_id)
                .order_by(TimeSlotCapacity.day_of_week, TimeSlotCapacity.time_slot)
                .all()
            )
            return [_slot_record(row) for row in rows]

    def set_slot_capacity(self, capacity: SlotCapacityRecord) -> SlotCapacityRecord:
        """Insert or replace a per-slot capacity override."""
        with self._session_factory() as session:
            row = _upsert_slot(session, capacity)
            session.commit()
            return _slot_record(row)

    def set_slot_capacities(self, capacities: list[SlotCapacityRecord]) -> list[SlotCapacityRecord]:
        """Insert or replace several overrides in one transaction."""
        with self._session_factory() as session:
            rows = [_upsert_slot(session, capacity) for capacity in capacities]
            session.commit()
            return [_slot_record(row) for row in rows]

    def delete_slot_capacity(self, tenant_id: uuid.UUID, day_of_week: int, time_slot: str) -> bool:
        """Delete a per-slot capacity override."""
        with self._session_factory() as session:
            deleted = (
                session.query(TimeSlotCapacity)
                .filter(
                    TimeSlotCapacity.tenant_id == tenant_id,
                    TimeSlotCapacity.day_of_week == day_of_week,
                    TimeSlotCapacity.time_slot == time_slot,
                )
                .delete()
            )
            session.commit()
            return deleted > 0


class SqlReservationStore:
    """SQL implementation of ReservationStore."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def insert(self, reservation: ReservationRecord) -> ReservationRecord:
        """Persist a new reservation."""
        with self._session_factory() as session:
            row = Reservation(
                reservation_id=reservation.reservation_id,
                tenant_id=reservation.tenant_id,
                reservation_date=reservation.reservation_date,
                time_slot=reservation.time_slot,
                party_size=reservation.party_size,
                status=reservation.status.value,
                customer_name=reservation.customer_name,
                customer_email=reservation.customer_email,
                customer_phone=reservation.customer_phone,
                notes=reservation.notes,
                created_by=reservation.created_by,
                override=reservation.override,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _reservation_record(row)

    def get(self, tenant_id: uuid.UUID, reservation_id: uuid.UUID) -> ReservationRecord | None:
        """Get reservation by ID within a tenant."""
        with self._session_factory() as session:
            row = (
                query_reservations(session, tenant_id)
                .filter(Reservation.reservation_id == reservation_id)
                .first()
            )
            return _reservation_record(row) if row else None

    def list_for_date(
        self, tenant_id: uuid.UUID, on: date, status: ReservationStatus | None = None
    ) -> list[ReservationRecord]:
        """List reservations of one day."""
        with self._session_factory() as session:
            query = query_reservations(session, tenant_id).filter(
                Reservation.reservation_date == on
            )
            if status is not None:
                query = query.filter(Reservation.status == status.value)
            rows = query.order_by(Reservation.time_slot, Reservation.created_at).all()
            return [_reservation_record(row) for row in rows]

    def list_for_creator(
        self, tenant_id: uuid.UUID, created_by: uuid.UUID
    ) -> list[ReservationRecord]:
        """List reservations a principal created."""
        with self._session_factory() as session:
            rows = (
                query_reservations(session, tenant_id)
                .filter(Reservation.created_by == created_by)
                .order_by(
                    Reservation.reservation_date, Reservation.time_slot, Reservation.created_at
                )
                .all()
            )
            return [_reservation_record(row) for row in rows]

    def set_status(
        self, tenant_id: uuid.UUID, reservation_id: uuid.UUID, status: ReservationStatus
    ) -> ReservationRecord | None:
        """Change reservation status."""
        with self._session_factory() as session:
            row = (
                query_reservations(session, tenant_id)
                .filter(Reservation.reservation_id == reservation_id)
                .first()
            )
            if row is None:
                return None
            row.status = status.value
            session.commit()
            return _reservation_record(row)

    def reschedule(
        self,
        tenant_id: uuid.UUID,
        reservation_id: uuid.UUID,
        reservation_date: date,
        time_slot: str,
        party_size: int,
    ) -> ReservationRecord | None:
        """Move a reservation to another date, slot or party size."""
        with self._session_factory() as session:
            row = (
                query_reservations(session, tenant_id)
                .filter(Reservation.reservation_id == reservation_id)
                .first()
            )
            if row is None:
                return None
            row.reservation_date = reservation_date
            row.time_slot = time_slot
            row.party_size = party_size
            session.commit()
            return _reservation_record(row)

    def sum_confirmed_covers(
        self, tenant_id: uuid.UUID, on: date, time_slot: str | None = None
    ) -> int:
        """Sum party sizes of CONFIRMED reservations."""
        with self._session_factory() as session:
            query = query_reservations_between(
                session, tenant_id, on, on, ReservationStatus.CONFIRMED.value
            )
            if time_slot is not None:
                query = query.filter(Reservation.time_slot == time_slot)
            total = query.with_entities(
                func.coalesce(func.sum(Reservation.party_size), 0)
            ).scalar()
            return int(total or 0)

    def covers_by_slot(self, tenant_id: uuid.UUID, on: date) -> dict[str, int]:
        """CONFIRMED covers per slot."""
        with self._session_factory() as session:
            rows = (
                query_reservations_between(
                    session, tenant_id, on, on, ReservationStatus.CONFIRMED.value
                )
                .with_entities(Reservation.time_slot, func.sum(Reservation.party_size))
                .group_by(Reservation.time_slot)
                .all()
            )
            return {slot: int(total) for slot, total in rows}

    def covers_by_date(self, tenant_id: uuid.UUID, start: date, end: date) -> dict[date, int]:
        """CONFIRMED covers per day."""
        with self._session_factory() as session:
            rows = (
                query_reservations_between(
                    session, tenant_id, start, end, ReservationStatus.CONFIRMED.value
                )
                .with_entities(Reservation.reservation_date, func.sum(Reservation.party_size))
                .group_by(Reservation.reservation_date)
                .all()
            )
            return {day: int(total) for day, total in rows}


class SqlScopedStore:
    """SQL implementation of ScopedStore."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def find(self, kind: str, tenant_id: uuid.UUID, entity_id: uuid.UUID) -> ScopedRecord | None:
        """Get one entity within a tenant."""
        model = SCOPED_MODELS[kind]
        with self._session_factory() as session:
            row = query_scoped(session, model, tenant_id).filter(model.id == entity_id).first()
            return self._to_record(kind, row) if row else None

    def list(
        self, kind: str, tenant_id: uuid.UUID, filters: dict[str, Any]
    ) -> list[ScopedRecord]:
        """List entities within a tenant."""
        model = SCOPED_MODELS[kind]
        with self._session_factory() as session:
            rows = (
                query_scoped(session, model, tenant_id)
                .filter_by(**filters)
                .order_by(model.created_at)
                .all()
            )
            return [self._to_record(kind, row) for row in rows]

    def insert(self, kind: str, tenant_id: uuid.UUID, data: dict[str, Any]) -> ScopedRecord:
        """Create an entity."""
        model = SCOPED_MODELS[kind]
        with self._session_factory() as session:
            row = model(id=uuid.uuid4(), tenant_id=tenant_id, **data)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(kind, row)

    def update(
        self, kind: str, tenant_id: uuid.UUID, entity_id: uuid.UUID, changes: dict[str, Any]
    ) -> ScopedRecord | None:
        """Apply changes to an entity."""
        model = SCOPED_MODELS[kind]
        with self._session_factory() as session:
            row = query_scoped(session, model, tenant_id).filter(model.id == entity_id).first()
            if row is None:
                return None
            for key, value in changes.items():
                setattr(row, key, value)
            session.commit()
            return self._to_record(kind, row)

    def delete(self, kind: str, tenant_id: uuid.UUID, entity_id: uuid.UUID) -> bool:
        """Delete an entity."""
        model = SCOPED_MODELS[kind]
        with self._session_factory() as session:
            row = query_scoped(session, model, tenant_id).filter(model.id == entity_id).first()
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    @staticmethod
    def _to_record(kind: str, row: TenantScoped) -> ScopedRecord:
        return ScopedRecord(
            kind=kind,
            id=row.id,
            tenant_id=row.tenant_id,
            data={name: getattr(row, name) for name in get_kind(kind).fields},
            created_at=row.created_at,
        )
