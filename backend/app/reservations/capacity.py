"""Capacity-bounded reservation admission.

Admission for one (tenant, date) is a read-decide-write unit: current covers
are summed, compared against the configured ceilings, and the reservation is
inserted, all while holding the keyed admission lock for that tenant and day.
Cancellations, status changes and reschedules take the same lock, so every
decision sees the effect of every earlier commit. Different days and tenants
use different keys and never wait on each other.
"""

import logging
import time
import uuid
from contextlib import ExitStack
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Protocol

from backend.app.audit import AuditDecision, AuditEvent, AuditSink
from backend.app.db.context import RequestContext
from backend.app.db.repositories import (
    ReservationRecord,
    ReservationSettingsRecord,
    ReservationStatus,
    ReservationStore,
    TenantStore,
)
from backend.app.errors import (
    AdmissionRejected,
    DayFull,
    InvalidStatusTransition,
    NotFound,
    PartySizeOutOfRange,
    RestaurantClosed,
    SlotFull,
)
from backend.app.reservations.locks import KeyedLock, admission_key
from backend.app.reservations.schedule import generate_slots, is_closed, normalize_slot
from backend.app.tenancy.gate import RequestGate

logger = logging.getLogger(__name__)

_ENDED = frozenset({ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW})


class CapacityState(str, Enum):
    """Derived fill state of one tenant-day. Never stored."""

    OPEN = "OPEN"
    NEAR_CAPACITY = "NEAR_CAPACITY"
    FULL = "FULL"


@dataclass(frozen=True)
class AdmissionRequest:
    """A request to book ``party_size`` covers at ``time_slot`` on ``reservation_date``."""

    reservation_date: date
    time_slot: str
    party_size: int
    customer_name: str
    customer_email: str | None = None
    customer_phone: str | None = None
    notes: str | None = None
    override: bool = False


@dataclass(frozen=True)
class RescheduleRequest:
    """New values for an existing reservation; None keeps the current one."""

    reservation_date: date | None = None
    time_slot: str | None = None
    party_size: int | None = None
    override: bool = False


@dataclass(frozen=True)
class DailyCapacity:
    """Cover usage of one tenant-day."""

    date: date
    current_covers: int
    max_covers_per_day: int | None
    remaining: int | None
    available: bool
    closed: bool
    state: CapacityState


@dataclass(frozen=True)
class SlotAvailability:
    """Cover usage of one slot of a day."""

    time_slot: str
    current_covers: int
    capacity: int | None
    remaining: int | None
    available: bool


class AdmissionMetrics(Protocol):
    """Metrics hooks used by the controller."""

    def record_decision(self, outcome: str, reason: str) -> None:
        ...

    def record_lock_wait(self, wait_ms: float) -> None:
        ...


def capacity_state(current: int, maximum: int | None, near_ratio: float) -> CapacityState:
    """Classify a day's fill level."""
    if maximum is None:
        return CapacityState.OPEN
    if current >= maximum:
        return CapacityState.FULL
    if current >= maximum * near_ratio:
        return CapacityState.NEAR_CAPACITY
    return CapacityState.OPEN


class CapacityAdmissionController:
    """Admits, cancels and reports on reservations against capacity ceilings."""

    def __init__(
        self,
        tenants: TenantStore,
        reservations: ReservationStore,
        lock: KeyedLock,
        gate: RequestGate,
        *,
        audit: AuditSink | None = None,
        metrics: AdmissionMetrics | None = None,
        lock_timeout: float = 5.0,
        near_capacity_ratio: float = 0.8,
        max_range_days: int = 90,
    ) -> None:
        self._tenants = tenants
        self._reservations = reservations
        self._lock = lock
        self._gate = gate
        self._audit = audit
        self._metrics = metrics
        self._lock_timeout = lock_timeout
        self._near_ratio = near_capacity_ratio
        self._max_range_days = max_range_days

    def settings_for(self, tenant_id: uuid.UUID) -> ReservationSettingsRecord:
        """Stored settings, or defaults when the tenant has none."""
        return self._tenants.get_settings(tenant_id) or ReservationSettingsRecord(
            tenant_id=tenant_id
        )

    def admit(self, ctx: RequestContext, request: AdmissionRequest) -> ReservationRecord:
        """Admit a new reservation or reject it.

        Args:
            ctx: Resolved context; the caller has already been authorized for
                the booking itself
            request: Booking details

        Returns:
            The persisted CONFIRMED reservation

        Raises:
            InsufficientRole: ``override`` requested below ADMIN
            PartySizeOutOfRange: Party outside the tenant's configured range
            RestaurantClosed, SlotFull, DayFull: Business-rule rejections
                (skipped with ``override``)
            AdmissionBusy: Lock not acquired in time; retryable
            ValueError: Malformed time slot
        """
        if request.override:
            self._gate.authorize(ctx, "reservation.override")

        time_slot = normalize_slot(request.time_slot)
        key = admission_key(ctx.tenant_id, request.reservation_date)
        try:
            with self._hold(key):
                settings = self.settings_for(ctx.tenant_id)
                self._check_party_size(settings, request.party_size)
                if not request.override:
                    if is_closed(settings, request.reservation_date):
                        raise RestaurantClosed(request.reservation_date)
                    self._check_slot(settings, request.reservation_date, time_slot, request.party_size)
                    self._check_day(settings, request.reservation_date, request.party_size)

                record = self._reservations.insert(
                    ReservationRecord(
                        reservation_id=uuid.uuid4(),
                        tenant_id=ctx.tenant_id,
                        reservation_date=request.reservation_date,
                        time_slot=time_slot,
                        party_size=request.party_size,
                        status=ReservationStatus.CONFIRMED,
                        customer_name=request.customer_name,
                        customer_email=request.customer_email,
                        customer_phone=request.customer_phone,
                        notes=request.notes,
                        created_by=ctx.principal_id,
                        override=request.override,
                    )
                )
        except AdmissionRejected as e:
            self._rejected(ctx, e, request.reservation_date, time_slot, request.party_size)
            raise

        self._record_decision("admitted", "override" if request.override else "capacity")
        if request.override:
            self._emit(
                AuditEvent(
                    principal_id=ctx.principal_id,
                    tenant_id=ctx.tenant_id,
                    operation="reservation.create",
                    decision=AuditDecision.override,
                    reason="capacity override",
                    details={
                        "reservation_id": str(record.reservation_id),
                        "date": record.reservation_date.isoformat(),
                        "time_slot": record.time_slot,
                        "party_size": record.party_size,
                    },
                )
            )
        return record

    def get(self, ctx: RequestContext, reservation_id: uuid.UUID) -> ReservationRecord:
        """Load a reservation of the resolved tenant.

        Raises:
            NotFound: Not a reservation of this tenant
        """
        record = self._reservations.get(ctx.tenant_id, reservation_id)
        if record is None:
            raise NotFound("reservation")
        return record

    def list_for_date(
        self, ctx: RequestContext, on: date, status: ReservationStatus | None = None
    ) -> list[ReservationRecord]:
        return self._reservations.list_for_date(ctx.tenant_id, on, status)

    def list_for_customer(
        self, ctx: RequestContext, upcoming: bool = False, today: date | None = None
    ) -> list[ReservationRecord]:
        """Reservations the calling principal created in this tenant.

        With ``upcoming`` only those dated ``today`` or later that are neither
        CANCELLED nor NO_SHOW are kept.
        """
        if ctx.principal_id is None:
            return []
        records = self._reservations.list_for_creator(ctx.tenant_id, ctx.principal_id)
        if upcoming:
            today = today or date.today()
            records = [
                record
                for record in records
                if record.reservation_date >= today and record.status not in _ENDED
            ]
        return records

    def get_for_customer(self, ctx: RequestContext, reservation_id: uuid.UUID) -> ReservationRecord:
        """Load a reservation the caller created; staff may load any.

        Raises:
            NotFound: Not a reservation of this tenant
            InsufficientRole: Neither staff nor the creator
        """
        record = self.get(ctx, reservation_id)
        self._gate.authorize(ctx, "reservation.read", resource_owner_id=record.created_by)
        return record

    def reschedule(
        self, ctx: RequestContext, reservation_id: uuid.UUID, request: RescheduleRequest
    ) -> ReservationRecord:
        """Move a CONFIRMED reservation to a new date, slot or party size.

        Admission runs again for the new values with the reservation's own
        covers released. The keys of the old and the new day are both held,
        always taken in sorted order.

        Raises:
            NotFound: Not a reservation of this tenant
            InsufficientRole: Neither staff nor the creator, or ``override``
                requested below ADMIN
            InvalidStatusTransition: Reservation no longer CONFIRMED
            PartySizeOutOfRange: Party outside the tenant's configured range
            RestaurantClosed, SlotFull, DayFull: Business-rule rejections
                (skipped with ``override``)
            AdmissionBusy: Lock not acquired in time; retryable
            ValueError: Malformed time slot
        """
        existing = self.get(ctx, reservation_id)
        self._gate.authorize(ctx, "reservation.update", resource_owner_id=existing.created_by)
        if request.override:
            self._gate.authorize(ctx, "reservation.override")
        time_slot = None if request.time_slot is None else normalize_slot(request.time_slot)

        while True:
            target_date = request.reservation_date or existing.reservation_date
            keys = sorted(
                {
                    admission_key(ctx.tenant_id, existing.reservation_date),
                    admission_key(ctx.tenant_id, target_date),
                }
            )
            with ExitStack() as stack:
                for key in keys:
                    stack.enter_context(self._hold(key))
                current = self.get(ctx, reservation_id)
                if current.reservation_date != existing.reservation_date:
                    # Moved by another request before the keys were taken.
                    existing = current
                    continue
                target_slot = time_slot or current.time_slot
                party_size = request.party_size or current.party_size
                try:
                    updated = self._move(
                        ctx, current, target_date, target_slot, party_size, request.override
                    )
                except AdmissionRejected as e:
                    self._rejected(ctx, e, target_date, target_slot, party_size)
                    raise
            break

        self._record_decision("admitted", "override" if request.override else "reschedule")
        logger.info(
            "Reservation rescheduled",
            extra={
                "structured": {
                    "tenant_id": str(ctx.tenant_id),
                    "reservation_id": str(updated.reservation_id),
                    "from_date": existing.reservation_date.isoformat(),
                    "date": updated.reservation_date.isoformat(),
                    "time_slot": updated.time_slot,
                    "party_size": updated.party_size,
                }
            },
        )
        if request.override:
            self._emit(
                AuditEvent(
                    principal_id=ctx.principal_id,
                    tenant_id=ctx.tenant_id,
                    operation="reservation.update",
                    decision=AuditDecision.override,
                    reason="capacity override",
                    details={
                        "reservation_id": str(updated.reservation_id),
                        "date": updated.reservation_date.isoformat(),
                        "time_slot": updated.time_slot,
                        "party_size": updated.party_size,
                    },
                )
            )
        return updated

    def cancel(self, ctx: RequestContext, reservation_id: uuid.UUID) -> ReservationRecord:
        """Cancel a reservation and release its covers.

        Staff may cancel any reservation of their tenant; anyone may cancel a
        reservation they created. Cancelling twice is a no-op.

        Raises:
            NotFound: Not a reservation of this tenant
            InsufficientRole: Neither staff nor the creator
            InvalidStatusTransition: Already COMPLETED or NO_SHOW
        """
        existing = self.get(ctx, reservation_id)
        self._gate.authorize(ctx, "reservation.cancel", resource_owner_id=existing.created_by)
        return self._transition(ctx, existing, ReservationStatus.CANCELLED)

    def update_status(
        self, ctx: RequestContext, reservation_id: uuid.UUID, status: ReservationStatus
    ) -> ReservationRecord:
        """Move a CONFIRMED reservation to another status (staff only).

        Raises:
            NotFound: Not a reservation of this tenant
            InvalidStatusTransition: Reservation no longer CONFIRMED, or the
                target is CONFIRMED
        """
        existing = self.get(ctx, reservation_id)
        self._gate.authorize(ctx, "reservation.update_status")
        return self._transition(ctx, existing, status)

    def day_capacity(self, tenant_id: uuid.UUID, on: date) -> DailyCapacity:
        """Current cover usage and state of one day."""
        settings = self.settings_for(tenant_id)
        current = self._reservations.sum_confirmed_covers(tenant_id, on)
        return self._daily(settings, on, current, None)

    def daily_capacity(
        self, tenant_id: uuid.UUID, start: date, end: date, party_size: int | None = None
    ) -> list[DailyCapacity]:
        """Per-day cover usage for an inclusive date range.

        ``available`` tells whether ``party_size`` (or, without one, a single
        cover) still fits on that day.

        Raises:
            ValueError: Reversed or overlong range, or non-positive party size
        """
        if end < start:
            raise ValueError("end must be >= start")
        if (end - start).days + 1 > self._max_range_days:
            raise ValueError(f"range may span at most {self._max_range_days} days")
        if party_size is not None and party_size < 1:
            raise ValueError("party_size must be a positive number")

        settings = self.settings_for(tenant_id)
        covers = self._reservations.covers_by_date(tenant_id, start, end)

        days: list[DailyCapacity] = []
        current_day = start
        while current_day <= end:
            days.append(self._daily(settings, current_day, covers.get(current_day, 0), party_size))
            current_day += timedelta(days=1)
        return days

    def slot_availability(
        self, tenant_id: uuid.UUID, on: date, party_size: int | None = None
    ) -> list[SlotAvailability]:
        """Per-slot cover usage for one day's bookable slots."""
        settings = self.settings_for(tenant_id)
        covers = self._reservations.covers_by_slot(tenant_id, on)
        needed = party_size or 1

        result: list[SlotAvailability] = []
        for slot in generate_slots(settings, on):
            capacity = self._slot_ceiling(settings, on, slot)
            current = covers.get(slot, 0)
            remaining = None if capacity is None else max(0, capacity - current)
            result.append(
                SlotAvailability(
                    time_slot=slot,
                    current_covers=current,
                    capacity=capacity,
                    remaining=remaining,
                    available=remaining is None or remaining >= needed,
                )
            )
        return result

    def _transition(
        self, ctx: RequestContext, existing: ReservationRecord, target: ReservationStatus
    ) -> ReservationRecord:
        with self._hold(admission_key(ctx.tenant_id, existing.reservation_date)):
            current = self.get(ctx, existing.reservation_id)
            if current.status == target and target == ReservationStatus.CANCELLED:
                return current
            if current.status != ReservationStatus.CONFIRMED or target == ReservationStatus.CONFIRMED:
                raise InvalidStatusTransition(current.status.value, target.value)
            updated = self._reservations.set_status(ctx.tenant_id, current.reservation_id, target)
            if updated is None:
                raise NotFound("reservation")

        logger.info(
            f"Reservation {target.value.lower()}",
            extra={
                "structured": {
                    "tenant_id": str(ctx.tenant_id),
                    "reservation_id": str(updated.reservation_id),
                    "date": updated.reservation_date.isoformat(),
                    "party_size": updated.party_size,
                }
            },
        )
        return updated

    def _move(
        self,
        ctx: RequestContext,
        current: ReservationRecord,
        on: date,
        time_slot: str,
        party_size: int,
        override: bool,
    ) -> ReservationRecord:
        if current.status != ReservationStatus.CONFIRMED:
            raise InvalidStatusTransition(current.status.value, ReservationStatus.CONFIRMED.value)

        settings = self.settings_for(ctx.tenant_id)
        self._check_party_size(settings, party_size)
        if not override:
            same_day = on == current.reservation_date
            same_slot = same_day and time_slot == current.time_slot
            grows = party_size > current.party_size
            if not same_day and is_closed(settings, on):
                raise RestaurantClosed(on)
            # Only what the move adds to a day or slot is checked against its ceiling.
            if not same_slot or grows:
                released = current.party_size if same_slot else 0
                self._check_slot(settings, on, time_slot, party_size, released)
            if not same_day or grows:
                self._check_day(settings, on, party_size, current.party_size if same_day else 0)

        updated = self._reservations.reschedule(
            ctx.tenant_id, current.reservation_id, on, time_slot, party_size
        )
        if updated is None:
            raise NotFound("reservation")
        return updated

    @staticmethod
    def _check_party_size(settings: ReservationSettingsRecord, party_size: int) -> None:
        if not settings.min_party_size <= party_size <= settings.max_party_size:
            raise PartySizeOutOfRange(party_size, settings.min_party_size, settings.max_party_size)

    def _check_slot(
        self,
        settings: ReservationSettingsRecord,
        on: date,
        time_slot: str,
        party_size: int,
        released: int = 0,
    ) -> None:
        ceiling = self._slot_ceiling(settings, on, time_slot)
        if ceiling is None:
            return
        current = self._reservations.sum_confirmed_covers(settings.tenant_id, on, time_slot)
        current -= released
        if current + party_size > ceiling:
            raise SlotFull(on, time_slot, current, ceiling, party_size)

    def _check_day(
        self, settings: ReservationSettingsRecord, on: date, party_size: int, released: int = 0
    ) -> None:
        if settings.max_covers_per_day is None:
            return
        current = self._reservations.sum_confirmed_covers(settings.tenant_id, on) - released
        if current + party_size > settings.max_covers_per_day:
            raise DayFull(on, current, settings.max_covers_per_day, party_size)

    def _slot_ceiling(
        self, settings: ReservationSettingsRecord, on: date, time_slot: str
    ) -> int | None:
        # An active per-weekday slot capacity wins over the tenant-wide value.
        for capacity in self._tenants.list_slot_capacities(settings.tenant_id):
            if (
                capacity.is_active
                and capacity.day_of_week == on.weekday()
                and capacity.time_slot == time_slot
            ):
                return capacity.max_covers
        return settings.max_covers_per_slot

    def _daily(
        self,
        settings: ReservationSettingsRecord,
        on: date,
        current: int,
        party_size: int | None,
    ) -> DailyCapacity:
        maximum = settings.max_covers_per_day
        closed = is_closed(settings, on)
        remaining = None if maximum is None else max(0, maximum - current)
        needed = party_size or 1
        fits = maximum is None or current + needed <= maximum
        return DailyCapacity(
            date=on,
            current_covers=current,
            max_covers_per_day=maximum,
            remaining=remaining,
            available=fits and not closed,
            closed=closed,
            state=capacity_state(current, maximum, self._near_ratio),
        )

    def _hold(self, key: str):
        started = time.monotonic()
        held = self._lock.hold(key, self._lock_timeout)
        return _TimedHold(held, started, self._metrics)

    def _rejected(
        self,
        ctx: RequestContext,
        error: AdmissionRejected,
        on: date,
        time_slot: str,
        party_size: int,
    ) -> None:
        self._record_decision("rejected", error.code)
        logger.info(
            f"Admission rejected: {error.code}",
            extra={
                "structured": {
                    "tenant_id": str(ctx.tenant_id),
                    "date": on.isoformat(),
                    "time_slot": time_slot,
                    "party_size": party_size,
                    "reason": error.code,
                }
            },
        )

    def _record_decision(self, outcome: str, reason: str) -> None:
        if self._metrics is not None:
            self._metrics.record_decision(outcome, reason)

    def _emit(self, event: AuditEvent) -> None:
        if self._audit is not None:
            self._audit.emit(event)


class _TimedHold:
    """Wraps a lock hold to report how long acquisition took."""

    def __init__(self, held, started: float, metrics: AdmissionMetrics | None) -> None:
        self._held = held
        self._started = started
        self._metrics = metrics

    def __enter__(self) -> None:
        self._held.__enter__()
        if self._metrics is not None:
            self._metrics.record_lock_wait((time.monotonic() - self._started) * 1000)

    def __exit__(self, *exc_info) -> bool | None:
        return self._held.__exit__(*exc_info)
