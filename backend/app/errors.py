"""Domain error taxonomy for tenancy, authorization and admission control.

Every error carries a stable ``code`` and the HTTP status it maps to. The API
layer renders them uniformly; services raise them and never catch them.
"""

from datetime import date
from typing import Any


class TenancyError(Exception):
    """Base class for all domain errors."""

    code: str = "TENANCY_ERROR"
    status_code: int = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def public_message(self) -> str:
        """Message safe to return to the caller."""
        return self.message


# Resolution


class NoTenantAssignment(TenancyError):
    """Principal holds no active assignment matching the request."""

    code = "NO_TENANT_ASSIGNMENT"
    status_code = 400


class AmbiguousTenant(TenancyError):
    """Principal belongs to several tenants and did not pick one."""

    code = "AMBIGUOUS_TENANT"
    status_code = 400

    def __init__(self, message: str, candidates: int) -> None:
        super().__init__(message, candidates=candidates)
        self.candidates = candidates


# Authorization


class InsufficientRole(TenancyError):
    """Caller's role in the resolved tenant is below the operation's minimum."""

    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, operation: str, required: str, actual: str | None) -> None:
        super().__init__(
            f"operation {operation!r} requires {required}, caller has {actual or 'no role'}",
            operation=operation,
            required=required,
            actual=actual,
        )
        self.operation = operation
        self.required = required
        self.actual = actual

    def public_message(self) -> str:
        return "Forbidden"


# Integrity


class TenantMismatch(TenancyError):
    """Caller-supplied tenant reference disagrees with the resolved tenant."""

    code = "TENANT_MISMATCH"
    status_code = 422


class CrossTenantReference(TenancyError):
    """A reference field points outside the resolved tenant."""

    code = "CROSS_TENANT_REFERENCE"
    status_code = 422

    def __init__(self, field: str, target_kind: str) -> None:
        super().__init__(
            f"{field} does not reference a {target_kind} in this tenant",
            field=field,
            target_kind=target_kind,
        )
        self.field = field
        self.target_kind = target_kind


class NotFound(TenancyError):
    """Entity does not exist within the resolved tenant."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, kind: str) -> None:
        super().__init__(f"{kind} not found", kind=kind)
        self.kind = kind


# Admission


class AdmissionRejected(TenancyError):
    """Expected, recoverable business-rule rejection of a reservation."""

    code = "ADMISSION_REJECTED"
    status_code = 409


class DayFull(AdmissionRejected):
    code = "DAY_FULL"

    def __init__(self, on: date, current_covers: int, max_covers: int, party_size: int) -> None:
        super().__init__(
            f"{on.isoformat()} is fully booked: {current_covers} of {max_covers} covers taken",
            date=on.isoformat(),
            current_covers=current_covers,
            max_covers=max_covers,
            remaining=max(0, max_covers - current_covers),
            party_size=party_size,
        )


class SlotFull(AdmissionRejected):
    code = "SLOT_FULL"

    def __init__(
        self, on: date, time_slot: str, current_covers: int, max_covers: int, party_size: int
    ) -> None:
        super().__init__(
            f"{time_slot} on {on.isoformat()} is fully booked: "
            f"{current_covers} of {max_covers} covers taken",
            date=on.isoformat(),
            time_slot=time_slot,
            current_covers=current_covers,
            max_covers=max_covers,
            remaining=max(0, max_covers - current_covers),
            party_size=party_size,
        )


class RestaurantClosed(AdmissionRejected):
    code = "RESTAURANT_CLOSED"

    def __init__(self, on: date) -> None:
        super().__init__(f"closed on {on.strftime('%A')}s", date=on.isoformat())


class PartySizeOutOfRange(AdmissionRejected):
    code = "PARTY_SIZE_OUT_OF_RANGE"

    def __init__(self, party_size: int, minimum: int, maximum: int) -> None:
        super().__init__(
            f"party size must be between {minimum} and {maximum}",
            party_size=party_size,
            minimum=minimum,
            maximum=maximum,
        )


class InvalidStatusTransition(TenancyError):
    code = "INVALID_STATUS_TRANSITION"
    status_code = 409

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"cannot move reservation from {current} to {requested}",
            current=current,
            requested=requested,
        )


class AdmissionBusy(TenancyError):
    """Admission lock could not be acquired in time. Safe to retry."""

    code = "ADMISSION_BUSY"
    status_code = 503
    retry_after_seconds = 1
