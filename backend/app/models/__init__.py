"""Models package - re-exports for convenience."""

from backend.app.models.catalog import CatalogEntity, PublicMenu, TenantContextOut
from backend.app.models.reservation import (
    DailyCapacityOut,
    PublicReservationCreate,
    ReservationCreate,
    ReservationOut,
    SlotAvailabilityOut,
    StatusUpdate,
)
from backend.app.models.settings import (
    DayHours,
    ReservationSettingsOut,
    ReservationSettingsUpdate,
    SlotCapacityOut,
    SlotCapacityUpdate,
)

__all__ = [
    # Catalog
    "CatalogEntity",
    "PublicMenu",
    "TenantContextOut",
    # Reservations
    "ReservationCreate",
    "PublicReservationCreate",
    "StatusUpdate",
    "ReservationOut",
    "DailyCapacityOut",
    "SlotAvailabilityOut",
    # Settings
    "DayHours",
    "ReservationSettingsOut",
    "ReservationSettingsUpdate",
    "SlotCapacityUpdate",
    "SlotCapacityOut",
]
