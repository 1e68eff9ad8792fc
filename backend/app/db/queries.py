"""Tenancy-safe query helpers.

SQL repositories read tenant-owned tables only through these helpers, so the
tenant filter is applied in one place.
"""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Query, Session

from backend.app.db.models import Reservation, TenantScoped


def query_scoped(session: Session, model: type[TenantScoped], tenant_id: UUID) -> Query:
    """Query a tenant-scoped catalog table with tenant scoping enforced.

    Args:
        session: SQLAlchemy session
        model: Mapped class deriving from TenantScoped
        tenant_id: Resolved tenant

    Returns:
        Query filtered by tenant_id
    """
    return session.query(model).filter(model.tenant_id == tenant_id)


def query_reservations(session: Session, tenant_id: UUID) -> Query:
    """Query reservation table with tenant scoping enforced."""
    return session.query(Reservation).filter(Reservation.tenant_id == tenant_id)


def query_reservations_between(
    session: Session, tenant_id: UUID, start: date, end: date, status: str
) -> Query:
    """Query reservations of a tenant in an inclusive date range with one status."""
    return query_reservations(session, tenant_id).filter(
        Reservation.reservation_date >= start,
        Reservation.reservation_date <= end,
        Reservation.status == status,
    )
