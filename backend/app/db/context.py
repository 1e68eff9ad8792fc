"""Request context for tenancy enforcement."""

from dataclasses import dataclass
from uuid import UUID

from backend.app.tenancy.roles import Role


@dataclass(frozen=True)
class Principal:
    """Authenticated actor, staff member or customer."""

    principal_id: UUID


@dataclass(frozen=True)
class RequestContext:
    """Resolved tenant and caller identity for one request.

    Passed explicitly through every call that touches tenant data. ``role`` is
    the caller's role in ``tenant_id`` only; it is ``None`` for public and
    customer-facing requests.
    """

    tenant_id: UUID
    principal_id: UUID | None
    role: Role | None = None
