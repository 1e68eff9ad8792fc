"""Tenant context resolution - which tenant a request acts within."""

import uuid

from backend.app.db.context import Principal, RequestContext
from backend.app.db.repositories import StaffAssignmentRecord, TenantRecord, TenantStore
from backend.app.errors import AmbiguousTenant, NoTenantAssignment, NotFound


class TenantContextResolver:
    """Resolves a principal and optional selector to exactly one tenant.

    Reads the tenant store but never writes; safe to share across concurrent
    requests.
    """

    def __init__(self, store: TenantStore) -> None:
        self._store = store

    def resolve(self, principal: Principal, selector: str | None = None) -> RequestContext:
        """Resolve the tenant for a staff request.

        Args:
            principal: Authenticated caller
            selector: Optional tenant UUID or slug supplied by the caller

        Returns:
            Context carrying the tenant and the caller's role within it

        Raises:
            NoTenantAssignment: No active assignment, or the selector names a
                tenant the caller is not an active member of (including
                tenants that do not exist)
            AmbiguousTenant: No selector and several active assignments
        """
        active = self._active_assignments(principal)

        if selector:
            tenant = self._lookup(selector)
            for assignment in active:
                if tenant is not None and assignment.tenant_id == tenant.tenant_id:
                    return self._context(principal, assignment)
            raise NoTenantAssignment("no active assignment to the selected tenant")

        if not active:
            raise NoTenantAssignment("principal has no active tenant assignment")

        if len(active) > 1:
            raise AmbiguousTenant(
                "principal belongs to several tenants; select one explicitly",
                candidates=len(active),
            )

        return self._context(principal, active[0])

    def resolve_public(self, slug: str, principal: Principal | None = None) -> RequestContext:
        """Resolve a tenant by public slug for customer-facing endpoints.

        No membership check is made and the context carries no role.

        Raises:
            NotFound: Unknown or inactive slug
        """
        tenant = self._store.get_tenant_by_slug(slug)
        if tenant is None or not tenant.is_active:
            raise NotFound("tenant")
        return RequestContext(
            tenant_id=tenant.tenant_id,
            principal_id=principal.principal_id if principal else None,
            role=None,
        )

    def _active_assignments(self, principal: Principal) -> list[StaffAssignmentRecord]:
        active: list[StaffAssignmentRecord] = []
        for assignment in self._store.list_assignments(principal.principal_id):
            if not assignment.is_active:
                continue
            tenant = self._store.get_tenant(assignment.tenant_id)
            if tenant is None or not tenant.is_active:
                continue
            active.append(assignment)
        return active

    def _lookup(self, selector: str) -> TenantRecord | None:
        try:
            tenant_id = uuid.UUID(selector)
        except ValueError:
            return self._store.get_tenant_by_slug(selector)
        return self._store.get_tenant(tenant_id)

    @staticmethod
    def _context(principal: Principal, assignment: StaffAssignmentRecord) -> RequestContext:
        return RequestContext(
            tenant_id=assignment.tenant_id,
            principal_id=principal.principal_id,
            role=assignment.role,
        )
