"""Tenant context endpoint."""

from fastapi import APIRouter

from backend.app.api.deps import ContextDep, ServicesDep
from backend.app.errors import NotFound
from backend.app.models.catalog import TenantContextOut

router = APIRouter(prefix="/tenant", tags=["tenant"])


@router.get("/context", response_model=TenantContextOut)
def get_tenant_context(ctx: ContextDep, services: ServicesDep) -> TenantContextOut:
    """Tenant the request resolved to and the caller's role in it."""
    services.gate.authorize(ctx, "tenant.read")
    tenant = services.tenants.get_tenant(ctx.tenant_id)
    if tenant is None:
        raise NotFound("tenant")
    return TenantContextOut(
        tenant_id=tenant.tenant_id,
        slug=tenant.slug,
        name=tenant.name,
        principal_id=ctx.principal_id,
        role=ctx.role,
    )
