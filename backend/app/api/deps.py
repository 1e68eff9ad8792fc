"""Request dependencies: service graph and resolved tenant context."""

from typing import Annotated

from fastapi import Depends, Header, Request

from backend.app.api.auth import get_current_principal, get_optional_principal
from backend.app.db.context import Principal, RequestContext
from backend.app.services import Services


def get_services(request: Request) -> Services:
    """Service graph attached to the application at startup."""
    services: Services = request.app.state.services
    return services


def get_request_context(
    principal: Annotated[Principal, Depends(get_current_principal)],
    services: Annotated[Services, Depends(get_services)],
    x_tenant_id: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Resolve the tenant a staff request acts within.

    ``X-Tenant-Id`` may carry the tenant UUID or slug; without it the caller
    must belong to exactly one active tenant.
    """
    return services.gate.context(principal, x_tenant_id)


def get_public_context(
    slug: str,
    services: Annotated[Services, Depends(get_services)],
    principal: Annotated[Principal | None, Depends(get_optional_principal)] = None,
) -> RequestContext:
    """Resolve the tenant of a public, slug-addressed request."""
    return services.gate.public_context(slug, principal)


ServicesDep = Annotated[Services, Depends(get_services)]
ContextDep = Annotated[RequestContext, Depends(get_request_context)]
PublicContextDep = Annotated[RequestContext, Depends(get_public_context)]
