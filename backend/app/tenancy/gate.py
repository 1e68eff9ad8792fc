"""Request gate: resolve, authorize, then scope.

Routes reach tenant data only through the gate, so a request never touches
stored data before it has a resolved context and an allowed operation.
"""

import logging
from typing import Protocol
from uuid import UUID

from backend.app.audit import AuditDecision, AuditEvent, AuditSink
from backend.app.db.context import Principal, RequestContext
from backend.app.db.repositories import ScopedStore
from backend.app.errors import InsufficientRole
from backend.app.tenancy.authorizer import AuthorizationDecision, RoleAuthorizer
from backend.app.tenancy.resolver import TenantContextResolver
from backend.app.tenancy.scope import TenantScopeEnforcer

logger = logging.getLogger(__name__)


class DenialMetrics(Protocol):
    def inc_denial(self, operation: str) -> None:
        ...


class RequestGate:
    """Composes context resolution, authorization and scope enforcement."""

    def __init__(
        self,
        resolver: TenantContextResolver,
        authorizer: RoleAuthorizer,
        scoped_store: ScopedStore,
        *,
        audit: AuditSink | None = None,
        metrics: DenialMetrics | None = None,
    ) -> None:
        self.resolver = resolver
        self.authorizer = authorizer
        self._scoped_store = scoped_store
        self._audit = audit
        self._metrics = metrics

    def context(self, principal: Principal, selector: str | None = None) -> RequestContext:
        return self.resolver.resolve(principal, selector)

    def public_context(self, slug: str, principal: Principal | None = None) -> RequestContext:
        return self.resolver.resolve_public(slug, principal)

    def authorize(
        self, ctx: RequestContext, operation: str, *, resource_owner_id: UUID | None = None
    ) -> AuthorizationDecision:
        """Require ``operation`` for ``ctx``; denials are audited and counted.

        Raises:
            InsufficientRole: Operation not allowed
        """
        try:
            return self.authorizer.require(ctx, operation, resource_owner_id=resource_owner_id)
        except InsufficientRole as e:
            logger.warning(
                f"Denied {operation}",
                extra={
                    "structured": {
                        "tenant_id": str(ctx.tenant_id),
                        "principal_id": str(ctx.principal_id) if ctx.principal_id else None,
                        "operation": operation,
                        "required": e.required,
                        "actual": e.actual,
                    }
                },
            )
            if self._metrics is not None:
                self._metrics.inc_denial(operation)
            if self._audit is not None:
                self._audit.emit(
                    AuditEvent(
                        principal_id=ctx.principal_id,
                        tenant_id=ctx.tenant_id,
                        operation=operation,
                        decision=AuditDecision.denied,
                        reason="insufficient_role",
                        details={"required": e.required, "actual": e.actual},
                    )
                )
            raise

    def scope(self, ctx: RequestContext, operation: str | None = None) -> TenantScopeEnforcer:
        """Scope enforcer for ``ctx``, authorizing ``operation`` first when given."""
        if operation is not None:
            self.authorize(ctx, operation)
        return TenantScopeEnforcer(self._scoped_store, ctx)
