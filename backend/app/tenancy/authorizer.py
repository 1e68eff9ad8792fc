"""Role-based authorization within one resolved tenant."""

from collections.abc import Mapping
from dataclasses import dataclass
from uuid import UUID

from backend.app.db.context import RequestContext
from backend.app.errors import InsufficientRole
from backend.app.tenancy.roles import DEFAULT_HIERARCHY, Role, RoleHierarchy

# Minimum role per protected operation.
DEFAULT_POLICY: dict[str, Role] = {
    "tenant.read": Role.STAFF,
    "reservation.read": Role.STAFF,
    "reservation.create": Role.STAFF,
    "reservation.override": Role.ADMIN,
    "reservation.cancel": Role.STAFF,
    "reservation.update": Role.STAFF,
    "reservation.update_status": Role.STAFF,
    "settings.read": Role.STAFF,
    "settings.update": Role.ADMIN,
    "catalog.read": Role.STAFF,
    "catalog.write": Role.STAFF,
    "catalog.delete": Role.ADMIN,
}


@dataclass(frozen=True)
class AuthorizationDecision:
    """Outcome of one authorization check."""

    allowed: bool
    operation: str
    required: Role
    actual: Role | None
    reason: str


class RoleAuthorizer:
    """Decides whether a context may perform an operation.

    Pure: holds only the policy and hierarchy, never mutates state.
    """

    def __init__(
        self,
        policy: Mapping[str, Role] | None = None,
        hierarchy: RoleHierarchy = DEFAULT_HIERARCHY,
    ) -> None:
        self._policy = dict(DEFAULT_POLICY if policy is None else policy)
        self._hierarchy = hierarchy

    def required_role(self, operation: str) -> Role:
        """Minimum role for ``operation``.

        Raises:
            KeyError: Unknown operation name
        """
        try:
            return self._policy[operation]
        except KeyError:
            raise KeyError(f"no policy for operation {operation!r}") from None

    def check(
        self, ctx: RequestContext, operation: str, *, resource_owner_id: UUID | None = None
    ) -> AuthorizationDecision:
        """Evaluate an operation without raising.

        ``resource_owner_id`` enables the ownership-or-self rule; callers pass
        it only for resources already loaded under ``ctx``'s tenant scope.
        """
        required = self.required_role(operation)

        if self._hierarchy.satisfies(ctx.role, required):
            return AuthorizationDecision(True, operation, required, ctx.role, "role")

        if (
            resource_owner_id is not None
            and ctx.principal_id is not None
            and resource_owner_id == ctx.principal_id
        ):
            return AuthorizationDecision(True, operation, required, ctx.role, "owner")

        return AuthorizationDecision(False, operation, required, ctx.role, "insufficient_role")

    def require(
        self, ctx: RequestContext, operation: str, *, resource_owner_id: UUID | None = None
    ) -> AuthorizationDecision:
        """Evaluate an operation and raise when it is not allowed.

        Raises:
            InsufficientRole: Role below the operation's minimum and not owner
        """
        decision = self.check(ctx, operation, resource_owner_id=resource_owner_id)
        if not decision.allowed:
            raise InsufficientRole(
                operation,
                decision.required.value,
                decision.actual.value if decision.actual else None,
            )
        return decision
