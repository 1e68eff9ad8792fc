"""Tests for role-based authorization and the request gate."""

import uuid

import pytest

from backend.app.audit import AuditDecision, InMemoryAuditSink
from backend.app.db.context import RequestContext
from backend.app.db.inmemory import InMemoryScopedStore, InMemoryTenantStore
from backend.app.errors import InsufficientRole
from backend.app.tenancy.authorizer import DEFAULT_POLICY, RoleAuthorizer
from backend.app.tenancy.gate import RequestGate
from backend.app.tenancy.resolver import TenantContextResolver
from backend.app.tenancy.roles import Role

TENANT = uuid.uuid4()


def _ctx(role: Role | None, principal_id: uuid.UUID | None = None) -> RequestContext:
    return RequestContext(tenant_id=TENANT, principal_id=principal_id or uuid.uuid4(), role=role)


class RecordingMetrics:
    def __init__(self) -> None:
        self.denials: list[str] = []

    def inc_denial(self, operation: str) -> None:
        self.denials.append(operation)


def test_staff_can_book_but_not_override() -> None:
    authorizer = RoleAuthorizer()

    assert authorizer.check(_ctx(Role.STAFF), "reservation.create").allowed
    decision = authorizer.check(_ctx(Role.STAFF), "reservation.override")
    assert not decision.allowed
    assert decision.required == Role.ADMIN
    assert decision.reason == "insufficient_role"


def test_policy_is_monotonic_across_roles() -> None:
    authorizer = RoleAuthorizer()
    for operation in DEFAULT_POLICY:
        allowed = [authorizer.check(_ctx(role), operation).allowed for role in Role]
        # Once allowed, every higher role stays allowed.
        assert allowed == sorted(allowed)


def test_no_role_is_denied() -> None:
    assert not RoleAuthorizer().check(_ctx(None), "reservation.read").allowed


def test_owner_may_act_on_own_resource() -> None:
    authorizer = RoleAuthorizer()
    customer = uuid.uuid4()

    decision = authorizer.check(
        _ctx(None, principal_id=customer), "reservation.cancel", resource_owner_id=customer
    )

    assert decision.allowed
    assert decision.reason == "owner"
    assert not authorizer.check(
        _ctx(None), "reservation.cancel", resource_owner_id=customer
    ).allowed


def test_require_raises_generic_forbidden() -> None:
    with pytest.raises(InsufficientRole) as exc_info:
        RoleAuthorizer().require(_ctx(Role.STAFF), "settings.update")

    assert exc_info.value.status_code == 403
    assert exc_info.value.public_message() == "Forbidden"
    assert exc_info.value.required == "ADMIN"


def test_unknown_operation_is_an_error() -> None:
    with pytest.raises(KeyError):
        RoleAuthorizer().check(_ctx(Role.OWNER), "reservation.teleport")


def test_custom_policy() -> None:
    authorizer = RoleAuthorizer(policy={"report.export": Role.OWNER})

    assert not authorizer.check(_ctx(Role.ADMIN), "report.export").allowed
    assert authorizer.check(_ctx(Role.OWNER), "report.export").allowed


def test_gate_audits_and_counts_denials() -> None:
    audit = InMemoryAuditSink()
    metrics = RecordingMetrics()
    gate = RequestGate(
        TenantContextResolver(InMemoryTenantStore()),
        RoleAuthorizer(),
        InMemoryScopedStore(),
        audit=audit,
        metrics=metrics,
    )
    ctx = _ctx(Role.STAFF)

    with pytest.raises(InsufficientRole):
        gate.authorize(ctx, "catalog.delete")

    assert metrics.denials == ["catalog.delete"]
    assert len(audit.events) == 1
    event = audit.events[0]
    assert event.decision == AuditDecision.denied
    assert event.tenant_id == TENANT
    assert event.principal_id == ctx.principal_id
    assert event.details == {"required": "ADMIN", "actual": "STAFF"}


def test_gate_scope_authorizes_before_returning_enforcer() -> None:
    gate = RequestGate(
        TenantContextResolver(InMemoryTenantStore()), RoleAuthorizer(), InMemoryScopedStore()
    )

    with pytest.raises(InsufficientRole):
        gate.scope(_ctx(None), "catalog.read")

    assert gate.scope(_ctx(Role.STAFF), "catalog.read").tenant_id == TENANT
