"""Tests for tenancy enforcement across in-memory and SQL stores."""

import uuid
from dataclasses import replace
from datetime import date

import pytest
from sqlalchemy.orm import Session, sessionmaker

from backend.app.db.context import RequestContext
from backend.app.db.inmemory import InMemoryReservationStore, InMemoryScopedStore, InMemoryTenantStore
from backend.app.db.repositories import (
    ReservationRecord,
    ReservationSettingsRecord,
    ReservationStatus,
    ReservationStore,
    ScopedStore,
    SlotCapacityRecord,
    TenantStore,
)
from backend.app.db.sql_repositories import SqlReservationStore, SqlScopedStore, SqlTenantStore
from backend.app.errors import CrossTenantReference, NotFound
from backend.app.tenancy.roles import Role
from backend.app.tenancy.scope import TenantScopeEnforcer

MONDAY = date(2026, 6, 1)


@pytest.fixture(params=["memory", "sql"])
def stores(
    request: pytest.FixtureRequest,
) -> tuple[TenantStore, ReservationStore, ScopedStore]:
    if request.param == "memory":
        return InMemoryTenantStore(), InMemoryReservationStore(), InMemoryScopedStore()
    session_factory: sessionmaker[Session] = request.getfixturevalue("session_factory")
    return (
        SqlTenantStore(session_factory),
        SqlReservationStore(session_factory),
        SqlScopedStore(session_factory),
    )


def _reservation(tenant_id: uuid.UUID, party_size: int) -> ReservationRecord:
    return ReservationRecord(
        reservation_id=uuid.uuid4(),
        tenant_id=tenant_id,
        reservation_date=MONDAY,
        time_slot="19:00",
        party_size=party_size,
        status=ReservationStatus.CONFIRMED,
        customer_name="Guest",
    )


def test_reservation_store_tenancy_isolation(
    stores: tuple[TenantStore, ReservationStore, ScopedStore],
) -> None:
    """Test that ReservationStore never reads across tenants."""
    tenants, reservations, _ = stores
    a = tenants.create_tenant("a", "A")
    b = tenants.create_tenant("b", "B")

    record_a = reservations.insert(_reservation(a.tenant_id, 4))
    reservations.insert(_reservation(b.tenant_id, 6))

    # tenant a can see its own reservation
    assert reservations.get(a.tenant_id, record_a.reservation_id) is not None
    # tenant b cannot
    assert reservations.get(b.tenant_id, record_a.reservation_id) is None
    assert reservations.set_status(b.tenant_id, record_a.reservation_id, ReservationStatus.CANCELLED) is None

    # aggregates are per tenant
    assert reservations.sum_confirmed_covers(a.tenant_id, MONDAY) == 4
    assert reservations.sum_confirmed_covers(b.tenant_id, MONDAY) == 6
    assert [r.party_size for r in reservations.list_for_date(a.tenant_id, MONDAY)] == [4]


def test_reservation_aggregates(
    stores: tuple[TenantStore, ReservationStore, ScopedStore],
) -> None:
    tenants, reservations, _ = stores
    tenant = tenants.create_tenant("agg", "Agg")
    reservations.insert(_reservation(tenant.tenant_id, 2))
    cancelled = reservations.insert(_reservation(tenant.tenant_id, 5))
    reservations.set_status(tenant.tenant_id, cancelled.reservation_id, ReservationStatus.CANCELLED)

    assert reservations.sum_confirmed_covers(tenant.tenant_id, MONDAY) == 2
    assert reservations.sum_confirmed_covers(tenant.tenant_id, MONDAY, "19:00") == 2
    assert reservations.sum_confirmed_covers(tenant.tenant_id, MONDAY, "20:00") == 0
    assert reservations.covers_by_slot(tenant.tenant_id, MONDAY) == {"19:00": 2}
    assert reservations.covers_by_date(tenant.tenant_id, MONDAY, MONDAY) == {MONDAY: 2}


def test_reservations_by_creator_and_reschedule(
    stores: tuple[TenantStore, ReservationStore, ScopedStore],
) -> None:
    tenants, reservations, _ = stores
    a = tenants.create_tenant("a", "A")
    b = tenants.create_tenant("b", "B")
    creator = uuid.uuid4()
    later = reservations.insert(
        replace(_reservation(a.tenant_id, 2), reservation_date=date(2026, 6, 3), created_by=creator)
    )
    first = reservations.insert(replace(_reservation(a.tenant_id, 4), created_by=creator))
    reservations.insert(_reservation(a.tenant_id, 6))
    reservations.insert(replace(_reservation(b.tenant_id, 3), created_by=creator))

    mine = reservations.list_for_creator(a.tenant_id, creator)
    assert [r.reservation_id for r in mine] == [first.reservation_id, later.reservation_id]

    moved = reservations.reschedule(a.tenant_id, first.reservation_id, date(2026, 6, 2), "20:30", 5)
    assert moved is not None
    assert (moved.reservation_date, moved.time_slot, moved.party_size) == (
        date(2026, 6, 2),
        "20:30",
        5,
    )
    assert reservations.sum_confirmed_covers(a.tenant_id, MONDAY) == 6
    assert reservations.reschedule(b.tenant_id, first.reservation_id, MONDAY, "19:00", 1) is None
    assert reservations.get(a.tenant_id, first.reservation_id).party_size == 5  # type: ignore[union-attr]


def test_scoped_store_isolation(
    stores: tuple[TenantStore, ReservationStore, ScopedStore],
) -> None:
    tenants, _, scoped = stores
    a = tenants.create_tenant("a", "A")
    b = tenants.create_tenant("b", "B")
    scope_a = TenantScopeEnforcer(scoped, RequestContext(a.tenant_id, uuid.uuid4(), Role.STAFF))
    scope_b = TenantScopeEnforcer(scoped, RequestContext(b.tenant_id, uuid.uuid4(), Role.STAFF))

    menu = scope_a.create("menu", {"name": "Dinner", "is_public": True})
    recipe = scope_a.create("recipe", {"title": "Risotto"})
    item = scope_a.create("menu_item", {"menu_id": menu.id, "recipe_id": recipe.id, "position": 1})

    assert scope_a.list("menu_item", menu_id=menu.id)[0].id == item.id
    assert scope_b.list("menu_item") == []
    with pytest.raises(NotFound):
        scope_b.find("menu", menu.id)
    with pytest.raises(NotFound):
        scope_b.delete("recipe", recipe.id)

    # b cannot place a's recipe on its own menu
    menu_b = scope_b.create("menu", {"name": "Lunch"})
    with pytest.raises(CrossTenantReference):
        scope_b.create("menu_item", {"menu_id": menu_b.id, "recipe_id": recipe.id})


def test_slug_uniqueness(stores: tuple[TenantStore, ReservationStore, ScopedStore]) -> None:
    tenants, _, _ = stores
    tenants.create_tenant("taken", "Taken")

    with pytest.raises(ValueError):
        tenants.create_tenant("taken", "Again")


def test_assignments_and_settings_roundtrip(
    stores: tuple[TenantStore, ReservationStore, ScopedStore],
) -> None:
    tenants, _, _ = stores
    tenant = tenants.create_tenant("roles", "Roles")
    principal_id = uuid.uuid4()

    tenants.assign(principal_id, tenant.tenant_id, Role.STAFF)
    tenants.assign(principal_id, tenant.tenant_id, Role.ADMIN)
    tenants.deactivate_assignment(principal_id, tenant.tenant_id)

    assignments = tenants.list_assignments(principal_id)
    assert len(assignments) == 1
    assert assignments[0].role == Role.ADMIN
    assert assignments[0].is_active is False

    assert tenants.get_settings(tenant.tenant_id) is None
    tenants.save_settings(
        ReservationSettingsRecord(tenant_id=tenant.tenant_id, max_covers_per_day=30, time_slot_interval=15)
    )
    saved = tenants.get_settings(tenant.tenant_id)
    assert saved is not None
    assert saved.max_covers_per_day == 30
    assert saved.time_slot_interval == 15
    assert saved.operating_hours["sunday"] == {"closed": True}


def test_slot_capacity_upsert(stores: tuple[TenantStore, ReservationStore, ScopedStore]) -> None:
    tenants, _, _ = stores
    a = tenants.create_tenant("a", "A")
    b = tenants.create_tenant("b", "B")

    tenants.set_slot_capacity(SlotCapacityRecord(a.tenant_id, 0, "19:00", 12))
    tenants.set_slot_capacity(SlotCapacityRecord(a.tenant_id, 0, "19:00", 6, is_active=False))
    tenants.set_slot_capacity(SlotCapacityRecord(b.tenant_id, 0, "19:00", 20))

    capacities = tenants.list_slot_capacities(a.tenant_id)
    assert [(c.max_covers, c.is_active) for c in capacities] == [(6, False)]
    assert tenants.list_slot_capacities(b.tenant_id)[0].max_covers == 20


def test_slot_capacity_bulk_and_delete(
    stores: tuple[TenantStore, ReservationStore, ScopedStore],
) -> None:
    tenants, _, _ = stores
    a = tenants.create_tenant("a", "A")
    b = tenants.create_tenant("b", "B")
    tenants.set_slot_capacity(SlotCapacityRecord(a.tenant_id, 0, "19:00", 12))
    tenants.set_slot_capacity(SlotCapacityRecord(b.tenant_id, 0, "19:00", 20))

    saved = tenants.set_slot_capacities(
        [
            SlotCapacityRecord(a.tenant_id, 0, "19:00", 8),
            SlotCapacityRecord(a.tenant_id, 4, "20:00", 6),
        ]
    )

    assert [(c.day_of_week, c.time_slot, c.max_covers) for c in saved] == [
        (0, "19:00", 8),
        (4, "20:00", 6),
    ]
    assert len(tenants.list_slot_capacities(a.tenant_id)) == 2

    assert tenants.delete_slot_capacity(a.tenant_id, 0, "19:00") is True
    assert tenants.delete_slot_capacity(a.tenant_id, 0, "19:00") is False
    assert tenants.delete_slot_capacity(a.tenant_id, 3, "19:00") is False
    assert [c.time_slot for c in tenants.list_slot_capacities(a.tenant_id)] == ["20:00"]
    assert tenants.list_slot_capacities(b.tenant_id)[0].max_covers == 20


def _scope(tenants: TenantStore, scoped: ScopedStore, slug: str) -> TenantScopeEnforcer:
    tenant = tenants.create_tenant(slug, slug.title())
    return TenantScopeEnforcer(scoped, RequestContext(tenant.tenant_id, uuid.uuid4(), Role.STAFF))


def test_scoped_writes_are_type_checked(
    stores: tuple[TenantStore, ReservationStore, ScopedStore],
) -> None:
    tenants, _, scoped = stores
    scope = _scope(tenants, scoped, "typed")
    menu = scope.create("menu", {"name": "Dinner"})
    recipe = scope.create("recipe", {"title": "Soup"})
    item = scope.create("menu_item", {"menu_id": menu.id, "recipe_id": recipe.id})

    with pytest.raises(ValueError, match="is_public"):
        scope.create("menu", {"name": "Brunch", "is_public": "sometimes"})
    with pytest.raises(ValueError, match="is_public"):
        scope.update("menu", menu.id, {"is_public": None})
    with pytest.raises(ValueError, match="position"):
        scope.update("menu_item", item.id, {"position": None})
    with pytest.raises(ValueError, match="price_cents"):
        scope.update("menu_item", item.id, {"price_cents": "a lot"})
    with pytest.raises(ValueError, match="name"):
        scope.create("category", {"name": 42})

    assert scope.find("menu", menu.id).data["is_public"] is False
    assert scope.find("menu_item", item.id).data["position"] == 0
    assert [r.data["name"] for r in scope.list("menu")] == ["Dinner"]


def test_scoped_values_are_coerced(
    stores: tuple[TenantStore, ReservationStore, ScopedStore],
) -> None:
    tenants, _, scoped = stores
    scope = _scope(tenants, scoped, "coerced")
    menu = scope.create("menu", {"name": "Dinner", "is_public": "true"})
    recipe = scope.create("recipe", {"title": "Soup"})
    scope.create(
        "menu_item", {"menu_id": str(menu.id), "recipe_id": str(recipe.id), "price_cents": "500"}
    )

    # query-string filters arrive as text
    assert len(scope.list("menu_item", price_cents="500")) == 1
    assert len(scope.list("menu_item", price_cents=500)) == 1
    assert scope.list("menu_item", price_cents="499") == []
    assert len(scope.list("menu", is_public="true")) == 1
    assert scope.list("menu", is_public="false") == []
    with pytest.raises(ValueError):
        scope.list("menu_item", price_cents="cheap")


def test_scoped_records_carry_declared_defaults(
    stores: tuple[TenantStore, ReservationStore, ScopedStore],
) -> None:
    tenants, _, scoped = stores
    scope = _scope(tenants, scoped, "defaults")
    menu = scope.create("menu", {"name": "Dinner"})
    recipe = scope.create("recipe", {"title": "Soup"})

    item = scope.create("menu_item", {"menu_id": menu.id, "recipe_id": recipe.id})

    assert menu.data == {"name": "Dinner", "is_public": False}
    assert recipe.data == {"title": "Soup", "description": None, "category_id": None}
    assert item.data == {
        "menu_id": menu.id,
        "recipe_id": recipe.id,
        "price_cents": None,
        "position": 0,
    }
