"""Tests for reservation settings management."""

from collections.abc import Callable

import pytest

from backend.app.db.context import Principal, RequestContext
from backend.app.db.repositories import TenantRecord
from backend.app.errors import InsufficientRole, NotFound
from backend.app.models.settings import ReservationSettingsUpdate
from backend.app.services import Services
from backend.app.tenancy.roles import Role


@pytest.fixture
def tenant(make_tenant: Callable[..., TenantRecord]) -> TenantRecord:
    return make_tenant("bistro")


@pytest.fixture
def admin_ctx(
    services: Services,
    tenant: TenantRecord,
    make_staff: Callable[[TenantRecord, Role], Principal],
) -> RequestContext:
    return services.gate.context(make_staff(tenant, Role.ADMIN))


def test_defaults_without_row(services: Services, admin_ctx: RequestContext) -> None:
    settings = services.reservation_settings.get(admin_ctx)

    assert settings.max_covers_per_day is None
    assert settings.time_slot_interval == 30
    assert settings.operating_hours["sunday"] == {"closed": True}


def test_partial_update_keeps_other_fields(services: Services, admin_ctx: RequestContext) -> None:
    services.reservation_settings.update(admin_ctx, {"max_covers_per_day": 40, "max_party_size": 8})

    updated = services.reservation_settings.update(admin_ctx, {"max_covers_per_slot": 10})

    assert updated.max_covers_per_day == 40
    assert updated.max_party_size == 8
    assert updated.max_covers_per_slot == 10


def test_update_checks_merged_values(services: Services, admin_ctx: RequestContext) -> None:
    services.reservation_settings.update(admin_ctx, {"max_party_size": 6})

    with pytest.raises(ValueError, match="max_party_size"):
        services.reservation_settings.update(admin_ctx, {"min_party_size": 8})


def test_update_rejects_bad_interval_and_unknown_fields(
    services: Services, admin_ctx: RequestContext
) -> None:
    with pytest.raises(ValueError, match="time_slot_interval"):
        services.reservation_settings.update(admin_ctx, {"time_slot_interval": 20})
    with pytest.raises(ValueError, match="unknown"):
        services.reservation_settings.update(admin_ctx, {"tenant_id": "x"})


def test_staff_cannot_update(
    services: Services,
    tenant: TenantRecord,
    make_staff: Callable[[TenantRecord, Role], Principal],
) -> None:
    staff_ctx = services.gate.context(make_staff(tenant, Role.STAFF))

    assert services.reservation_settings.get(staff_ctx).tenant_id == tenant.tenant_id
    with pytest.raises(InsufficientRole):
        services.reservation_settings.update(staff_ctx, {"max_covers_per_day": 1})
    with pytest.raises(InsufficientRole):
        services.reservation_settings.set_slot_capacity(staff_ctx, 0, "19:00", 4)


def test_set_slot_capacity(services: Services, admin_ctx: RequestContext) -> None:
    services.reservation_settings.set_slot_capacity(admin_ctx, 4, "19:00", 12)
    services.reservation_settings.set_slot_capacity(admin_ctx, 4, "19:00", 8, is_active=False)

    capacities = services.reservation_settings.list_slot_capacities(admin_ctx)

    assert len(capacities) == 1
    assert capacities[0].max_covers == 8
    assert capacities[0].is_active is False


def test_set_slot_capacity_validates(services: Services, admin_ctx: RequestContext) -> None:
    with pytest.raises(ValueError):
        services.reservation_settings.set_slot_capacity(admin_ctx, 7, "19:00", 4)
    with pytest.raises(ValueError):
        services.reservation_settings.set_slot_capacity(admin_ctx, 0, "19:00", -1)


def test_update_model_tracks_sent_fields() -> None:
    body = ReservationSettingsUpdate.model_validate({"max_covers_per_day": None})

    assert body.changes() == {"max_covers_per_day": None}
    with pytest.raises(ValueError):
        ReservationSettingsUpdate.model_validate({"time_slot_interval": 45})
    with pytest.raises(ValueError, match="cannot be null"):
        ReservationSettingsUpdate.model_validate({"min_party_size": None}).changes()


def test_operating_hours_merge_per_weekday(services: Services, admin_ctx: RequestContext) -> None:
    body = ReservationSettingsUpdate.model_validate(
        {"operating_hours": {"sunday": {"open": "12:00", "close": "15:00"}}}
    )

    updated = services.reservation_settings.update(admin_ctx, body.changes())

    assert updated.operating_hours["sunday"] == {"open": "12:00", "close": "15:00", "closed": False}
    assert updated.operating_hours["monday"] == {"open": "17:00", "close": "22:00", "closed": False}
    assert len(updated.operating_hours) == 7


def test_update_model_coerces_closed_flag() -> None:
    body = ReservationSettingsUpdate.model_validate(
        {
            "operating_hours": {
                "monday": {"closed": "false", "open": "9:00", "close": "14:00"},
                "tuesday": {"closed": "true"},
            }
        }
    )

    assert body.changes() == {
        "operating_hours": {
            "monday": {"open": "09:00", "close": "14:00", "closed": False},
            "tuesday": {"closed": True},
        }
    }
    with pytest.raises(ValueError):
        ReservationSettingsUpdate.model_validate({"operating_hours": {"monday": {"closed": "maybe"}}})
    with pytest.raises(ValueError):
        ReservationSettingsUpdate.model_validate({"operating_hours": {"monday": {"opens": "09:00"}}})


def test_update_rejects_string_closed_flag(services: Services, admin_ctx: RequestContext) -> None:
    with pytest.raises(ValueError, match="closed must be true or false"):
        services.reservation_settings.update(
            admin_ctx,
            {"operating_hours": {"monday": {"closed": "false", "open": "17:00", "close": "22:00"}}},
        )


def test_bulk_set_slot_capacities(services: Services, admin_ctx: RequestContext) -> None:
    saved = services.reservation_settings.bulk_set_slot_capacities(
        admin_ctx,
        [
            {"day_of_week": 0, "time_slot": "19:00", "max_covers": 10},
            {"day_of_week": 0, "time_slot": "19:30", "max_covers": 6, "is_active": False},
            {"day_of_week": 0, "time_slot": "19:00", "max_covers": 4},
        ],
    )

    assert [(c.time_slot, c.max_covers) for c in saved] == [("19:00", 4), ("19:30", 6)]
    assert len(services.reservation_settings.list_slot_capacities(admin_ctx)) == 2


def test_bulk_set_writes_nothing_when_an_entry_is_invalid(
    services: Services, admin_ctx: RequestContext
) -> None:
    with pytest.raises(ValueError, match="max_covers"):
        services.reservation_settings.bulk_set_slot_capacities(
            admin_ctx,
            [
                {"day_of_week": 1, "time_slot": "19:00", "max_covers": 10},
                {"day_of_week": 1, "time_slot": "20:00", "max_covers": -1},
            ],
        )

    assert services.reservation_settings.list_slot_capacities(admin_ctx) == []


def test_delete_slot_capacity(
    services: Services,
    admin_ctx: RequestContext,
    tenant: TenantRecord,
    make_staff: Callable[[TenantRecord, Role], Principal],
) -> None:
    services.reservation_settings.set_slot_capacity(admin_ctx, 2, "19:00", 12)
    staff_ctx = services.gate.context(make_staff(tenant, Role.STAFF))

    with pytest.raises(InsufficientRole):
        services.reservation_settings.delete_slot_capacity(staff_ctx, 2, "19:00")

    services.reservation_settings.delete_slot_capacity(admin_ctx, 2, "19:00")

    assert services.reservation_settings.list_slot_capacities(admin_ctx) == []
    with pytest.raises(NotFound):
        services.reservation_settings.delete_slot_capacity(admin_ctx, 2, "19:00")
