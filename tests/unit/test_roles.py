"""Tests for role ordering."""

import pytest

from backend.app.tenancy.roles import DEFAULT_HIERARCHY, Role, RoleHierarchy


def test_default_hierarchy_order() -> None:
    assert DEFAULT_HIERARCHY.ordered() == [Role.STAFF, Role.ADMIN, Role.OWNER]


@pytest.mark.parametrize(
    ("actual", "required", "expected"),
    [
        (Role.STAFF, Role.STAFF, True),
        (Role.STAFF, Role.ADMIN, False),
        (Role.ADMIN, Role.STAFF, True),
        (Role.ADMIN, Role.OWNER, False),
        (Role.OWNER, Role.ADMIN, True),
        (None, Role.STAFF, False),
    ],
)
def test_satisfies(actual: Role | None, required: Role, expected: bool) -> None:
    assert DEFAULT_HIERARCHY.satisfies(actual, required) is expected


def test_role_monotonicity() -> None:
    """Anything a role may do, every higher role may do too."""
    roles = DEFAULT_HIERARCHY.ordered()
    for i, lower in enumerate(roles):
        for higher in roles[i:]:
            for required in roles:
                if DEFAULT_HIERARCHY.satisfies(lower, required):
                    assert DEFAULT_HIERARCHY.satisfies(higher, required)


def test_hierarchy_is_data() -> None:
    """A different ordering changes decisions without code changes."""
    flat = RoleHierarchy(["ADMIN", "STAFF", "OWNER"])

    assert flat.satisfies(Role.STAFF, Role.ADMIN)
    assert not flat.satisfies(Role.ADMIN, Role.STAFF)


def test_hierarchy_rejects_duplicates() -> None:
    with pytest.raises(ValueError, match="duplicates"):
        RoleHierarchy(["STAFF", "STAFF", "ADMIN", "OWNER"])


def test_hierarchy_rejects_missing_role() -> None:
    with pytest.raises(ValueError, match="missing"):
        RoleHierarchy(["STAFF", "ADMIN"])


def test_hierarchy_rejects_unknown_role() -> None:
    with pytest.raises(ValueError):
        RoleHierarchy(["STAFF", "ADMIN", "OWNER", "CHEF"])
