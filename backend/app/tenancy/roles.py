"""Staff roles and their ordering.

The ordering is data: a ``RoleHierarchy`` is built from a list of role names,
lowest privilege first, so adding a role means changing configuration and the
``Role`` enum, not comparison logic.
"""

from collections.abc import Iterable
from enum import Enum


class Role(str, Enum):
    """Staff role within a single tenant."""

    STAFF = "STAFF"
    ADMIN = "ADMIN"
    OWNER = "OWNER"


class RoleHierarchy:
    """Strict total order over ``Role``."""

    def __init__(self, order: Iterable[str | Role]) -> None:
        """Build the hierarchy.

        Args:
            order: Every role name exactly once, lowest privilege first.

        Raises:
            ValueError: If a name is unknown, duplicated, or a role is missing.
        """
        roles = [Role(name) for name in order]
        if len(set(roles)) != len(roles):
            raise ValueError("role hierarchy contains duplicates")
        missing = set(Role) - set(roles)
        if missing:
            raise ValueError(f"role hierarchy is missing {sorted(r.value for r in missing)}")
        self._rank = {role: rank for rank, role in enumerate(roles)}

    def rank(self, role: Role) -> int:
        return self._rank[role]

    def satisfies(self, actual: Role | None, required: Role) -> bool:
        """True when ``actual`` is at or above ``required``."""
        if actual is None:
            return False
        return self._rank[actual] >= self._rank[required]

    def ordered(self) -> list[Role]:
        return sorted(self._rank, key=self._rank.__getitem__)


DEFAULT_HIERARCHY = RoleHierarchy([Role.STAFF, Role.ADMIN, Role.OWNER])
