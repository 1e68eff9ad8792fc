"""Tenant scope enforcement for catalog data access.

A ``TenantScopeEnforcer`` is bound to one request's ``RequestContext``. Every
operation passes the context's tenant to the store, and every reference field
written is checked to resolve inside that same tenant.
"""

import logging
import uuid
from typing import Any

from backend.app.db.context import RequestContext
from backend.app.db.repositories import ScopedRecord, ScopedStore
from backend.app.errors import CrossTenantReference, NotFound, TenantMismatch
from backend.app.tenancy.entities import EntityKind, get_kind

logger = logging.getLogger(__name__)


class TenantScopeEnforcer:
    """find/list/create/update/delete over scoped entities of one tenant."""

    def __init__(self, store: ScopedStore, ctx: RequestContext) -> None:
        self._store = store
        self._ctx = ctx

    @property
    def tenant_id(self) -> uuid.UUID:
        return self._ctx.tenant_id

    def find(self, kind: str, entity_id: uuid.UUID) -> ScopedRecord:
        """Load one entity of the resolved tenant.

        Raises:
            NotFound: Entity absent from this tenant, wherever else it exists
        """
        get_kind(kind)
        record = self._store.find(kind, self.tenant_id, entity_id)
        if record is None:
            raise NotFound(kind)
        return record

    def list(self, kind: str, **filters: Any) -> list[ScopedRecord]:
        """List entities of the resolved tenant matching equality filters.

        Filter values are coerced to the field's type, so ``"500"`` matches a
        stored ``500`` in every store.

        Raises:
            ValueError: Filter on an undeclared field, or a value of the wrong type
        """
        shape = get_kind(kind)
        unknown = set(filters) - shape.fields
        if unknown:
            raise ValueError(f"cannot filter {kind} on {sorted(unknown)}")

        normalized: dict[str, Any] = {}
        for name, value in filters.items():
            if value is not None and name in shape.references:
                try:
                    value = _as_uuid(value)
                except ValueError:
                    return []
            elif value is not None:
                value = shape.coerce(name, value)
            normalized[name] = value

        return self._store.list(kind, self.tenant_id, normalized)

    def create(self, kind: str, data: dict[str, Any]) -> ScopedRecord:
        """Create an entity owned by the resolved tenant.

        ``tenant_id`` may be present in ``data`` only if it equals the
        resolved tenant; it is then dropped and injected from the context.

        Raises:
            TenantMismatch: Caller-supplied tenant_id differs from the context
            CrossTenantReference: A reference does not resolve in this tenant
            ValueError: Unknown, missing or mistyped fields
        """
        shape = get_kind(kind)
        payload = self._strip_tenant(data)
        self._check_fields(shape, payload)

        missing = [name for name in shape.required if payload.get(name) is None]
        if missing:
            raise ValueError(f"{kind} requires {sorted(missing)}")

        payload = shape.validate(self._check_references(shape, payload))
        record = self._store.insert(kind, self.tenant_id, payload)
        logger.info(
            f"Created {kind}",
            extra={"structured": {"tenant_id": str(self.tenant_id), "kind": kind, "id": str(record.id)}},
        )
        return record

    def update(self, kind: str, entity_id: uuid.UUID, changes: dict[str, Any]) -> ScopedRecord:
        """Update an entity of the resolved tenant.

        Raises:
            NotFound: Entity absent from this tenant
            TenantMismatch: Attempt to move the entity to another tenant
            CrossTenantReference: A new reference does not resolve in this tenant
            ValueError: Unknown or mistyped fields, or nulling a non-nullable one
        """
        shape = get_kind(kind)
        payload = self._strip_tenant(changes)
        self._check_fields(shape, payload)

        cleared = [name for name in shape.required if name in payload and payload[name] is None]
        if cleared:
            raise ValueError(f"{kind} requires {sorted(cleared)}")

        # Load under the tenant filter first so absence is reported before
        # any reference is inspected.
        current = self.find(kind, entity_id)

        payload = self._check_references(shape, payload)
        merged = shape.validate({**current.data, **payload})
        payload = {name: merged[name] for name in payload}
        record = self._store.update(kind, self.tenant_id, entity_id, payload)
        if record is None:
            raise NotFound(kind)
        return record

    def delete(self, kind: str, entity_id: uuid.UUID) -> None:
        """Delete an entity of the resolved tenant.

        Raises:
            NotFound: Entity absent from this tenant
        """
        get_kind(kind)
        if not self._store.delete(kind, self.tenant_id, entity_id):
            raise NotFound(kind)
        logger.info(
            f"Deleted {kind}",
            extra={"structured": {"tenant_id": str(self.tenant_id), "kind": kind, "id": str(entity_id)}},
        )

    def _strip_tenant(self, data: dict[str, Any]) -> dict[str, Any]:
        payload = dict(data)
        if "tenant_id" in payload:
            supplied = payload.pop("tenant_id")
            try:
                matches = _as_uuid(supplied) == self.tenant_id
            except ValueError:
                matches = False
            if not matches:
                raise TenantMismatch(
                    "tenant_id does not match the resolved tenant", supplied=str(supplied)
                )
        return payload

    @staticmethod
    def _check_fields(shape: EntityKind, payload: dict[str, Any]) -> None:
        unknown = set(payload) - shape.fields
        if unknown:
            raise ValueError(f"unknown {shape.name} fields {sorted(unknown)}")

    def _check_references(self, shape: EntityKind, payload: dict[str, Any]) -> dict[str, Any]:
        checked = dict(payload)
        for field_name, target_kind in shape.references.items():
            value = checked.get(field_name)
            if value is None:
                continue
            try:
                target_id = _as_uuid(value)
            except ValueError:
                raise CrossTenantReference(field_name, target_kind) from None
            if self._store.find(target_kind, self.tenant_id, target_id) is None:
                raise CrossTenantReference(field_name, target_kind)
            checked[field_name] = target_id
        return checked


def _as_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))
