"""Catalog and tenant context models."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from backend.app.db.repositories import ScopedRecord
from backend.app.tenancy.roles import Role


class CatalogEntity(BaseModel):
    """One tenant-scoped catalog entity, flattened."""

    kind: str
    id: uuid.UUID
    tenant_id: uuid.UUID
    data: dict[str, Any]
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: ScopedRecord) -> "CatalogEntity":
        return cls(
            kind=record.kind,
            id=record.id,
            tenant_id=record.tenant_id,
            data=record.data,
            created_at=record.created_at,
        )


class TenantContextOut(BaseModel):
    """The tenant a request resolved to and the caller's role in it."""

    tenant_id: uuid.UUID
    slug: str
    name: str
    principal_id: uuid.UUID | None
    role: Role | None


class PublicMenu(BaseModel):
    """A public menu with its items in position order."""

    menu: CatalogEntity
    items: list[CatalogEntity]
