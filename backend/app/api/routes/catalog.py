"""Catalog endpoints - tenant-scoped categories, ingredients, recipes and menus."""

import uuid
from typing import Any

from fastapi import APIRouter, Body, Request, Response, status

from backend.app.api.deps import ContextDep, ServicesDep
from backend.app.errors import NotFound
from backend.app.models.catalog import CatalogEntity
from backend.app.tenancy.entities import ENTITY_KINDS

router = APIRouter(prefix="/catalog", tags=["catalog"])


def _known_kind(kind: str) -> str:
    if kind not in ENTITY_KINDS:
        raise NotFound("kind")
    return kind


def query_filters(request: Request) -> dict[str, Any]:
    """Equality filters from the query string, coerced to field types by the scope."""
    return dict(request.query_params)


@router.get("/{kind}", response_model=list[CatalogEntity])
def list_entities(
    kind: str, request: Request, ctx: ContextDep, services: ServicesDep
) -> list[CatalogEntity]:
    scope = services.gate.scope(ctx, "catalog.read")
    records = scope.list(_known_kind(kind), **query_filters(request))
    return [CatalogEntity.from_record(record) for record in records]


@router.post("/{kind}", response_model=CatalogEntity, status_code=status.HTTP_201_CREATED)
def create_entity(
    kind: str,
    ctx: ContextDep,
    services: ServicesDep,
    data: dict[str, Any] = Body(...),
) -> CatalogEntity:
    scope = services.gate.scope(ctx, "catalog.write")
    return CatalogEntity.from_record(scope.create(_known_kind(kind), data))


@router.get("/{kind}/{entity_id}", response_model=CatalogEntity)
def get_entity(
    kind: str, entity_id: uuid.UUID, ctx: ContextDep, services: ServicesDep
) -> CatalogEntity:
    scope = services.gate.scope(ctx, "catalog.read")
    return CatalogEntity.from_record(scope.find(_known_kind(kind), entity_id))


@router.patch("/{kind}/{entity_id}", response_model=CatalogEntity)
def update_entity(
    kind: str,
    entity_id: uuid.UUID,
    ctx: ContextDep,
    services: ServicesDep,
    changes: dict[str, Any] = Body(...),
) -> CatalogEntity:
    scope = services.gate.scope(ctx, "catalog.write")
    return CatalogEntity.from_record(scope.update(_known_kind(kind), entity_id, changes))


@router.delete("/{kind}/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entity(
    kind: str, entity_id: uuid.UUID, ctx: ContextDep, services: ServicesDep
) -> Response:
    scope = services.gate.scope(ctx, "catalog.delete")
    scope.delete(_known_kind(kind), entity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
