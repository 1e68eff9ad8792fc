"""Registry of tenant-scoped entity kinds, their typed fields and references."""

import uuid
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class EntityFields(BaseModel):
    """Base for the typed field set of one entity kind.

    Defaults mirror the column defaults, so a validated payload carries every
    declared field whichever store persists it.
    """

    model_config = ConfigDict(extra="forbid")


class CategoryFields(EntityFields):
    name: str = Field(..., min_length=1)


class IngredientFields(EntityFields):
    name: str = Field(..., min_length=1)
    unit: str | None = None
    category_id: uuid.UUID | None = None


class RecipeFields(EntityFields):
    title: str = Field(..., min_length=1)
    description: str | None = None
    category_id: uuid.UUID | None = None


class RecipeIngredientFields(EntityFields):
    recipe_id: uuid.UUID
    ingredient_id: uuid.UUID
    quantity: str | None = None


class MenuFields(EntityFields):
    name: str = Field(..., min_length=1)
    is_public: bool = False


class MenuItemFields(EntityFields):
    menu_id: uuid.UUID
    recipe_id: uuid.UUID
    price_cents: int | None = Field(None, ge=0)
    position: int = 0


@dataclass(frozen=True)
class EntityKind:
    """Shape of one scoped entity kind.

    ``references`` maps a field to the kind it must point at; the target has
    to live in the same tenant as the referencing entity.
    """

    name: str
    model: type[EntityFields]
    references: dict[str, str] = field(default_factory=dict)

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(self.model.model_fields)

    @property
    def required(self) -> frozenset[str]:
        return frozenset(
            name for name, info in self.model.model_fields.items() if info.is_required()
        )

    def validate(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Every declared field, coerced to its type, defaults filled in.

        Raises:
            ValueError: A value has the wrong type or breaks a constraint
        """
        try:
            return self.model.model_validate(payload).model_dump()
        except ValidationError as e:
            raise ValueError(_describe(self.name, e)) from None

    def coerce(self, name: str, value: Any) -> Any:
        """Coerce one field value, e.g. a query-string filter, to its type.

        Raises:
            ValueError: The value cannot be read as the field's type
        """
        annotation = self.model.model_fields[name].annotation
        try:
            return TypeAdapter(annotation).validate_python(value)
        except ValidationError as e:
            raise ValueError(f"invalid {self.name}.{name}: {e.errors()[0]['msg']}") from None


def _describe(kind: str, error: ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in error.errors()
    ]
    return f"invalid {kind}: " + "; ".join(problems)


ENTITY_KINDS: dict[str, EntityKind] = {
    kind.name: kind
    for kind in (
        EntityKind(name="category", model=CategoryFields),
        EntityKind(
            name="ingredient",
            model=IngredientFields,
            references={"category_id": "category"},
        ),
        EntityKind(
            name="recipe",
            model=RecipeFields,
            references={"category_id": "category"},
        ),
        EntityKind(
            name="recipe_ingredient",
            model=RecipeIngredientFields,
            references={"recipe_id": "recipe", "ingredient_id": "ingredient"},
        ),
        EntityKind(name="menu", model=MenuFields),
        EntityKind(
            name="menu_item",
            model=MenuItemFields,
            references={"menu_id": "menu", "recipe_id": "recipe"},
        ),
    )
}


def get_kind(name: str) -> EntityKind:
    """Look up a kind by name.

    Raises:
        KeyError: If the kind is not registered.
    """
    try:
        return ENTITY_KINDS[name]
    except KeyError:
        raise KeyError(f"unknown entity kind {name!r}") from None
