"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates:
- tenant, staff_assignment
- reservation_settings, time_slot_capacity, reservation
- category, ingredient, recipe, recipe_ingredient, menu, menu_item

Catalog references are composite foreign keys on (tenant_id, id), so a row can
only point at rows of its own tenant.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _scoped_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenant.tenant_id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""
    # tenant table
    op.create_table(
        "tenant",
        sa.Column("tenant_id", sa.Uuid(), primary_key=True),
        sa.Column("slug", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # staff_assignment table
    op.create_table(
        "staff_assignment",
        sa.Column("assignment_id", sa.Uuid(), primary_key=True),
        sa.Column("principal_id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenant.tenant_id"), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("principal_id", "tenant_id", name="uq_staff_principal_tenant"),
    )
    op.create_index("idx_staff_principal_active", "staff_assignment", ["principal_id", "is_active"])

    # reservation_settings table
    op.create_table(
        "reservation_settings",
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenant.tenant_id"), primary_key=True),
        sa.Column("max_covers_per_day", sa.Integer(), nullable=True),
        sa.Column("max_covers_per_slot", sa.Integer(), nullable=True),
        sa.Column("operating_hours", sa.JSON(), nullable=False),
        sa.Column("time_slot_interval", sa.Integer(), server_default="30", nullable=False),
        sa.Column("min_party_size", sa.Integer(), server_default="1", nullable=False),
        sa.Column("max_party_size", sa.Integer(), server_default="20", nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # time_slot_capacity table
    op.create_table(
        "time_slot_capacity",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenant.tenant_id"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("time_slot", sa.Text(), nullable=False),
        sa.Column("max_covers", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.UniqueConstraint("tenant_id", "day_of_week", "time_slot", name="uq_slot_capacity"),
    )

    # reservation table
    op.create_table(
        "reservation",
        sa.Column("reservation_id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenant.tenant_id"), nullable=False),
        sa.Column("reservation_date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.Text(), nullable=False),
        sa.Column("party_size", sa.Integer(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("customer_name", sa.Text(), nullable=False),
        sa.Column("customer_email", sa.Text(), nullable=True),
        sa.Column("customer_phone", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("override", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "idx_reservation_tenant_date_status",
        "reservation",
        ["tenant_id", "reservation_date", "status"],
    )

    # catalog tables
    op.create_table(
        "category",
        *_scoped_columns(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.UniqueConstraint("tenant_id", "id", name="uq_category_tenant_id"),
    )

    op.create_table(
        "ingredient",
        *_scoped_columns(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("unit", sa.Text(), nullable=True),
        sa.Column("category_id", sa.Uuid(), nullable=True),
        sa.UniqueConstraint("tenant_id", "id", name="uq_ingredient_tenant_id"),
        sa.ForeignKeyConstraint(["tenant_id", "category_id"], ["category.tenant_id", "category.id"]),
    )

    op.create_table(
        "recipe",
        *_scoped_columns(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.Uuid(), nullable=True),
        sa.UniqueConstraint("tenant_id", "id", name="uq_recipe_tenant_id"),
        sa.ForeignKeyConstraint(["tenant_id", "category_id"], ["category.tenant_id", "category.id"]),
    )

    op.create_table(
        "recipe_ingredient",
        *_scoped_columns(),
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("ingredient_id", sa.Uuid(), nullable=False),
        sa.Column("quantity", sa.Text(), nullable=True),
        sa.UniqueConstraint("tenant_id", "id", name="uq_recipe_ingredient_tenant_id"),
        sa.ForeignKeyConstraint(["tenant_id", "recipe_id"], ["recipe.tenant_id", "recipe.id"]),
        sa.ForeignKeyConstraint(
            ["tenant_id", "ingredient_id"], ["ingredient.tenant_id", "ingredient.id"]
        ),
    )

    op.create_table(
        "menu",
        *_scoped_columns(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("is_public", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.UniqueConstraint("tenant_id", "id", name="uq_menu_tenant_id"),
    )

    op.create_table(
        "menu_item",
        *_scoped_columns(),
        sa.Column("menu_id", sa.Uuid(), nullable=False),
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=True),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        sa.UniqueConstraint("tenant_id", "id", name="uq_menu_item_tenant_id"),
        sa.ForeignKeyConstraint(["tenant_id", "menu_id"], ["menu.tenant_id", "menu.id"]),
        sa.ForeignKeyConstraint(["tenant_id", "recipe_id"], ["recipe.tenant_id", "recipe.id"]),
    )

    for table in ("category", "ingredient", "recipe", "recipe_ingredient", "menu", "menu_item"):
        op.create_index(f"ix_{table}_tenant_id", table, ["tenant_id"])


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        "menu_item",
        "menu",
        "recipe_ingredient",
        "recipe",
        "ingredient",
        "category",
        "reservation",
        "time_slot_capacity",
        "reservation_settings",
        "staff_assignment",
        "tenant",
    ):
        op.drop_table(table)
