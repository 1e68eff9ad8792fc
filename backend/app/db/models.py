"""SQLAlchemy ORM models for tenants, staff, reservations and scoped catalog data."""

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Tenant(Base):
    """Tenant table - one restaurant account, the unit of data partitioning."""

    __tablename__ = "tenant"

    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class StaffAssignment(Base):
    """Staff assignment table - a principal's role within one tenant."""

    __tablename__ = "staff_assignment"
    __table_args__ = (
        UniqueConstraint("principal_id", "tenant_id", name="uq_staff_principal_tenant"),
        Index("idx_staff_principal_active", "principal_id", "is_active"),
    )

    assignment_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    principal_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenant.tenant_id"), nullable=False
    )
    role: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ReservationSettings(Base):
    """Reservation settings table - one row per tenant."""

    __tablename__ = "reservation_settings"

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenant.tenant_id"), primary_key=True
    )
    max_covers_per_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_covers_per_slot: Mapped[int | None] = mapped_column(Integer, nullable=True)
    operating_hours: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    time_slot_interval: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    min_party_size: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    max_party_size: Mapped[int] = mapped_column(Integer, default=20, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class TimeSlotCapacity(Base):
    """Per-weekday, per-slot cover ceiling overriding max_covers_per_slot."""

    __tablename__ = "time_slot_capacity"
    __table_args__ = (
        UniqueConstraint("tenant_id", "day_of_week", "time_slot", name="uq_slot_capacity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenant.tenant_id"), nullable=False
    )
    # 0 = Monday, matching date.weekday()
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    time_slot: Mapped[str] = mapped_column(Text, nullable=False)
    max_covers: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Reservation(Base):
    """Reservation table."""

    __tablename__ = "reservation"
    __table_args__ = (
        Index("idx_reservation_tenant_date_status", "tenant_id", "reservation_date", "status"),
    )

    reservation_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenant.tenant_id"), nullable=False
    )
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    time_slot: Mapped[str] = mapped_column(Text, nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False)
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    customer_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class TenantScoped:
    """Columns shared by every tenant-scoped catalog table.

    ``(tenant_id, id)`` is unique so references can be declared as composite
    foreign keys that cannot cross tenants.
    """

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenant.tenant_id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Category(TenantScoped, Base):
    """Recipe/ingredient category."""

    __tablename__ = "category"
    __table_args__ = (UniqueConstraint("tenant_id", "id", name="uq_category_tenant_id"),)

    name: Mapped[str] = mapped_column(Text, nullable=False)


class Ingredient(TenantScoped, Base):
    """Ingredient table."""

    __tablename__ = "ingredient"
    __table_args__ = (
        UniqueConstraint("tenant_id", "id", name="uq_ingredient_tenant_id"),
        ForeignKeyConstraint(
            ["tenant_id", "category_id"], ["category.tenant_id", "category.id"]
        ),
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)


class Recipe(TenantScoped, Base):
    """Recipe table."""

    __tablename__ = "recipe"
    __table_args__ = (
        UniqueConstraint("tenant_id", "id", name="uq_recipe_tenant_id"),
        ForeignKeyConstraint(
            ["tenant_id", "category_id"], ["category.tenant_id", "category.id"]
        ),
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)


class RecipeIngredient(TenantScoped, Base):
    """Recipe line - links a recipe to an ingredient of the same tenant."""

    __tablename__ = "recipe_ingredient"
    __table_args__ = (
        UniqueConstraint("tenant_id", "id", name="uq_recipe_ingredient_tenant_id"),
        ForeignKeyConstraint(["tenant_id", "recipe_id"], ["recipe.tenant_id", "recipe.id"]),
        ForeignKeyConstraint(
            ["tenant_id", "ingredient_id"], ["ingredient.tenant_id", "ingredient.id"]
        ),
    )

    recipe_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    ingredient_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    quantity: Mapped[str | None] = mapped_column(Text, nullable=True)


class Menu(TenantScoped, Base):
    """Menu table."""

    __tablename__ = "menu"
    __table_args__ = (UniqueConstraint("tenant_id", "id", name="uq_menu_tenant_id"),)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class MenuItem(TenantScoped, Base):
    """Menu item - a recipe placed on a menu of the same tenant."""

    __tablename__ = "menu_item"
    __table_args__ = (
        UniqueConstraint("tenant_id", "id", name="uq_menu_item_tenant_id"),
        ForeignKeyConstraint(["tenant_id", "menu_id"], ["menu.tenant_id", "menu.id"]),
        ForeignKeyConstraint(["tenant_id", "recipe_id"], ["recipe.tenant_id", "recipe.id"]),
    )

    menu_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    recipe_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    price_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
