"""SQLAlchemy models representing Larder persistence tables."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative base class for Larder ORM models."""


scheduled_meal_recipes = Table(
    "scheduled_meal_recipes",
    Base.metadata,
    Column("meal_id", ForeignKey("scheduled_meals.id", ondelete="CASCADE"), primary_key=True),
    Column("recipe_id", ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
)

list_entry_meals = Table(
    "list_entry_meals",
    Base.metadata,
    Column("entry_id", ForeignKey("list_entries.id", ondelete="CASCADE"), primary_key=True),
    Column("meal_id", ForeignKey("scheduled_meals.id", ondelete="CASCADE"), primary_key=True),
)


class IngredientORM(Base):
    """Canonical ingredient referenced by recipes and list entries."""

    __tablename__ = "ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    normalized_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="other")
    default_unit: Mapped[str] = mapped_column(String(32), nullable=False, default="gram")
    is_user_created: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )
    modified_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class RecipeORM(Base):
    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    servings: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )

    ingredients: Mapped[List["RecipeIngredientORM"]] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredientORM.position",
    )


class RecipeIngredientORM(Base):
    """Quantity of an ingredient used by one recipe."""

    __tablename__ = "recipe_ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("ingredients.id", ondelete="SET NULL"), nullable=True
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    preparation_note: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    custom_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    recipe: Mapped[RecipeORM] = relationship(back_populates="ingredients")
    ingredient: Mapped[Optional[IngredientORM]] = relationship()


class PeriodORM(Base):
    """Week plan owning its scheduled meals and list entries."""

    __tablename__ = "periods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")
    household_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )
    modified_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )

    meals: Mapped[List["ScheduledMealORM"]] = relationship(
        back_populates="period",
        cascade="all, delete-orphan",
        order_by="ScheduledMealORM.id",
    )
    entries: Mapped[List["ListEntryORM"]] = relationship(
        back_populates="period",
        cascade="all",
        order_by="ListEntryORM.id",
    )


class ScheduledMealORM(Base):
    __tablename__ = "scheduled_meals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    period_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("periods.id", ondelete="CASCADE"), nullable=False
    )
    day: Mapped[int] = mapped_column(Integer, nullable=False)
    meal_type: Mapped[str] = mapped_column(String(16), nullable=False)
    servings_planned: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    custom_meal_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_skipped: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    modified_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    period: Mapped[PeriodORM] = relationship(back_populates="meals")
    recipes: Mapped[List[RecipeORM]] = relationship(
        secondary=scheduled_meal_recipes,
        order_by=RecipeORM.id,
    )


class ListEntryORM(Base):
    """Grocery list entry; ``period_id`` is null once the entry is orphaned."""

    __tablename__ = "list_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    period_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("periods.id", ondelete="CASCADE"), nullable=True, index=True
    )
    ingredient_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("ingredients.id", ondelete="SET NULL"), nullable=True
    )
    custom_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="other")
    is_manually_added: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pantry_checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_in_pantry: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )
    checked_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    checked_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    period: Mapped[Optional[PeriodORM]] = relationship(back_populates="entries")
    ingredient: Mapped[Optional[IngredientORM]] = relationship()
    meals: Mapped[List[ScheduledMealORM]] = relationship(
        secondary=list_entry_meals,
        order_by=ScheduledMealORM.id,
    )


__all__ = [
    "Base",
    "IngredientORM",
    "ListEntryORM",
    "PeriodORM",
    "RecipeIngredientORM",
    "RecipeORM",
    "ScheduledMealORM",
    "list_entry_meals",
    "scheduled_meal_recipes",
]
