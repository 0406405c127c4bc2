"""Ingredient and recipe catalog persistence helpers."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from larder.models.catalog import (
    Ingredient,
    IngredientCategory,
    MeasurementUnit,
    Recipe,
    RecipeIngredientUse,
    normalize_name,
)

from .models import IngredientORM, RecipeIngredientORM, RecipeORM
from .repository import session_scope


def ingredient_to_model(row: IngredientORM) -> Ingredient:
    return Ingredient.model_validate(
        {
            "id": row.id,
            "name": row.name,
            "normalized_name": row.normalized_name,
            "category": row.category,
            "default_unit": row.default_unit,
            "is_user_created": row.is_user_created,
            "created_at": row.created_at,
            "modified_at": row.modified_at,
        }
    )


def recipe_to_model(row: RecipeORM) -> Recipe:
    return Recipe.model_validate(
        {
            "id": row.id,
            "title": row.title,
            "servings": row.servings,
            "ingredients": [
                RecipeIngredientUse(
                    id=use.id,
                    ingredient=ingredient_to_model(use.ingredient) if use.ingredient else None,
                    quantity=use.quantity,
                    unit=MeasurementUnit(use.unit),
                    position=use.position,
                    preparation_note=use.preparation_note,
                    is_optional=use.is_optional,
                    custom_name=use.custom_name,
                )
                for use in row.ingredients
            ],
        }
    )


def find_ingredient_row(session: Session, name: str) -> Optional[IngredientORM]:
    normalized = normalize_name(name)
    if not normalized:
        return None
    return (
        session.execute(
            select(IngredientORM)
            .where(IngredientORM.normalized_name == normalized)
            .order_by(IngredientORM.id)
            .limit(1)
        )
        .scalars()
        .first()
    )


def create_ingredient(
    *,
    name: str,
    category: IngredientCategory | str = IngredientCategory.OTHER,
    default_unit: MeasurementUnit | str = MeasurementUnit.GRAM,
    is_user_created: bool = True,
) -> Ingredient:
    """Add an ingredient to the catalog; names must be unique once normalized."""

    display_name = (name or "").strip()
    if not display_name:
        raise ValueError("Ingredient name must not be blank")

    with session_scope() as session:
        if find_ingredient_row(session, display_name) is not None:
            raise ValueError(f"Ingredient '{display_name}' already exists")
        row = IngredientORM(
            name=display_name,
            normalized_name=normalize_name(display_name),
            category=IngredientCategory(category).value,
            default_unit=MeasurementUnit(default_unit).value,
            is_user_created=is_user_created,
        )
        session.add(row)
        session.flush()
        session.refresh(row)
        return ingredient_to_model(row)


def get_ingredient(ingredient_id: int) -> Optional[Ingredient]:
    with session_scope() as session:
        row = session.get(IngredientORM, ingredient_id)
        if row is None:
            return None
        return ingredient_to_model(row)


def find_ingredient_by_name(name: str) -> Optional[Ingredient]:
    """Return the catalog ingredient whose normalized name matches ``name``."""

    with session_scope() as session:
        row = find_ingredient_row(session, name)
        if row is None:
            return None
        return ingredient_to_model(row)


def list_ingredients() -> List[Ingredient]:
    with session_scope() as session:
        rows = session.execute(select(IngredientORM).order_by(IngredientORM.name)).scalars().all()
        return [ingredient_to_model(row) for row in rows]


def rename_ingredient(ingredient_id: int, name: str) -> Ingredient:
    """Change the display name, keeping the normalized name in sync."""

    display_name = (name or "").strip()
    if not display_name:
        raise ValueError("Ingredient name must not be blank")

    with session_scope() as session:
        row = session.get(IngredientORM, ingredient_id)
        if row is None:
            raise ValueError(f"Ingredient {ingredient_id} not found")
        row.name = display_name
        row.normalized_name = normalize_name(display_name)
        session.flush()
        session.refresh(row)
        return ingredient_to_model(row)


def _build_use(session: Session, position: int, payload: Mapping[str, object]) -> RecipeIngredientORM:
    ingredient_id = payload.get("ingredient_id")
    custom_name = payload.get("custom_name")
    if ingredient_id is not None and session.get(IngredientORM, int(ingredient_id)) is None:
        raise ValueError(f"Ingredient {ingredient_id} not found")
    if ingredient_id is None and not (custom_name and str(custom_name).strip()):
        raise ValueError("Recipe ingredient needs an ingredient_id or a custom_name")

    quantity = float(payload.get("quantity", 0.0))
    if quantity < 0:
        raise ValueError("Recipe ingredient quantity must not be negative")

    return RecipeIngredientORM(
        ingredient_id=int(ingredient_id) if ingredient_id is not None else None,
        quantity=quantity,
        unit=MeasurementUnit(payload.get("unit", MeasurementUnit.GRAM)).value,
        position=int(payload.get("position", position)),
        preparation_note=payload.get("preparation_note"),
        is_optional=bool(payload.get("is_optional", False)),
        custom_name=str(custom_name).strip() if custom_name else None,
    )


def create_recipe(
    *,
    title: str,
    servings: int = 2,
    ingredients: Iterable[Mapping[str, object]] = (),
) -> Recipe:
    """Create a recipe with its ingredient uses.

    Each use is a mapping with ``quantity``, ``unit`` and either ``ingredient_id`` or
    ``custom_name``; ``preparation_note``, ``is_optional`` and ``position`` are optional.
    """

    if not (title or "").strip():
        raise ValueError("Recipe title must not be blank")
    if servings < 0:
        raise ValueError("Recipe servings must not be negative")

    with session_scope() as session:
        row = RecipeORM(title=title.strip(), servings=servings)
        row.ingredients = [
            _build_use(session, position, payload) for position, payload in enumerate(ingredients)
        ]
        session.add(row)
        session.flush()
        session.refresh(row)
        return recipe_to_model(row)


def get_recipe(recipe_id: int) -> Optional[Recipe]:
    with session_scope() as session:
        row = session.get(RecipeORM, recipe_id)
        if row is None:
            return None
        return recipe_to_model(row)


def list_recipes() -> List[Recipe]:
    with session_scope() as session:
        rows = session.execute(select(RecipeORM).order_by(RecipeORM.title)).scalars().all()
        return [recipe_to_model(row) for row in rows]


def delete_recipe(recipe_id: int) -> None:
    """Delete a recipe, its ingredient uses, and its assignments to meals."""

    with session_scope() as session:
        row = session.get(RecipeORM, recipe_id)
        if row is None:
            raise ValueError(f"Recipe {recipe_id} not found")
        session.delete(row)


__all__ = [
    "create_ingredient",
    "create_recipe",
    "delete_recipe",
    "find_ingredient_by_name",
    "get_ingredient",
    "get_recipe",
    "ingredient_to_model",
    "list_ingredients",
    "list_recipes",
    "recipe_to_model",
    "rename_ingredient",
]
