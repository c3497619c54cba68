"""
Atomic create and replace of a recipe together with its ingredient list.

Replacing never diffs the stored associations against the requested ones:
all of them are dropped and the requested list is written from scratch,
inside the caller's unit of work. Any failure after the first mutation
rolls the unit of work back, so the recipe is either fully rewritten or
left exactly as it was.
"""

import logging
from typing import Iterable, Optional

from cookbook.framework.logging import Span, log_event
from cookbook.recipes.domain import IngredientLine, Recipe, RecipeFields, validate_recipe
from cookbook.recipes.ports import UnitOfWork
from cookbook.shared.errors import NotFoundError


def _attach(uow: UnitOfWork, recipe_id: int, lines: Iterable[IngredientLine]) -> int:
    count = 0
    for line in lines:
        if not uow.ingredients.exists_by_id(line.ingredient_id):
            raise NotFoundError(
                f"Ingredient with id {line.ingredient_id} does not exist."
            )
        uow.recipe_ingredients.create(
            recipe_id=recipe_id,
            ingredient_id=line.ingredient_id,
            amount=line.amount,
            unit=line.unit,
        )
        count += 1
    return count


def _rolled_back(operation: str, recipe_id: Optional[int], exc: Exception) -> None:
    log_event(
        "recipe_rollback",
        level=logging.WARNING,
        operation=operation,
        recipe_id=recipe_id,
        error=type(exc).__name__,
        detail=str(exc),
    )


def create_recipe(
    uow: UnitOfWork, fields: RecipeFields, lines: Optional[Iterable[IngredientLine]]
) -> Recipe:
    """
    Store a new recipe and its initial ingredient list in one transaction.
    """
    lines = validate_recipe(fields, lines)

    with Span("create_recipe_with_ingredients"):
        recipe_id = None
        try:
            with uow:
                recipe_id = uow.recipes.create(fields).id
                attached = _attach(uow, recipe_id, lines)
                created = uow.recipes.find_by_id(recipe_id)
                uow.commit()
        except Exception as exc:
            _rolled_back("create", recipe_id, exc)
            raise

    log_event("recipe_created", recipe_id=created.id, ingredients=attached)
    return created


def replace_recipe(
    uow: UnitOfWork,
    recipe_id: int,
    fields: RecipeFields,
    lines: Optional[Iterable[IngredientLine]],
) -> Recipe:
    """
    Overwrite a recipe's scalar fields and its whole ingredient list.

    1. the recipe must exist (NotFoundError)
    2. fields and lines are validated before anything is written
    3. every stored association of the recipe is removed
    4. scalar fields are written
    5. each requested ingredient is resolved and a new association created
    6. commit, or roll back on any failure in 3-5

    Only a failure in 3-5 is logged as a rollback; 1 and 2 write nothing.
    """
    with Span("replace_recipe_ingredients"), uow:
        if not uow.recipes.exists_by_id(recipe_id):
            raise NotFoundError(f"Recipe with id {recipe_id} does not exist.")

        lines = validate_recipe(fields, lines)

        try:
            removed = uow.recipe_ingredients.delete_all_for_recipe(recipe_id)
            uow.recipes.update(
                Recipe(
                    id=recipe_id,
                    name=fields.name,
                    instructions=fields.instructions,
                    vegetarian=fields.vegetarian,
                    servings=fields.servings,
                )
            )
            attached = _attach(uow, recipe_id, lines)
            replaced = uow.recipes.find_by_id(recipe_id)
            uow.commit()
        except Exception as exc:
            _rolled_back("replace", recipe_id, exc)
            raise

    log_event(
        "recipe_replaced",
        recipe_id=recipe_id,
        removed_ingredients=removed,
        ingredients=attached,
    )
    return replaced
