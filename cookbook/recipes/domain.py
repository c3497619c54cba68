"""
Recipe catalog domain.

Entities reference each other by id only. A `Recipe` carries the
`RecipeIngredient` rows it owns; an `Ingredient` never knows which recipes
use it. Validation here performs no I/O and only raises typed errors.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from cookbook.shared.errors import BadRequestError, ValidationError


@dataclass(frozen=True)
class Ingredient:
    id: int
    name: str


@dataclass(frozen=True)
class RecipeIngredient:
    id: int
    recipe_id: int
    ingredient_id: int
    amount: float
    unit: str


@dataclass(frozen=True)
class RecipeFields:
    """
    Scalar part of a recipe, everything except identity and associations.
    """

    name: str
    instructions: str
    vegetarian: bool
    servings: int


@dataclass(frozen=True)
class IngredientLine:
    """
    A requested association, before it is stored.
    """

    ingredient_id: int
    amount: float
    unit: str


@dataclass(frozen=True)
class Recipe:
    id: int
    name: str
    instructions: str
    vegetarian: bool
    servings: int
    ingredients: List[RecipeIngredient] = field(default_factory=list)

    @property
    def fields(self) -> RecipeFields:
        return RecipeFields(
            name=self.name,
            instructions=self.instructions,
            vegetarian=self.vegetarian,
            servings=self.servings,
        )

    @property
    def ingredient_ids(self) -> frozenset:
        return frozenset(ri.ingredient_id for ri in self.ingredients)


def validate_ingredient_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("Ingredient name must not be empty.")
    return name


def validate_recipe_fields(fields: RecipeFields) -> None:
    if fields.name is None or not fields.name.strip():
        raise ValidationError("Recipe name must not be empty.")
    if fields.servings is None or fields.servings <= 0:
        raise BadRequestError("Servings must be greater than zero.")


def validate_ingredient_lines(lines: Optional[Sequence[IngredientLine]]) -> None:
    """
    An ingredient list must be present, non-empty, name each ingredient at
    most once and carry a finite positive amount and a unit on every line.
    """
    if not lines:
        raise ValidationError("Recipe must have at least one ingredient.")

    seen = set()
    for line in lines:
        if line.ingredient_id in seen:
            raise ValidationError(
                f"Ingredient with id {line.ingredient_id} is listed more than once."
            )
        seen.add(line.ingredient_id)

        if line.amount is None or not math.isfinite(line.amount) or line.amount <= 0:
            raise ValidationError("Ingredient amount must be greater than zero.")
        if line.unit is None or not line.unit.strip():
            raise ValidationError("Ingredient unit must not be empty.")


def validate_recipe(
    fields: RecipeFields, lines: Optional[Iterable[IngredientLine]]
) -> List[IngredientLine]:
    """
    Full pre-persistence check for a create or replace request.
    Servings are checked before the ingredient list.
    """
    validate_recipe_fields(fields)
    lines = list(lines) if lines is not None else []
    validate_ingredient_lines(lines)
    return lines
